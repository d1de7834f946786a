from tourbook.settings import settings

# —————— Configuración de JWT ——————
# SECRET_KEY                 : Clave secreta utilizada para firmar y verificar tokens JWT
# ALGORITHM                  : Algoritmo de firma empleado para los JWT
# ACCESS_TOKEN_EXPIRE_MINUTES: Duración (en minutos) antes de que el token caduque
# JWT_COOKIE_EXPIRES_DAYS    : Vida de la cookie 'jwt' que transporta el token
SECRET_KEY = settings.secret_key
ALGORITHM = settings.jwt_algorithm
ACCESS_TOKEN_EXPIRE_MINUTES = settings.access_token_expire_minutes
JWT_COOKIE_EXPIRES_DAYS = settings.jwt_cookie_expires_days
COOKIE_SECURE = settings.cookie_secure
TOKEN_COOKIE_NAME = "jwt"

# —————— Contraseñas ——————
# BCRYPT_ROUNDS              : Factor de coste de bcrypt (fijo tras el arranque)
# RESET_TOKEN_EXPIRE_MINUTES : Validez del token de recuperación de contraseña
BCRYPT_ROUNDS = settings.bcrypt_rounds
RESET_TOKEN_EXPIRE_MINUTES = settings.reset_token_expire_minutes
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 72

MIN_SECRET_KEY_LENGTH = 32


def validate_security_settings() -> None:
    """Abort startup when the signing secret is missing or too weak."""
    if not SECRET_KEY:
        raise RuntimeError("SECRET_KEY is not configured; refusing to start")
    if len(SECRET_KEY) < MIN_SECRET_KEY_LENGTH:
        raise RuntimeError(
            f"SECRET_KEY must be at least {MIN_SECRET_KEY_LENGTH} characters long"
        )
    if BCRYPT_ROUNDS < 4 or BCRYPT_ROUNDS > 31:
        raise RuntimeError("BCRYPT_ROUNDS must be between 4 and 31")

# —————— Límites de peticiones ——————
# RATE_LIMIT_MAX_REQUESTS   : Peticiones por IP y ventana sobre /api (0 = sin límite)
# RATE_LIMIT_WINDOW_SECONDS : Duración de la ventana del limitador
# MAX_BODY_BYTES            : Tamaño máximo del cuerpo de una petición
RATE_LIMIT_MAX_REQUESTS = settings.rate_limit_max_requests
RATE_LIMIT_WINDOW_SECONDS = settings.rate_limit_window_seconds
MAX_BODY_BYTES = settings.max_body_bytes
