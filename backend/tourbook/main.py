import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Cargar variables de entorno desde .env anclado a /backend
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

from tourbook.auth import auth_router, user_admin_router  # /api/v1/users/...
from tourbook.error_handlers import register_exception_handlers
from tourbook.middleware import install_request_limits, install_request_middleware
from tourbook.settings import settings
from tourbook.startup import lifespan

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/users"

# ─────────────────────────────
# FastAPI app
# ─────────────────────────────
app = FastAPI(title="Tourbook API", lifespan=lifespan)
register_exception_handlers(app)
# Los límites quedan dentro del middleware de correlación.
install_request_limits(app)
install_request_middleware(app)


# Health checks
@app.get("/health")
def health():
    return {"ok": True}


# CORS
allow_origins = [settings.frontend_origin] if settings.frontend_origin else []

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_origin_regex=r"http://(localhost|127\.0\.0\.1):\d+",  # útil en dev
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers: auth primero, para que /logout etc. no choquen con /{user_id}
app.include_router(auth_router.router, prefix=API_PREFIX)
app.include_router(user_admin_router.router, prefix=API_PREFIX)
