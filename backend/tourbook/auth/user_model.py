from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlmodel import Field, SQLModel

from tourbook.utils import ensure_utc, to_epoch_seconds, utcnow

# Margen entre el cambio de contraseña y el 'iat' del token emitido a continuación.
PASSWORD_CHANGE_SKEW = timedelta(seconds=1)


class UserRole(str, Enum):
    USER = "user"
    GUIDE = "guide"
    LEAD_GUIDE = "lead-guide"
    ADMIN = "admin"


# —————— Definición del modelo de usuario ——————
class User(SQLModel, table=True):
    """
    Representa la tabla 'user' en la base de datos.

    Campos:
    - id                       : Clave primaria autogenerada para cada usuario.
    - email                    : Email único (normalizado en minúsculas), indexado.
    - hashed_password          : Contraseña almacenada con bcrypt. Nunca se serializa.
    - password_changed_at      : Último cambio de contraseña (None hasta el primero).
    - password_reset_token_hash: SHA-256 del token de recuperación pendiente.
    - password_reset_expires_at: Caducidad de ese token.
    - active                   : Borrado lógico; los inactivos no aparecen en lecturas.
    """

    id: int | None = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    photo: str = Field(default="default.jpg")
    role: UserRole = Field(default=UserRole.USER, nullable=False)
    hashed_password: str
    password_changed_at: datetime | None = Field(default=None, nullable=True)
    password_reset_token_hash: str | None = Field(default=None, index=True, nullable=True)
    password_reset_expires_at: datetime | None = Field(default=None, nullable=True)
    active: bool = Field(default=True, nullable=False, index=True)

    def mark_password_changed(self, now: datetime | None = None) -> None:
        """Update password change bookkeeping, one second in the past."""
        self.password_changed_at = (now or utcnow()) - PASSWORD_CHANGE_SKEW

    def changed_password_after(self, issued_at: int) -> bool:
        """True when the password changed after a token issued at ``issued_at``."""
        if self.password_changed_at is None:
            return False
        return issued_at < to_epoch_seconds(self.password_changed_at)

    def has_pending_reset(self, now: datetime | None = None) -> bool:
        if not self.password_reset_token_hash or self.password_reset_expires_at is None:
            return False
        return ensure_utc(self.password_reset_expires_at) > (now or utcnow())


class UserRead(BaseModel):
    """Outward representation of a user. Password and reset fields never leave the store."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    photo: str
    role: UserRole
    active: bool = True
    password_changed_at: Optional[datetime] = None
