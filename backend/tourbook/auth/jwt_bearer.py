"""Bearer token extraction from the Authorization header or the 'jwt' cookie."""

from __future__ import annotations

from typing import Optional

from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tourbook.config import TOKEN_COOKIE_NAME


class JWTBearer(HTTPBearer):
    """
    Componente de seguridad que extiende HTTPBearer para:
    1. Extraer el token Bearer de la cabecera Authorization.
    2. Si no hay cabecera, leerlo de la cookie 'jwt' (navegador).
    3. Devolver None cuando no hay token; la validación la hace get_current_user.
    """

    def __init__(self, cookie_name: str = TOKEN_COOKIE_NAME):
        super().__init__(auto_error=False)
        self.cookie_name = cookie_name

    async def __call__(self, request: Request) -> Optional[str]:
        credentials: Optional[HTTPAuthorizationCredentials] = await super().__call__(request)
        if credentials and credentials.credentials:
            return credentials.credentials
        cookie_token = request.cookies.get(self.cookie_name)
        if cookie_token:
            return cookie_token
        return None
