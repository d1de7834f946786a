from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tourbook.config import validate_security_settings
from tourbook.db import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Arranque: una clave de firma ausente o débil aborta el proceso aquí,
    nunca se descubre petición a petición.
    """
    validate_security_settings()
    init_db()
    logger.info("%s started", app.title)
    yield
    logger.info("%s shutting down", app.title)
