"""
Controlador de salud - Endpoint de comprobación del servicio
"""

import logging

from fastapi import APIRouter
from pydantic import BaseModel
from pymongo.errors import PyMongoError

from app.database import Database

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Respuesta del chequeo de estado."""
    status: str
    database: str


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Endpoint de verificación de estado.

    La API responde "ok" aunque Mongo no esté disponible; el estado de la base
    se informa aparte para que el balanceador no reinicie el proceso.
    """
    if Database.db is None:
        return HealthResponse(status="ok", database="disconnected")

    try:
        await Database.db.command("ping")
        db_status = "connected"
    except PyMongoError as e:
        logger.warning(f"Database ping failed: {e}")
        db_status = "unreachable"

    return HealthResponse(status="ok", database=db_status)
