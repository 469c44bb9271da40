"""
Controlador de plataformas - Vincular cuentas externas y sincronizar sus stats
"""

from fastapi import APIRouter, HTTPException, status

from app.core.dependencies import CurrentStudent, Database, Registry
from app.models.platform import (
    LinkPlatformRequest,
    LinkPlatformResponse,
    PlatformInfo,
    PlatformsOverview,
    SyncBatch,
    VerifyPlatformRequest,
    VerifyResult,
)
from app.repositories.platform_repository import StorageError
from app.services.sync_service import (
    InvalidPlatformInputError,
    SyncService,
    UnsupportedPlatformError,
)


router = APIRouter(prefix="/platforms", tags=["platforms"])


def _storage_unavailable(e: StorageError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Storage unavailable: {e}",
    )


@router.get("", response_model=PlatformsOverview)
async def get_my_platforms(
    user: CurrentStudent,
    db: Database,
    registry: Registry
):
    """
    Plataformas vinculadas del estudiante, stats agregadas y análisis de skills.
    """
    service = SyncService(db, registry)

    try:
        return await service.get_overview(user.id)
    except StorageError as e:
        raise _storage_unavailable(e)


@router.get("/supported", response_model=list[PlatformInfo])
async def get_supported_platforms(registry: Registry):
    """
    Catálogo de plataformas con adapter dedicado.

    Cualquier otra plataforma se puede vincular igual (adapter genérico).
    """
    return registry.catalog()


@router.post("/link", response_model=LinkPlatformResponse, status_code=status.HTTP_201_CREATED)
async def link_platform(
    body: LinkPlatformRequest,
    user: CurrentStudent,
    db: Database,
    registry: Registry
):
    """
    Vincular una cuenta.

    No sincroniza: las stats aparecen tras el próximo POST /platforms/sync.
    """
    service = SyncService(db, registry)

    try:
        await service.link_platform(user.id, body.platform, body.username, body.platform_url)
    except InvalidPlatformInputError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except StorageError as e:
        raise _storage_unavailable(e)

    platform = service.normalize_platform_id(body.platform)
    return LinkPlatformResponse(
        success=True,
        platform=platform,
        username=body.username.strip(),
        message=f"{platform} linked successfully",
    )


@router.delete("/{platform}")
async def unlink_platform(
    platform: str,
    user: CurrentStudent,
    db: Database,
    registry: Registry
):
    """
    Desvincular una cuenta. Borra también sus stats cacheadas.
    """
    service = SyncService(db, registry)

    try:
        removed = await service.unlink_platform(user.id, platform)
    except InvalidPlatformInputError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except StorageError as e:
        raise _storage_unavailable(e)

    if not removed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Platform {platform} is not linked"
        )

    return {"success": True, "platform": platform.strip().lower()}


@router.post("/sync", response_model=SyncBatch)
async def sync_platforms(
    user: CurrentStudent,
    db: Database,
    registry: Registry
):
    """
    Sincronizar todas las plataformas vinculadas.

    Un fallo en una plataforma no afecta al resto: cada una tiene su resultado
    en `results` y el resumen cuenta éxitos y fallos.
    """
    service = SyncService(db, registry)

    try:
        return await service.sync_all(user.id)
    except StorageError as e:
        raise _storage_unavailable(e)


@router.post("/verify", response_model=VerifyResult)
async def verify_platform(
    body: VerifyPlatformRequest,
    user: CurrentStudent,
    db: Database,
    registry: Registry
):
    """
    Comprobar que un usuario existe en la plataforma, sin guardar nada.
    """
    service = SyncService(db, registry)

    try:
        return await service.verify_platform(body.platform, body.username)
    except (InvalidPlatformInputError, UnsupportedPlatformError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.post("/repair", response_model=SyncBatch)
async def repair_platform_stats(
    user: CurrentStudent,
    db: Database,
    registry: Registry
):
    """
    Descartar las stats cacheadas y volver a sincronizar desde cero.
    """
    service = SyncService(db, registry)

    try:
        return await service.repair_unsynced_stats(user.id)
    except StorageError as e:
        raise _storage_unavailable(e)
