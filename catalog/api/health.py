from fastapi import APIRouter, Depends

from catalog.api.dependencies import get_product_repository
from catalog.exceptions import StorageUnavailableError
from catalog.repositories.product_repository import ProductRepository
from catalog.utils.cache import CacheService, get_cache_service

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "/",
    summary="Health check",
    description="Basic health check endpoint."
)
def health_check():
    """Simple health check."""
    return {"status": "healthy"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the database and the cache backend are reachable."
)
def readiness_check(
    repository: ProductRepository = Depends(get_product_repository),
    cache: CacheService = Depends(get_cache_service),
):
    """
    Readiness check for all dependencies.

    Returns status of:
    - Database connection
    - Cache backend
    """
    checks = {
        "database": False,
        "cache": False
    }

    try:
        repository.ping()
        checks["database"] = True
    except StorageUnavailableError as e:
        checks["database_error"] = str(e.__cause__ or e)

    checks["cache"] = cache.ping()

    all_healthy = checks["database"] and checks["cache"]

    return {
        "status": "ready" if all_healthy else "not_ready",
        "checks": checks
    }


@router.get(
    "/cache/stats",
    summary="Cache statistics",
    description="Get result cache statistics."
)
def cache_stats(cache: CacheService = Depends(get_cache_service)):
    """Get cache statistics."""
    return cache.stats()
