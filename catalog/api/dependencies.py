"""
API Dependencies

Wires request-scoped database sessions and the shared cache into the
product service.
"""

import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.orm import Session

from catalog.config import Settings, get_settings
from catalog.database import get_db
from catalog.repositories.product_repository import ProductRepository
from catalog.services.product_service import ProductService
from catalog.utils.cache import CacheService, get_cache_service

security = HTTPBasic(description="HTTP Basic credentials configured via AUTH_USERNAME / AUTH_PASSWORD")


def get_product_repository(db: Session = Depends(get_db)) -> ProductRepository:
    return ProductRepository(db)


def get_product_service(
    repository: ProductRepository = Depends(get_product_repository),
    cache: CacheService = Depends(get_cache_service),
) -> ProductService:
    """
    Get Product Service instance

    Every request gets its own repository (and session) but the same
    shared cache.
    """
    return ProductService(repository, cache)


def require_user(
    credentials: HTTPBasicCredentials = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Check HTTP Basic credentials against the configured user.

    Returns:
        The authenticated username

    Raises:
        HTTPException: 401 if the credentials don't match
    """
    username_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), settings.AUTH_USERNAME.encode("utf-8")
    )
    password_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"), settings.AUTH_PASSWORD.encode("utf-8")
    )
    if not (username_ok and password_ok):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
