# wasatext/api/dependencies.py
from typing import Type, Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from wasatext.database import get_db
from wasatext.services.storage_service import StorageService


def get_service(service_class: Type) -> Callable:
    """Factory function to create service dependencies with DB injection"""
    def _get_service(db: Session = Depends(get_db)):
        return service_class(db)
    return _get_service


def get_storage_service() -> StorageService:
    return StorageService()
