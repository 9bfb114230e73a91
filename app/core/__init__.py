"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps (orders, settlement).
Business logic does not live here.

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError and its ValidationError, NotFoundError,
      ConflictError and ExternalServiceError subclasses

Models and model mixins (import from core.models / core.model_mixins):
    - BaseModel, UUIDPrimaryKeyMixin, VersionedMixin

Note:
    Models and model mixins are NOT imported here to avoid AppRegistryNotReady
    errors. Import them directly from their modules.
"""

from .services import BaseService, ServiceResult

from .exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "BaseService",
    "ServiceResult",
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "ExternalServiceError",
]
