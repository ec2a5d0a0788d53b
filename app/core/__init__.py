"""
Core Application - Infrastructure & Base Classes

Generic, reusable building blocks shared by the domain apps. Business logic
does not live here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError, NotFoundError

Helpers (import from core.helpers):
    - get_client_ip: Client IP extraction from request
    - mask_secret, mask_phone: Redaction for log output

Note:
    Django models and model mixins are NOT imported here to avoid
    AppRegistryNotReady errors. Import them directly from their modules.
"""

from .exceptions import BaseApplicationError, NotFoundError, ValidationError
from .helpers import get_client_ip, mask_phone, mask_secret
from .services import BaseService, ServiceResult

__all__ = [
    # Services
    "BaseService",
    "ServiceResult",
    # Exceptions
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    # Helpers
    "get_client_ip",
    "mask_phone",
    "mask_secret",
]
