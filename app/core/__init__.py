"""
Core Application - Infrastructure & Base Classes

Shared foundation used by the authentication and chat apps.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - ErrorCode / ERROR_STATUS_CODES: Error taxonomy and HTTP mapping
    - BaseApplicationError and its subclasses
    - api_exception_handler: DRF exception handler

Views (import from core.views):
    - health_check: Liveness endpoint
    - service_error_response: Render a failed ServiceResult
"""
