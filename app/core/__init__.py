"""
Core Application - Infrastructure & Base Classes

Shared foundation for the payment tracker apps (chains, rates, merchants,
invoices, ledger, webhooks). Contains no payment domain logic.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Exceptions (import from core.exceptions):
    - BaseApplicationError and its ValidationError / NotFoundError /
      PermissionDeniedError / ConflictError / ExternalServiceError branches

Services (import from core.services):
    - ServiceResult: success/failure wrapper for work-item outcomes
    - BaseService: logger and transaction helpers

Views (import from core.views):
    - health_check: infrastructure health endpoint
"""
