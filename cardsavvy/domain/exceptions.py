"""Domain-specific exceptions"""

from typing import Dict, Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input failed validation; carries per-field messages"""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}


class AuthenticationError(DomainException):
    """Request carries no recognised principal or bad credentials"""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainException):
    """Requested entity does not exist for this caller"""

    def __init__(self, message: str = "Not found"):
        super().__init__(message)
        self.message = message


class ConflictError(DomainException):
    """Unique field (username, email) already taken"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StorageError(DomainException):
    """Persistence backend failed"""

    pass


class UpstreamServiceError(DomainException):
    """External AI service returned an error or is unavailable"""

    pass


class LLMServiceError(UpstreamServiceError):
    """Chat completion or embedding call failed"""

    pass


class VectorStoreError(UpstreamServiceError):
    """Vector index query/upsert failed"""

    pass
