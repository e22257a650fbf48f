# =============================================================================
# health_store/errors/exceptions.py
# Custom Exception Hierarchy for the Entity Store
# =============================================================================

from typing import Optional, Dict, Any


class HealthStoreError(Exception):
    """
    Base exception for all entity store errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "STORE_001")
        details: Additional context as a dictionary
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "STORE_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# BACKEND EXCEPTIONS
# =============================================================================

class RemoteBackendError(HealthStoreError):
    """Raised by a remote adapter when a call cannot be served"""

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if collection:
            details["collection"] = collection
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            code="STORE_001",
            details=details,
            **kwargs,
        )

    @classmethod
    def from_exception(
        cls,
        error: BaseException,
        collection: Optional[str] = None,
        operation: Optional[str] = None,
        target: Optional[str] = None,
    ) -> "RemoteBackendError":
        """Wrap a client/network exception raised while talking to the remote"""
        where = f" on {target}" if target else ""
        wrapped = cls(
            f"Remote {operation or 'call'}{where} failed: {error}",
            collection=collection,
            operation=operation,
            details={"cause": type(error).__name__},
        )
        wrapped.__cause__ = error
        return wrapped


class EntityNotFoundError(HealthStoreError, KeyError):
    """Raised when updating an entity the local store does not hold"""

    def __init__(
        self,
        collection: str,
        entity_id: str,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["collection"] = collection
        details["entity_id"] = entity_id
        self.collection = collection
        self.entity_id = entity_id

        super().__init__(
            message=f"{collection} with id {entity_id} not found",
            code="STORE_404",
            details=details,
            **kwargs,
        )

    # KeyError.__str__ would quote the message
    __str__ = HealthStoreError.__str__


# =============================================================================
# QUERY EXCEPTIONS
# =============================================================================

class InvalidQueryError(HealthStoreError, ValueError):
    """Raised when filter criteria cannot be interpreted"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        operator: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        if operator:
            details["operator"] = operator

        super().__init__(
            message=message,
            code="STORE_400",
            details=details,
            **kwargs,
        )


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(HealthStoreError):
    """Raised when configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type

        super().__init__(
            message=message,
            code="CONFIG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )
