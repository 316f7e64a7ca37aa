class DomainError(Exception):
    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(DomainError):
    def __init__(self, entity: str, message: str | None = None, details: dict | None = None):
        code = f"NF_{entity.upper()}_001"
        msg = message or f"{entity} not found"
        super().__init__(code, msg, details)


class ValidationError(DomainError):
    def __init__(self, field: str, message: str, details: dict | None = None):
        code = f"VAL_{field.upper()}_001"
        msg = f"Validation failed for {field}: {message}"
        super().__init__(code, msg, details or {"field": field})


class ConflictError(DomainError):
    def __init__(self, message: str, code: str = "CF_001", details: dict | None = None):
        super().__init__(code, message, details)


class InvalidStateError(DomainError):
    """An action was attempted against a day or enrollment state that forbids it."""

    def __init__(self, entity: str, message: str, details: dict | None = None):
        code = f"IS_{entity.upper()}_001"
        super().__init__(code, message, details)


class StoreError(DomainError):
    """Wraps a persistence failure. Retryable failures carry details['retryable']."""

    def __init__(
        self,
        message: str,
        code: str = "ST_001",
        retryable: bool = False,
        details: dict | None = None,
    ):
        payload = dict(details or {})
        payload["retryable"] = retryable
        super().__init__(code, message, payload)

    @property
    def retryable(self) -> bool:
        return bool(self.details.get("retryable"))
