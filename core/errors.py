class EngineError(Exception):
    """Base class for errors raised inside the inference engine."""


class CredentialUnavailable(EngineError):
    """Provider credentials could not be read for a user."""

    def __init__(self, user_id: str, reason: str = ""):
        self.user_id = user_id
        super().__init__(f"credentials unavailable for user {user_id}" + (f": {reason}" if reason else ""))


class ProviderError(EngineError):
    """A single provider attempt failed (HTTP status, transport, timeout or empty body)."""

    def __init__(self, provider: str, message: str, status: int | None = None):
        self.provider = provider
        self.status = status
        detail = f"{provider}: {message}"
        if status is not None:
            detail += f" (status {status})"
        super().__init__(detail)


class ParseError(ProviderError):
    """A provider answered, but nothing usable could be read from the answer."""


class PersistenceWriteError(EngineError):
    """A telemetry or insight-log write failed."""

    def __init__(self, operation: str, cause: BaseException):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {type(cause).__name__}: {cause}")
