"""Error taxonomy for link operations."""

from typing import Optional


class LinkError(Exception):
    """Base class for every error raised by the link core."""

    kind = "link_error"


class InvalidURLError(LinkError, ValueError):
    """Target URL is missing, malformed, or not http(s)."""

    kind = "invalid_url"


class InvalidCodeError(LinkError, ValueError):
    """Short code does not match 6-8 alphanumeric characters."""

    kind = "invalid_code"


class CodeConflictError(LinkError):
    """Short code is already held by an active link."""

    kind = "code_conflict"

    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        super().__init__(message or f"Short code '{code}' already exists")


class LinkNotFoundError(LinkError, LookupError):
    """No active link exists for the short code."""

    kind = "not_found"

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Short code '{code}' not found")


class AllocationExhaustedError(LinkError, RuntimeError):
    """No free short code was found within the retry bound."""

    kind = "allocation_exhausted"

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Unable to allocate a unique short code after {attempts} attempts"
        )
