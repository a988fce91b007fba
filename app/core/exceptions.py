"""
Custom exception hierarchy for ASIN Lookup.

All application-specific exceptions inherit from AsinLookupError,
enabling catch-all handling at the API layer while allowing
fine-grained handling in business logic.
"""


class AsinLookupError(Exception):
    """Base exception for all ASIN Lookup application errors."""

    def __init__(self, message: str = "", details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# ─── Validation Errors ────────────────────────────────────────


class ValidationError(AsinLookupError):
    """Request input rejected before any network or store activity."""

    pass


class InvalidAsinError(ValidationError):
    """The identifier is not a 10-character alphanumeric ASIN."""

    def __init__(self, asin: str, **kwargs):
        self.asin = asin
        message = f"Invalid ASIN '{asin}': must be exactly 10 alphanumeric characters"
        super().__init__(message=message, **kwargs)


class BatchSizeError(ValidationError):
    """A batch lookup was empty or exceeded the per-request maximum."""

    def __init__(self, size: int, maximum: int, **kwargs):
        self.size = size
        self.maximum = maximum
        if size == 0:
            message = "asins array cannot be empty"
        else:
            message = f"Maximum {maximum} ASINs allowed per request (got {size})"
        super().__init__(message=message, **kwargs)


# ─── Upstream Provider Errors ─────────────────────────────────


class ProviderError(AsinLookupError):
    """Error talking to the upstream catalog provider."""

    pass


class ProviderUnavailableError(ProviderError):
    """Provider timed out, refused the connection, or sent a malformed response."""

    pass


# ─── Content Errors ───────────────────────────────────────────


class ContentGenerationError(AsinLookupError):
    """Deriving eBay listing content from a product failed."""

    pass


class ImageProcessingError(ContentGenerationError):
    """Downloading, compositing, or uploading a listing image failed."""

    pass


# ─── Persistence Errors ───────────────────────────────────────


class PersistenceError(AsinLookupError):
    """The product store is unreachable or rejected a write."""

    pass


class RecordNotFoundError(AsinLookupError):
    """A product, account, category, or template column does not exist."""

    pass


class ConflictError(AsinLookupError):
    """The requested change conflicts with existing state."""

    pass


class DuplicateRecordError(ConflictError):
    """A record with the same unique key already exists."""

    pass


class AssignmentConflictError(ConflictError):
    """The product is already linked to a different account."""

    def __init__(self, asin: str, current_account_id: str, **kwargs):
        self.asin = asin
        self.current_account_id = current_account_id
        message = f"Product {asin} already assigned to a different account"
        super().__init__(message=message, **kwargs)
