"""Custom exceptions for the quote generator."""

class QuoteGenError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class ValidationError(QuoteGenError):
    """Raised when user input fails validation (never reaches the store)."""
    def __init__(self, message="Invalid input", errors=None):
        payload = {'errors': errors} if errors else None
        super().__init__(message, 400, payload)
        self.errors = errors or {}

class NotFoundError(QuoteGenError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class UnauthorizedError(QuoteGenError):
    """Raised when the request carries no valid login."""
    def __init__(self, message="Authentication required"):
        super().__init__(message, 401)

class ForbiddenError(QuoteGenError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="You do not have permission to perform this action"):
        super().__init__(message, 403)

class StoreError(QuoteGenError):
    """Raised when reading from or writing to the catalog store fails."""
    def __init__(self, message="The catalog store is unavailable", payload=None):
        super().__init__(message, 503, payload)

class TemplateRenderError(QuoteGenError):
    """Raised when a document template cannot be resolved."""
    def __init__(self, message, unknown_tokens=None):
        payload = {'unknown_tokens': sorted(unknown_tokens)} if unknown_tokens else None
        super().__init__(message, 422, payload)
        self.unknown_tokens = set(unknown_tokens or ())

class ExportError(QuoteGenError):
    """Raised when a document export fails; no file is produced."""
    def __init__(self, message="Failed to export document", payload=None):
        super().__init__(message, 500, payload)

class AssetLoadError(ExportError):
    """Raised when document images did not finish loading in time."""
    def __init__(self, message="Document images failed to load", pending=None):
        payload = {'pending_assets': list(pending)} if pending else None
        super().__init__(message, payload)

class ExportCancelled(ExportError):
    """Raised when an export is cancelled before it completes."""
    def __init__(self, message="Export cancelled"):
        super().__init__(message)
