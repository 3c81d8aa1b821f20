# core/exceptions.py
class SchoolManagementException(Exception):
    """Base exception for all school management system errors."""

    def __init__(self, message=None, user_friendly=False, details=None, error_code=None):
        self.message = message or "An error occurred"
        self.user_friendly = user_friendly
        self.details = details or {}
        self.error_code = error_code
        super().__init__(self.message)

    def as_dict(self):
        """Response body for JSON endpoints."""
        body = {
            'message': self.message if self.user_friendly else "Operation failed.",
            'error_code': self.error_code,
        }
        if self.user_friendly and self.details:
            body['errors'] = self.details
        return body


class ValidationError(SchoolManagementException):
    """Data validation errors."""
    def __init__(self, message=None, user_friendly=False, details=None):
        super().__init__(message or "Validation failed", user_friendly, details, "VALIDATION_ERROR")


class CatalogError(SchoolManagementException):
    """Unknown or inactive subjects, add-ons or students."""
    def __init__(self, message=None, user_friendly=False, details=None):
        super().__init__(message or "Catalog lookup failed", user_friendly, details, "CATALOG_ERROR")


class InvoiceError(SchoolManagementException):
    """Invoice creation and update errors."""
    def __init__(self, message=None, user_friendly=False, details=None):
        super().__init__(message or "Invoice processing failed", user_friendly, details, "INVOICE_ERROR")
