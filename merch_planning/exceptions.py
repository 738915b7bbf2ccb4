class MerchPlanError(Exception):
    """Base exception for Merchandise Planning Engine errors.

    Subclasses only override ``default_message``; ``code`` and ``details``
    travel with the error into logs and ``to_dict()``.
    """

    default_message = "An error occurred in the Merchandise Planning Engine"

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Error message (defaults to the class default_message)
            code: Short error code, e.g. 'PRODUCT'
            details: Additional error details
        """
        self.message = message or self.default_message
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Convert the exception to a dictionary."""
        error_dict = {'error': self.__class__.__name__, 'message': self.message}
        if self.code:
            error_dict['code'] = self.code
        if self.details:
            error_dict['details'] = self.details
        return error_dict


class ConfigError(MerchPlanError):
    """Missing or unusable settings."""
    default_message = "Configuration error"


class DatabaseError(MerchPlanError):
    """A database operation failed and was rolled back."""
    default_message = "Database error"


class ValidationError(MerchPlanError):
    """A product (or input value) failed validation.

    ``details`` maps field names to messages.
    """
    default_message = "Validation error"

    @property
    def field_errors(self):
        return dict(self.details or {})


class NotFoundError(MerchPlanError):
    """A requested record does not exist."""
    default_message = "Resource not found"

    @classmethod
    def product(cls, product_id):
        return cls(f"Product with ID {product_id} not found", code='PRODUCT', details={'id': product_id})


class ProductError(MerchPlanError):
    """A product write or workflow step could not be carried out."""
    default_message = "Product error"


class StageTransitionError(ProductError):
    """A product cannot move further along the production stages."""
    default_message = "Invalid stage transition"


class CalculationError(MerchPlanError):
    """A value could not be used in a calculation."""
    default_message = "Calculation error"


class ReportingError(MerchPlanError):
    """Dashboard or report figures could not be produced."""
    default_message = "Reporting error"
