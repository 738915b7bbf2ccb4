from .product_service import ProductService
from .reporting_service import ReportingService

__all__ = [
    'ProductService',
    'ReportingService'
]
