from typing import Dict

from merch_planning.core.snapshot import ProductSnapshot
from merch_planning.models import Category, ProductStatus

def validate_product(product: ProductSnapshot, status: str = None) -> Dict[str, str]:
    """Validate a product before it is written.

    Args:
        product: Product snapshot to validate
        status: Optional production status value

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if not product.id:
        errors['id'] = 'Product ID is required'

    if not product.season:
        errors['season'] = 'Season is required'

    if product.category and product.category not in {c.value for c in Category}:
        errors['category'] = f'Unknown category: {product.category}'

    if status is not None and status not in {s.value for s in ProductStatus}:
        errors['status'] = f'Unknown status: {status}'

    if product.plan_qty < 0:
        errors['plan_qty'] = 'Planned quantity cannot be negative'

    if product.cost_price < 0:
        errors['cost_price'] = 'Cost price cannot be negative'

    if product.retail_price < 0:
        errors['retail_price'] = 'Retail price cannot be negative'

    if not 0 <= product.target_sell_through <= 100:
        errors['target_sell_through'] = 'Target sell-through must be between 0 and 100'

    if product.marketing_budget < 0:
        errors['marketing_budget'] = 'Marketing budget cannot be negative'

    if product.is_season_ended:
        if product.actual_sold_qty is None:
            errors['actual_sold_qty'] = 'Actual sold quantity is required once the season has ended'
        elif product.actual_sold_qty < 0:
            errors['actual_sold_qty'] = 'Actual sold quantity cannot be negative'

    for position, line in enumerate(product.sku_breakdown):
        if not 0 <= line.ratio <= 100:
            errors[f'sku_breakdown[{position}].ratio'] = 'Ratio must be between 0 and 100'
        if line.qty < 0:
            errors[f'sku_breakdown[{position}].qty'] = 'Quantity cannot be negative'

    return errors
