# merch_planning/core/lifecycle.py
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from merch_planning.core.snapshot import ProductSnapshot
from merch_planning.exceptions import ValidationError
from merch_planning.models import Category, OrderType, ProductStatus

STAGES = (
    ProductStatus.PLAN,
    ProductStatus.SAMPLE,
    ProductStatus.PRODUCTION,
    ProductStatus.RELEASED,
)

SEASON_HALVES = ('S/S', 'F/W')
UNKNOWN_BRAND_PREFIX = 'X'
SKU_NUMBER_WIDTH = 8

@dataclass(frozen=True)
class UserProfile:
    """Planner identity stamped on products saved without an author."""
    name: str = ''
    department: str = ''

    @classmethod
    def from_config(cls, profile: Dict[str, str]) -> 'UserProfile':
        return cls(name=profile.get('name', '') or '', department=profile.get('department', '') or '')

def season_options(year: int, count: int = 3) -> List[str]:
    """Selectable seasons starting at ``year``: S/S then F/W per year."""
    return [f"{year + offset} {half}" for offset in range(count) for half in SEASON_HALVES]

def new_product_defaults(planning: Dict, today: date) -> Dict:
    """Field values for a new, empty product plan.

    Args:
        planning: config.planning_defaults
        today: Current date, used for the default season
    """
    return {
        'season': f"{today.year} {planning.get('season_suffix', 'S/S')}",
        'category': planning.get('category', Category.CLOTHING.value),
        'status': ProductStatus.PLAN.value,
        'order_type': OrderType.NEW.value,
        'item_name': '',
        'supplier': '',
        'factory': '',
        'plan_qty': planning.get('plan_qty', 100),
        'cost_price': 0,
        'retail_price': 0,
        'target_sell_through': planning.get('target_sell_through', 70),
        'marketing_budget': 0,
        'color_list': '',
        'size_list': '',
        'is_season_ended': False,
    }

def end_season(product: ProductSnapshot, actual_sold_qty: int) -> ProductSnapshot:
    """Close the sales window, recording the real sold quantity.

    Sold quantity may exceed the plan (over-performance).

    Raises:
        ValidationError: for a negative sold quantity
    """
    if actual_sold_qty is None or actual_sold_qty < 0:
        raise ValidationError(
            f"Actual sold quantity must be >= 0, got {actual_sold_qty}",
            details={'actual_sold_qty': actual_sold_qty}
        )
    return product.with_changes(actual_sold_qty=actual_sold_qty, is_season_ended=True)

def cancel_season_end(product: ProductSnapshot) -> ProductSnapshot:
    """Reopen the season and reset the recorded sold quantity."""
    return product.with_changes(actual_sold_qty=0, is_season_ended=False)

def next_status(status: ProductStatus) -> Optional[ProductStatus]:
    index = STAGES.index(status)
    return STAGES[index + 1] if index < len(STAGES) - 1 else None

def previous_status(status: ProductStatus) -> Optional[ProductStatus]:
    index = STAGES.index(status)
    return STAGES[index - 1] if index > 0 else None

def assign_author(
    current_author: Optional[str],
    profile: Optional[UserProfile],
    display_name: Optional[str] = None
) -> Optional[Dict[str, str]]:
    """Decide the author fields for a product being saved.

    Products that already carry an author keep it. Otherwise the profile
    wins, falling back to the login display name.

    Returns:
        Dict with 'author' and 'department', or None to leave fields as-is
    """
    if current_author and current_author.strip():
        return None

    author, department = '', ''
    if profile is not None:
        author, department = profile.name, profile.department
    if not author and display_name:
        author = display_name
    return {'author': author, 'department': department}

def sku_prefix(brand: Optional[str], prefix_map: Dict[str, str]) -> str:
    return prefix_map.get(brand or '', UNKNOWN_BRAND_PREFIX)

def format_sku(prefix: str, number: int) -> str:
    """Brand prefix followed by a zero-padded counter, e.g. 'B00000001'."""
    return f"{prefix}{str(number).zfill(SKU_NUMBER_WIDTH)}"
