# merch_planning/core/clearance.py
"""Clearance sales simulation for leftover inventory.

The velocity model is a planning heuristic, not a demand model: a fixed
share of the remaining stock sells per day, never less than a floor, and
every discount point speeds that up linearly.
"""
import math
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List, Optional

from merch_planning.core.snapshot import ProductSnapshot
from merch_planning.utils.math_utils import clamp

BASE_DAILY_VELOCITY_RATE = 0.01
MIN_DAILY_SALES = 1.0
DISCOUNT_VELOCITY_FACTOR = 2.0

@dataclass(frozen=True)
class ClearanceProjection:
    additional_discount_pct: float
    remaining_qty: float
    estimated_daily_sales_base: float
    discount_impact_multiplier: float
    estimated_daily_sales: float
    days_to_clear: int
    clearance_price: float
    already_generated_revenue: float
    projected_clearance_revenue: float
    total_projected_revenue: float
    projected_profit: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

def simulate_clearance(
    plan_qty: float,
    already_sold_qty: Optional[float],
    retail_price: float,
    cost_price: float,
    marketing_budget: float,
    additional_discount_pct: float,
    base_daily_velocity_rate: float = BASE_DAILY_VELOCITY_RATE,
    min_daily_sales: float = MIN_DAILY_SALES,
    discount_velocity_factor: float = DISCOUNT_VELOCITY_FACTOR
) -> ClearanceProjection:
    """Project how long a discounted clearance takes and what it earns.

    Already sold units are valued at full retail price. Works mid-season
    too, treating the current sold quantity as provisional.

    Args:
        plan_qty: Planned (produced) quantity
        already_sold_qty: Units sold so far (None counts as 0)
        retail_price: Current unit retail price
        cost_price: Unit production cost
        marketing_budget: Marketing spend for the product
        additional_discount_pct: Extra discount, clamped to 0-100
        base_daily_velocity_rate: Share of remaining stock sold per day
        min_daily_sales: Floor on the undiscounted daily sales estimate
        discount_velocity_factor: Velocity gain per unit of discount fraction

    Returns:
        ClearanceProjection
    """
    sold = already_sold_qty or 0
    discount = clamp(additional_discount_pct or 0, 0, 100)
    remaining_qty = plan_qty - sold

    daily_sales_base = max(remaining_qty * base_daily_velocity_rate, min_daily_sales)
    multiplier = 1 + (discount / 100.0) * discount_velocity_factor
    daily_sales = daily_sales_base * multiplier

    if remaining_qty <= 0 or daily_sales <= 0:
        days_to_clear = 0
    else:
        days_to_clear = math.ceil(remaining_qty / daily_sales)

    clearance_price = retail_price * (1 - discount / 100.0)
    already_generated_revenue = sold * retail_price
    projected_clearance_revenue = remaining_qty * clearance_price
    total_projected_revenue = already_generated_revenue + projected_clearance_revenue
    projected_profit = total_projected_revenue - (plan_qty * cost_price) - (marketing_budget or 0)

    return ClearanceProjection(
        additional_discount_pct=discount,
        remaining_qty=remaining_qty,
        estimated_daily_sales_base=daily_sales_base,
        discount_impact_multiplier=multiplier,
        estimated_daily_sales=daily_sales,
        days_to_clear=days_to_clear,
        clearance_price=clearance_price,
        already_generated_revenue=already_generated_revenue,
        projected_clearance_revenue=projected_clearance_revenue,
        total_projected_revenue=total_projected_revenue,
        projected_profit=projected_profit
    )

def simulate_for_product(
    product: ProductSnapshot,
    additional_discount_pct: float,
    policy: Optional[Dict[str, float]] = None
) -> ClearanceProjection:
    """Run simulate_clearance() with a product's stored figures.

    Args:
        product: Product snapshot
        additional_discount_pct: Extra discount percentage
        policy: Optional velocity constants (see config.clearance_policy)
    """
    return simulate_clearance(
        plan_qty=product.plan_qty,
        already_sold_qty=product.actual_sold_qty,
        retail_price=product.retail_price,
        cost_price=product.cost_price,
        marketing_budget=product.marketing_budget,
        additional_discount_pct=additional_discount_pct,
        **(policy or {})
    )

def discount_scenarios(
    product: ProductSnapshot,
    discounts: Iterable[float],
    policy: Optional[Dict[str, float]] = None
) -> List[ClearanceProjection]:
    """Projections for a ladder of discounts, in the order given."""
    return [simulate_for_product(product, discount, policy) for discount in discounts]
