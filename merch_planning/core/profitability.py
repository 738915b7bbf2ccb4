# merch_planning/core/profitability.py
import enum
from dataclasses import dataclass, asdict
from typing import Dict, Optional, Union

from merch_planning.core.snapshot import ProductSnapshot
from merch_planning.utils.math_utils import percentage, round_half_up

@dataclass(frozen=True)
class RateBudget:
    """Marketing budget expressed as a percentage of expected revenue."""
    pct: float

@dataclass(frozen=True)
class AbsoluteBudget:
    """Marketing budget entered as an amount."""
    amount: float

BudgetSpec = Union[RateBudget, AbsoluteBudget]

def effective_marketing_budget(
    budget: Optional[Union[BudgetSpec, float, int]],
    expected_revenue: float
) -> float:
    """Resolve a budget input to the amount used in profit figures.

    Args:
        budget: RateBudget, AbsoluteBudget, a plain amount or None
        expected_revenue: Plan revenue the rate applies to

    Returns:
        Marketing budget amount (0 when no budget is set)
    """
    if budget is None:
        return 0
    if isinstance(budget, RateBudget):
        return round_half_up(expected_revenue * budget.pct / 100.0)
    if isinstance(budget, AbsoluteBudget):
        return budget.amount
    return budget

@dataclass(frozen=True)
class BudgetInput:
    """The single authoritative marketing budget input of a plan form.

    Entering a rate replaces any amount and entering an amount clears the
    rate; whichever was written last wins.
    """
    spec: Optional[BudgetSpec] = None

    def with_rate(self, pct: float) -> 'BudgetInput':
        if pct is None or pct < 0:
            return self
        return BudgetInput(RateBudget(pct))

    def with_amount(self, amount: float) -> 'BudgetInput':
        return BudgetInput(AbsoluteBudget(amount))

    @property
    def rate(self) -> Optional[float]:
        return self.spec.pct if isinstance(self.spec, RateBudget) else None

    def resolve(self, expected_revenue: float) -> float:
        return effective_marketing_budget(self.spec, expected_revenue)

@dataclass(frozen=True)
class PlanFigures:
    total_production_cost: float
    total_retail_value: float
    expected_revenue: float
    gross_profit: float
    marketing_budget: float
    net_profit: float
    profit_margin_pct: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

@dataclass(frozen=True)
class ActualFigures:
    actual_revenue: float
    actual_cost: float
    actual_profit: float
    actual_margin_pct: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

class PerformanceStatus(enum.Enum):
    EXCEEDED = 'exceeded'
    MISSED = 'missed'

    def __str__(self):
        return self.value

@dataclass(frozen=True)
class PerformanceResult:
    actual_sell_through_pct: float
    diff: float
    status: PerformanceStatus

    @property
    def label(self) -> str:
        """Signed difference formatted to one decimal, e.g. '+3.0%'."""
        sign = '+' if self.diff >= 0 else ''
        return f"{sign}{self.diff:.1f}%"

def calculate_plan(
    plan_qty: float,
    cost_price: float,
    retail_price: float,
    target_sell_through: float,
    marketing_budget: Optional[Union[BudgetSpec, float, int]] = 0
) -> PlanFigures:
    """Calculate plan (forecast) profitability for a product.

    Args:
        plan_qty: Planned quantity
        cost_price: Unit production cost
        retail_price: Unit retail price
        target_sell_through: Expected sell-through percentage (0-100)
        marketing_budget: Amount, RateBudget/AbsoluteBudget, or None

    Returns:
        PlanFigures; margin is 0 when expected revenue is not positive
    """
    total_production_cost = plan_qty * cost_price
    total_retail_value = plan_qty * retail_price
    expected_revenue = total_retail_value * (target_sell_through / 100.0)
    gross_profit = expected_revenue - total_production_cost

    budget = effective_marketing_budget(marketing_budget, expected_revenue)
    net_profit = gross_profit - budget

    return PlanFigures(
        total_production_cost=total_production_cost,
        total_retail_value=total_retail_value,
        expected_revenue=expected_revenue,
        gross_profit=gross_profit,
        marketing_budget=budget,
        net_profit=net_profit,
        profit_margin_pct=percentage(net_profit, expected_revenue)
    )

def calculate_actual(
    plan_qty: float,
    cost_price: float,
    retail_price: float,
    marketing_budget: float,
    actual_sold_qty: Optional[float],
    is_season_ended: bool
) -> Optional[ActualFigures]:
    """Calculate post season-end profitability.

    Production cost is sunk at the planned quantity: unsold units do not
    reduce it.

    Returns:
        ActualFigures, or None before season end or without a sold quantity
    """
    if not is_season_ended or actual_sold_qty is None:
        return None

    actual_revenue = actual_sold_qty * retail_price
    actual_cost = plan_qty * cost_price
    actual_profit = actual_revenue - actual_cost - (marketing_budget or 0)

    return ActualFigures(
        actual_revenue=actual_revenue,
        actual_cost=actual_cost,
        actual_profit=actual_profit,
        actual_margin_pct=percentage(actual_profit, actual_revenue)
    )

def classify_performance(
    plan_qty: float,
    target_sell_through: float,
    actual_sold_qty: float
) -> PerformanceResult:
    """Compare actual sell-through against the target."""
    actual_sell_through = percentage(actual_sold_qty, plan_qty)
    diff = actual_sell_through - target_sell_through
    status = PerformanceStatus.EXCEEDED if diff >= 0 else PerformanceStatus.MISSED
    return PerformanceResult(
        actual_sell_through_pct=actual_sell_through,
        diff=diff,
        status=status
    )

@dataclass(frozen=True)
class ProductFigures:
    plan: PlanFigures
    actual: Optional[ActualFigures] = None
    performance: Optional[PerformanceResult] = None

    def to_dict(self) -> Dict:
        result = {'plan': self.plan.to_dict(), 'actual': None, 'performance': None}
        if self.actual:
            result['actual'] = self.actual.to_dict()
        if self.performance:
            result['performance'] = {
                'actual_sell_through_pct': self.performance.actual_sell_through_pct,
                'diff': self.performance.diff,
                'status': self.performance.status.value
            }
        return result

def evaluate_product(
    product: ProductSnapshot,
    budget: Optional[BudgetSpec] = None
) -> ProductFigures:
    """Compute plan, actual and performance figures for one product.

    Args:
        product: Product snapshot
        budget: Optional budget input overriding the stored marketing budget

    Returns:
        ProductFigures
    """
    plan = calculate_plan(
        product.plan_qty,
        product.cost_price,
        product.retail_price,
        product.target_sell_through,
        budget if budget is not None else product.marketing_budget
    )

    actual = calculate_actual(
        product.plan_qty,
        product.cost_price,
        product.retail_price,
        plan.marketing_budget,
        product.actual_sold_qty,
        product.is_season_ended
    )

    performance = None
    if product.has_actuals:
        performance = classify_performance(
            product.plan_qty,
            product.target_sell_through,
            product.actual_sold_qty
        )

    return ProductFigures(plan=plan, actual=actual, performance=performance)
