from .snapshot import ProductSnapshot, SkuLine
from .sku_allocation import parse_list, generate_breakdown, adjust_ratio, summarize_breakdown
from .profitability import (
    RateBudget, AbsoluteBudget, BudgetInput, effective_marketing_budget,
    calculate_plan, calculate_actual, classify_performance, evaluate_product
)
from .clearance import simulate_clearance, simulate_for_product, discount_scenarios
from .aggregation import (
    plan_qty_by_category, financials_by_season, performance_by_author,
    rollup_by_year, summarize_kpis, build_dashboard
)

__all__ = [
    'ProductSnapshot',
    'SkuLine',
    'parse_list',
    'generate_breakdown',
    'adjust_ratio',
    'summarize_breakdown',
    'RateBudget',
    'AbsoluteBudget',
    'BudgetInput',
    'effective_marketing_budget',
    'calculate_plan',
    'calculate_actual',
    'classify_performance',
    'evaluate_product',
    'simulate_clearance',
    'simulate_for_product',
    'discount_scenarios',
    'plan_qty_by_category',
    'financials_by_season',
    'performance_by_author',
    'rollup_by_year',
    'summarize_kpis',
    'build_dashboard'
]
