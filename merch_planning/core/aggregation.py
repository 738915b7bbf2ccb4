# merch_planning/core/aggregation.py
from dataclasses import dataclass, asdict, field
from typing import Dict, Iterable, List, Optional

import numpy as np

from merch_planning.core.profitability import calculate_actual, calculate_plan
from merch_planning.core.snapshot import ProductSnapshot
from merch_planning.utils.math_utils import optional_percentage, percentage

CATEGORY_LABELS = {
    'Clothing': '의류',
    'Shoes': '신발',
    'Accessories': '액세서리',
    'GeneralGoods': '잡화',
}

UNASSIGNED_AUTHOR = '미지정'

@dataclass
class SeasonRollup:
    season: str
    budget: float = 0.0
    revenue: float = 0.0

@dataclass
class AuthorRollup:
    name: str
    count: int = 0
    revenue: float = 0.0
    profit: float = 0.0
    # None when the author has no ended-season revenue yet
    margin: Optional[float] = None

@dataclass
class YearRollup:
    year: str
    revenue: float = 0.0
    cost: float = 0.0
    marketing: float = 0.0
    profit: float = 0.0
    qty: int = 0
    actual_revenue: float = 0.0
    actual_profit: float = 0.0
    margin: float = 0.0
    actual_margin: float = 0.0

@dataclass(frozen=True)
class KPISummary:
    total_budget: float
    target_revenue: float
    avg_plan_margin: float
    avg_actual_margin: float
    total_sku: int
    ended_count: int

@dataclass
class Dashboard:
    kpis: KPISummary
    by_category: Dict[str, int] = field(default_factory=dict)
    by_season: List[SeasonRollup] = field(default_factory=list)
    by_author: List[AuthorRollup] = field(default_factory=list)
    by_year: List[YearRollup] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return asdict(self)

def _plan(product: ProductSnapshot):
    return calculate_plan(
        product.plan_qty,
        product.cost_price,
        product.retail_price,
        product.target_sell_through,
        product.marketing_budget
    )

def _actual(product: ProductSnapshot):
    return calculate_actual(
        product.plan_qty,
        product.cost_price,
        product.retail_price,
        product.marketing_budget,
        product.actual_sold_qty,
        product.is_season_ended
    )

def season_year(season: str) -> str:
    """Leading token of a season string, e.g. '2024' from '2024 S/S'."""
    tokens = (season or '').split(' ')
    return tokens[0]

def plan_qty_by_category(products: Iterable[ProductSnapshot]) -> Dict[str, int]:
    """Sum planned quantity per display category label."""
    totals = {}
    for product in products:
        label = CATEGORY_LABELS.get(product.category, product.category)
        totals[label] = totals.get(label, 0) + product.plan_qty
    return totals

def financials_by_season(products: Iterable[ProductSnapshot]) -> List[SeasonRollup]:
    """Production budget and expected revenue per season, first-seen order."""
    seasons = {}
    for product in products:
        rollup = seasons.setdefault(product.season, SeasonRollup(season=product.season))
        plan = _plan(product)
        rollup.budget += plan.total_production_cost
        rollup.revenue += plan.expected_revenue
    return list(seasons.values())

def performance_by_author(products: Iterable[ProductSnapshot]) -> List[AuthorRollup]:
    """Product count and ended-season results per author.

    Sorted by product count, highest first.
    """
    authors = {}
    for product in products:
        name = product.author or UNASSIGNED_AUTHOR
        rollup = authors.setdefault(name, AuthorRollup(name=name))
        rollup.count += 1

        actual = _actual(product)
        if actual is not None:
            rollup.revenue += actual.actual_revenue
            rollup.profit += actual.actual_profit

    for rollup in authors.values():
        rollup.margin = optional_percentage(rollup.profit, rollup.revenue)

    return sorted(authors.values(), key=lambda r: r.count, reverse=True)

def rollup_by_year(products: Iterable[ProductSnapshot]) -> List[YearRollup]:
    """Plan and actual totals per season year, sorted by year."""
    years = {}
    for product in products:
        year = season_year(product.season)
        rollup = years.setdefault(year, YearRollup(year=year))

        plan = _plan(product)
        rollup.revenue += plan.expected_revenue
        rollup.cost += plan.total_production_cost
        rollup.marketing += plan.marketing_budget
        rollup.profit += plan.net_profit
        rollup.qty += product.plan_qty

        actual = _actual(product)
        if actual is not None:
            rollup.actual_revenue += actual.actual_revenue
            rollup.actual_profit += actual.actual_profit

    for rollup in years.values():
        rollup.margin = percentage(rollup.profit, rollup.revenue)
        rollup.actual_margin = percentage(rollup.actual_profit, rollup.actual_revenue)

    return [years[year] for year in sorted(years)]

def summarize_kpis(products: Iterable[ProductSnapshot]) -> KPISummary:
    """Headline KPIs.

    The plan margin average runs over every product (zero-revenue plans
    count as 0%); the actual margin average only over ended products.
    """
    products = list(products)
    plans = [_plan(p) for p in products]
    actuals = [a for a in (_actual(p) for p in products) if a is not None]

    plan_margins = np.array([plan.profit_margin_pct for plan in plans], dtype=float)
    actual_margins = np.array([a.actual_margin_pct for a in actuals], dtype=float)

    return KPISummary(
        total_budget=float(np.sum([plan.total_production_cost for plan in plans])) if plans else 0.0,
        target_revenue=float(np.sum([plan.expected_revenue for plan in plans])) if plans else 0.0,
        avg_plan_margin=float(plan_margins.mean()) if plan_margins.size else 0.0,
        avg_actual_margin=float(actual_margins.mean()) if actual_margins.size else 0.0,
        total_sku=len(products),
        ended_count=len(actuals)
    )

def build_dashboard(products: Iterable[ProductSnapshot]) -> Dashboard:
    """Compute every dashboard rollup for a product collection."""
    products = list(products)
    return Dashboard(
        kpis=summarize_kpis(products),
        by_category=plan_qty_by_category(products),
        by_season=financials_by_season(products),
        by_author=performance_by_author(products),
        by_year=rollup_by_year(products)
    )
