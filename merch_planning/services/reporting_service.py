# merch_planning/services/reporting_service.py
from typing import Dict, Iterable, List, Optional
import logging

from sqlalchemy.orm import Session

from merch_planning.config import config
from merch_planning.core.aggregation import Dashboard, build_dashboard
from merch_planning.core.clearance import ClearanceProjection, discount_scenarios, simulate_for_product
from merch_planning.core.profitability import BudgetSpec, ProductFigures, evaluate_product
from merch_planning.core.sku_allocation import BreakdownSummary, summarize_breakdown
from merch_planning.core.snapshot import ProductSnapshot
from merch_planning.exceptions import NotFoundError, ReportingError
from merch_planning.models import Product

logger = logging.getLogger(__name__)

DEFAULT_DISCOUNT_LADDER = (0, 10, 20, 30, 40, 50)

class ReportingService:
    """Service for dashboard and per-product analytics."""

    def __init__(self, session: Session, clearance_policy: Optional[Dict[str, float]] = None):
        """Initialize the reporting service.

        Args:
            session: Database session
            clearance_policy: Velocity constants (defaults to config)
        """
        self.session = session
        self._clearance_policy = clearance_policy

    @property
    def clearance_policy(self) -> Dict[str, float]:
        if self._clearance_policy is None:
            self._clearance_policy = config.clearance_policy
        return self._clearance_policy

    def _snapshots(self) -> List[ProductSnapshot]:
        return [ProductSnapshot.from_record(p) for p in self.session.query(Product).all()]

    def _snapshot(self, product_id: str) -> ProductSnapshot:
        product = self.session.get(Product, product_id)
        if not product:
            raise NotFoundError.product(product_id)
        return ProductSnapshot.from_record(product)

    def dashboard(self, products: Optional[Iterable[ProductSnapshot]] = None) -> Dashboard:
        """Build the dashboard rollups.

        Args:
            products: Optional snapshots to report on instead of the database

        Returns:
            Dashboard
        """
        snapshots = list(products) if products is not None else self._snapshots()
        try:
            dashboard = build_dashboard(snapshots)
        except (TypeError, ValueError) as e:
            raise ReportingError(f"Error building dashboard: {str(e)}")

        logger.info(
            f"Dashboard built for {dashboard.kpis.total_sku} products "
            f"({dashboard.kpis.ended_count} with ended seasons)"
        )
        return dashboard

    def product_analysis(self, product_id: str, budget: Optional[BudgetSpec] = None) -> Dict:
        """Plan, actual and breakdown figures for one product.

        Returns:
            Dictionary with 'figures' (ProductFigures) and 'breakdown'
            (BreakdownSummary or None when no breakdown exists)
        """
        snapshot = self._snapshot(product_id)
        figures: ProductFigures = evaluate_product(snapshot, budget)

        breakdown: Optional[BreakdownSummary] = None
        if snapshot.sku_breakdown:
            breakdown = summarize_breakdown(snapshot.sku_breakdown, snapshot.plan_qty)

        return {'product': snapshot, 'figures': figures, 'breakdown': breakdown}

    def clearance_simulation(self, product_id: str, additional_discount_pct: float) -> ClearanceProjection:
        snapshot = self._snapshot(product_id)
        return simulate_for_product(snapshot, additional_discount_pct, self.clearance_policy)

    def clearance_ladder(
        self,
        product_id: str,
        discounts: Iterable[float] = DEFAULT_DISCOUNT_LADDER
    ) -> List[ClearanceProjection]:
        """Clearance projections for several discount levels."""
        snapshot = self._snapshot(product_id)
        return discount_scenarios(snapshot, discounts, self.clearance_policy)
