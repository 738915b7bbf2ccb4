# merch_planning/services/product_service.py
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Union
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from merch_planning.config import config
from merch_planning.core.lifecycle import (
    UserProfile, assign_author, cancel_season_end, end_season, format_sku,
    new_product_defaults, next_status, previous_status, sku_prefix
)
from merch_planning.core.sku_allocation import (
    BreakdownSummary, adjust_ratio, generate_breakdown, parse_list, summarize_breakdown
)
from merch_planning.core.snapshot import ProductSnapshot, SkuLine
from merch_planning.exceptions import (
    CalculationError, NotFoundError, ProductError, StageTransitionError, ValidationError
)
from merch_planning.logging_setup import product_event
from merch_planning.models import Comment, Product, ProductStatus, SkuBreakdownLine, SkuCounter
from merch_planning.utils.validation import validate_product

logger = logging.getLogger(__name__)

SORT_FIELDS = (
    'item_name', 'plan_qty', 'actual_sold_qty', 'season', 'status',
    'brand', 'author', 'cost_price', 'retail_price'
)

# Columns a caller may not overwrite through update_fields()
_PROTECTED_FIELDS = {'id', 'created_at', 'updated_at', 'comments'}


class ProductService:
    """Service for product plan records."""

    def __init__(
        self,
        session: Session,
        profile: Optional[UserProfile] = None,
        brand_prefixes: Optional[Dict[str, str]] = None
    ):
        """Initialize the product service.

        Args:
            session: Database session
            profile: Planner profile used as default author on save
            brand_prefixes: Brand name to SKU prefix map (defaults to config)
        """
        self.session = session
        self.profile = profile
        self._brand_prefixes = brand_prefixes

    @property
    def brand_prefixes(self) -> Dict[str, str]:
        if self._brand_prefixes is None:
            self._brand_prefixes = config.brand_prefixes
        return self._brand_prefixes

    def get_product(self, product_id: str) -> Optional[Product]:
        """Get a product by ID.

        Returns:
            Product object or None if not found
        """
        return self.session.get(Product, product_id)

    def require_product(self, product_id: str) -> Product:
        product = self.get_product(product_id)
        if not product:
            raise NotFoundError.product(product_id)
        return product

    def list_products(self) -> List[Product]:
        return self.session.query(Product).order_by(Product.created_at).all()

    def snapshot(self, product_id: str) -> ProductSnapshot:
        """Frozen copy of a stored product for the calculation engine."""
        return ProductSnapshot.from_record(self.require_product(product_id))

    def _commit(self, action: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to {action}: {str(e)}")
            raise ProductError(f"Failed to {action}: {str(e)}")

    def create_product(self, today: Optional[date] = None, **fields) -> Product:
        """Create a new product plan with default values.

        Args:
            today: Date used to pick the default season (defaults to today)
            **fields: Field values overriding the defaults

        Returns:
            The created Product
        """
        values = new_product_defaults(config.planning_defaults, today or date.today())
        values.update(fields)
        values.setdefault('id', uuid.uuid4().hex)

        breakdown = values.pop('sku_breakdown', None)
        product = Product(**values)
        if breakdown:
            self._replace_breakdown(product, [SkuLine.from_record(line) for line in breakdown])

        self._validate(product)
        self.session.add(product)
        self._commit('create product')

        logger.info(f"Created product {product.id} for season {product.season}")
        return product

    def update_fields(self, product_id: str, updates: Dict[str, Any]) -> Product:
        """Apply field updates to a product and validate the result.

        Args:
            product_id: Product ID
            updates: Dictionary with fields to update

        Returns:
            The updated Product
        """
        product = self.require_product(product_id)
        try:
            self._apply_updates(product, updates)
            self._validate(product)
        except (ValidationError, CalculationError):
            self._discard_changes(product_id)
            raise

        self._commit('update product')
        return product

    def save_product(
        self,
        product_id: str,
        updates: Dict[str, Any],
        display_name: Optional[str] = None,
        author_uid: Optional[str] = None
    ) -> Product:
        """Save an edited product, stamping author details if missing.

        Args:
            product_id: Product ID
            updates: Edited field values
            display_name: Login display name, used when no profile name exists
            author_uid: Login user id recorded with a newly assigned author

        Returns:
            The saved Product
        """
        product = self.require_product(product_id)
        try:
            self._apply_updates(product, updates)
            self._validate(product)
        except (ValidationError, CalculationError):
            self._discard_changes(product_id)
            raise

        author_fields = assign_author(product.author, self.profile, display_name)
        if author_fields is not None:
            product.author = author_fields['author']
            product.department = author_fields['department']
            product.author_uid = author_uid
            logger.info(f"Assigned author '{product.author}' to product {product.id}")

        self._commit('save product')
        return product

    def delete_product(self, product_id: str) -> bool:
        product = self.require_product(product_id)
        self.session.delete(product)
        self._commit('delete product')
        logger.info(f"Deleted product {product_id}")
        return True

    def update_status(self, product_id: str, status: Union[str, ProductStatus]) -> Product:
        """Move a product to a production stage."""
        try:
            status = ProductStatus.from_string(str(status))
        except ValueError as e:
            raise ValidationError(str(e), details={'status': str(status)})

        product = self.require_product(product_id)
        previous = product.status
        product.status = status.value
        self._commit('update product status')

        product_event(product_id, 'status_changed', previous=previous, status=product.status)
        return product

    def advance_stage(self, product_id: str) -> Product:
        product = self.require_product(product_id)
        target = next_status(ProductStatus.from_string(product.status))
        if target is None:
            raise StageTransitionError(f"Product {product_id} is already in the last stage ({product.status})")
        return self.update_status(product_id, target)

    def revert_stage(self, product_id: str) -> Product:
        product = self.require_product(product_id)
        target = previous_status(ProductStatus.from_string(product.status))
        if target is None:
            raise StageTransitionError(f"Product {product_id} is already in the first stage ({product.status})")
        return self.update_status(product_id, target)

    def end_season(self, product_id: str, actual_sold_qty: int) -> Product:
        """Record the real sold quantity and close the product's season."""
        product = self.require_product(product_id)
        updated = end_season(ProductSnapshot.from_record(product), actual_sold_qty)

        product.actual_sold_qty = updated.actual_sold_qty
        product.is_season_ended = updated.is_season_ended
        self._commit('end season')

        product_event(product_id, 'season_ended', actual_sold_qty=actual_sold_qty)
        return product

    def cancel_season_end(self, product_id: str) -> Product:
        product = self.require_product(product_id)
        updated = cancel_season_end(ProductSnapshot.from_record(product))

        product.actual_sold_qty = updated.actual_sold_qty
        product.is_season_ended = updated.is_season_ended
        self._commit('cancel season end')

        product_event(product_id, 'season_reopened')
        return product

    def add_comment(
        self,
        product_id: str,
        text: str,
        author: Optional[str],
        created_at: datetime
    ) -> Optional[Comment]:
        """Append a memo to a product.

        Blank text is ignored and returns None.
        """
        if not text or not text.strip():
            return None

        product = self.require_product(product_id)
        comment = Comment(text=text, author=author or 'Unknown', created_at=created_at)
        product.comments.append(comment)
        self._commit('add comment')
        return comment

    def generate_breakdown_for_product(self, product_id: str) -> BreakdownSummary:
        """Regenerate a product's SKU breakdown from its color and size lists.

        Products without colors or sizes keep their current breakdown.
        """
        product = self.require_product(product_id)
        colors = parse_list(product.color_list)
        sizes = parse_list(product.size_list)

        lines = generate_breakdown(colors, sizes, product.plan_qty or 0)
        if lines:
            self._replace_breakdown(product, lines)
            self._commit('generate SKU breakdown')
        else:
            logger.warning(f"Product {product_id} has no colors or sizes; breakdown unchanged")
            lines = [SkuLine.from_record(line) for line in product.sku_breakdown]

        return self._summarize(product_id, lines, product.plan_qty or 0)

    def adjust_breakdown_ratio(self, product_id: str, index: int, delta: int) -> BreakdownSummary:
        """Change one breakdown line's ratio without rebalancing the others."""
        product = self.require_product(product_id)
        current = [SkuLine.from_record(line) for line in product.sku_breakdown]

        lines = adjust_ratio(current, product.plan_qty or 0, index, delta)
        self._replace_breakdown(product, lines)
        self._commit('adjust SKU ratio')

        return self._summarize(product_id, lines, product.plan_qty or 0)

    def generate_next_sku(self, brand: Optional[str]) -> str:
        """Issue the next SKU code for a brand, e.g. 'B00000001'."""
        prefix = sku_prefix(brand, self.brand_prefixes)

        counter = self.session.query(SkuCounter).filter(
            SkuCounter.prefix == prefix
        ).with_for_update().first()

        if counter is None:
            counter = SkuCounter(prefix=prefix, last_value=0)
            self.session.add(counter)

        counter.last_value = (counter.last_value or 0) + 1
        self._commit('generate SKU')

        return format_sku(prefix, counter.last_value)

    def list_authors(self) -> List[str]:
        """Distinct non-empty author names, sorted."""
        return sorted({p.author for p in self.list_products() if p.author})

    def filter_products(
        self,
        search: str = '',
        category: Optional[str] = None,
        author: Optional[str] = None,
        sort_field: str = 'item_name',
        sort_order: str = 'asc'
    ) -> List[Product]:
        """Search, filter and sort the product list.

        Args:
            search: Case-insensitive match on item name or SKU
            category: Category value, None or 'All' for every category
            author: Author name, None or 'All' for every author
            sort_field: One of SORT_FIELDS
            sort_order: 'asc' or 'desc'

        Returns:
            Matching products in the requested order
        """
        if sort_field not in SORT_FIELDS:
            raise ValidationError(f"Cannot sort by {sort_field}", details={'sort_field': sort_field})

        term = (search or '').lower()
        results = []
        for product in self.list_products():
            if term and term not in (product.item_name or '').lower() and term not in (product.sku or '').lower():
                continue
            if category not in (None, 'All') and product.category != category:
                continue
            if author not in (None, 'All') and product.author != author:
                continue
            results.append(product)

        return sorted(results, key=lambda p: _sort_key(p, sort_field), reverse=(sort_order == 'desc'))

    def _apply_updates(self, product: Product, updates: Dict[str, Any]) -> None:
        for field, value in updates.items():
            if field == 'sku_breakdown':
                self._replace_breakdown(product, [SkuLine.from_record(line) for line in value or []])
            elif field in _PROTECTED_FIELDS:
                logger.warning(f"Field {field} cannot be updated directly")
            elif hasattr(product, field):
                setattr(product, field, value)
            else:
                logger.warning(f"Field {field} does not exist on Product model")

    def _replace_breakdown(self, product: Product, lines: Iterable[SkuLine]) -> None:
        product.sku_breakdown = [
            SkuBreakdownLine(position=position, color=line.color, size=line.size, ratio=line.ratio, qty=line.qty)
            for position, line in enumerate(lines)
        ]

    def _validate(self, product: Product) -> None:
        try:
            snapshot = ProductSnapshot.from_record(product)
        except CalculationError as e:
            raise ValidationError(f"Invalid product {product.id}: {e.message}", details={'value': e.message})

        errors = validate_product(snapshot, status=product.status)
        if errors:
            raise ValidationError(f"Invalid product {product.id}", details=errors)

    def _discard_changes(self, product_id: str) -> None:
        """Roll back rejected edits so a later commit cannot persist them."""
        self.session.rollback()
        logger.warning(f"Rejected update for product {product_id} rolled back")

    def _summarize(self, product_id: str, lines: List[SkuLine], plan_qty: int) -> BreakdownSummary:
        summary = summarize_breakdown(lines, plan_qty)
        for warning in summary.warnings():
            logger.info(f"Product {product_id} breakdown is provisional: {warning}")
        return summary


_NUMERIC_SORT_FIELDS = {'plan_qty', 'actual_sold_qty', 'cost_price', 'retail_price'}


def _sort_key(product: Product, field: str):
    value = getattr(product, field)
    if field in _NUMERIC_SORT_FIELDS:
        return value or 0
    return (value or '').lower()
