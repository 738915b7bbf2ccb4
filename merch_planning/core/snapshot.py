# merch_planning/core/snapshot.py
"""Immutable product values consumed by the calculation engine.

The engine never touches ORM objects directly: services (or any other
caller) turn a stored record into a ``ProductSnapshot`` first, so every
calculation works on a frozen copy of the inputs.
"""
from dataclasses import dataclass, field, replace, asdict
from typing import Any, Dict, Optional, Tuple

from merch_planning.utils.math_utils import to_bool, to_integer, to_number

# Keys used by records pushed from the realtime store
_CAMEL_CASE_KEYS = {
    'planQty': 'plan_qty',
    'costPrice': 'cost_price',
    'retailPrice': 'retail_price',
    'targetSellThrough': 'target_sell_through',
    'marketingBudget': 'marketing_budget',
    'actualSoldQty': 'actual_sold_qty',
    'isSeasonEnded': 'is_season_ended',
    'colorList': 'color_list',
    'sizeList': 'size_list',
    'skuBreakdown': 'sku_breakdown',
    'itemName': 'item_name',
}

@dataclass(frozen=True)
class SkuLine:
    """One color/size row of a SKU breakdown."""
    color: str
    size: str
    ratio: int
    qty: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record) -> 'SkuLine':
        get = record.get if isinstance(record, dict) else lambda k, d=None: getattr(record, k, d)
        return cls(
            color=get('color', ''),
            size=get('size', ''),
            ratio=to_integer(get('ratio')),
            qty=to_integer(get('qty'))
        )

@dataclass(frozen=True)
class ProductSnapshot:
    """Frozen copy of the product fields the engine reads."""
    id: str
    season: str = ''
    category: str = ''
    author: Optional[str] = None
    item_name: str = ''
    plan_qty: int = 0
    cost_price: float = 0.0
    retail_price: float = 0.0
    target_sell_through: float = 0.0
    marketing_budget: float = 0.0
    actual_sold_qty: Optional[int] = None
    is_season_ended: bool = False
    color_list: str = ''
    size_list: str = ''
    sku_breakdown: Tuple[SkuLine, ...] = field(default_factory=tuple)

    @property
    def has_actuals(self) -> bool:
        """True when actual figures can be computed for this product."""
        return bool(self.is_season_ended) and self.actual_sold_qty is not None

    def with_changes(self, **changes) -> 'ProductSnapshot':
        """Return a copy with the given fields replaced."""
        if 'sku_breakdown' in changes:
            changes['sku_breakdown'] = tuple(changes['sku_breakdown'])
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['sku_breakdown'] = [line.to_dict() for line in self.sku_breakdown]
        return data

    @classmethod
    def from_record(cls, record) -> 'ProductSnapshot':
        """Build a snapshot from an ORM Product or a plain dict.

        Dict records may use snake_case or the camelCase keys of the
        realtime store. A missing marketing budget is treated as 0.
        """
        if isinstance(record, dict):
            data = {_CAMEL_CASE_KEYS.get(k, k): v for k, v in record.items()}
            get = data.get
        else:
            get = lambda k, d=None: getattr(record, k, d)

        actual_sold_qty = get('actual_sold_qty')
        category = get('category', '') or ''
        return cls(
            id=str(get('id', '')),
            season=get('season', '') or '',
            category=getattr(category, 'value', category),
            author=get('author'),
            item_name=get('item_name', '') or '',
            plan_qty=to_integer(get('plan_qty')),
            cost_price=to_number(get('cost_price')),
            retail_price=to_number(get('retail_price')),
            target_sell_through=to_number(get('target_sell_through')),
            marketing_budget=to_number(get('marketing_budget')),
            actual_sold_qty=None if actual_sold_qty is None else to_integer(actual_sold_qty),
            is_season_ended=to_bool(get('is_season_ended')),
            color_list=get('color_list', '') or '',
            size_list=get('size_list', '') or '',
            sku_breakdown=tuple(SkuLine.from_record(line) for line in (get('sku_breakdown') or []))
        )
