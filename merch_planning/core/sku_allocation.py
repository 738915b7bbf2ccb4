# merch_planning/core/sku_allocation.py
from dataclasses import dataclass
from typing import List, Optional, Sequence

from merch_planning.core.snapshot import SkuLine
from merch_planning.utils.math_utils import clamp, round_half_up

TOTAL_RATIO = 100

def parse_list(text: Optional[str]) -> List[str]:
    """Split a comma-separated color or size list.

    Tokens are trimmed and empty tokens dropped. Duplicates are kept.

    Args:
        text: Free text such as "Black, White"

    Returns:
        List of tokens in input order
    """
    if not text:
        return []
    return [token.strip() for token in text.split(',') if token.strip()]

def line_qty(plan_qty: int, ratio: int) -> int:
    """Quantity allocated to a line holding ``ratio`` percent of the plan."""
    return round_half_up(plan_qty * ratio / TOTAL_RATIO)

def generate_breakdown(
    colors: Sequence[str],
    sizes: Sequence[str],
    plan_qty: int
) -> List[SkuLine]:
    """Spread the planned quantity evenly over every color/size combination.

    Lines are produced color-major, size-minor. Each line gets
    ``100 // n`` percent and the first ``100 % n`` lines get one point
    more, so ratios always total exactly 100. Quantities are rounded per
    line and may drift from ``plan_qty``; the drift is reported by
    summarize_breakdown(), never corrected here.

    Args:
        colors: Color names
        sizes: Size names
        plan_qty: Planned total quantity

    Returns:
        List of SkuLine, empty when either input list is empty
    """
    if not colors or not sizes:
        return []

    combinations = len(colors) * len(sizes)
    base_ratio = TOTAL_RATIO // combinations
    remainder = TOTAL_RATIO % combinations

    breakdown = []
    for color in colors:
        for size in sizes:
            ratio = base_ratio
            if len(breakdown) < remainder:
                ratio += 1
            breakdown.append(SkuLine(color=color, size=size, ratio=ratio, qty=line_qty(plan_qty, ratio)))

    return breakdown

def adjust_ratio(
    breakdown: Sequence[SkuLine],
    plan_qty: int,
    index: int,
    delta: int
) -> List[SkuLine]:
    """Nudge one line's ratio and recompute only that line's quantity.

    The ratio is clamped to [0, 100]. Other lines are left as they are;
    the totals may no longer reconcile until the planner fixes them.

    Args:
        breakdown: Current breakdown
        plan_qty: Planned total quantity
        index: Position of the line to adjust
        delta: Ratio change, typically +1 or -1

    Returns:
        New breakdown list (unchanged copy for an out-of-range index)
    """
    updated = list(breakdown)
    if index < 0 or index >= len(updated):
        return updated

    line = updated[index]
    new_ratio = int(clamp(line.ratio + delta, 0, TOTAL_RATIO))
    updated[index] = SkuLine(
        color=line.color,
        size=line.size,
        ratio=new_ratio,
        qty=line_qty(plan_qty, new_ratio)
    )
    return updated

@dataclass(frozen=True)
class BreakdownSummary:
    """Live totals row of a breakdown.

    A breakdown whose totals do not match is provisional: it is shown
    with a discrepancy marker but still saved as entered.
    """
    total_ratio: int
    total_qty: int
    plan_qty: int

    @property
    def ratio_gap(self) -> int:
        return TOTAL_RATIO - self.total_ratio

    @property
    def qty_gap(self) -> int:
        return self.plan_qty - self.total_qty

    @property
    def ratio_reconciled(self) -> bool:
        return self.total_ratio == TOTAL_RATIO

    @property
    def qty_reconciled(self) -> bool:
        return self.total_qty == self.plan_qty

    @property
    def is_reconciled(self) -> bool:
        return self.ratio_reconciled and self.qty_reconciled

    def warnings(self) -> List[str]:
        """Human readable discrepancy messages, empty when reconciled."""
        messages = []
        if not self.ratio_reconciled:
            messages.append(f"Ratios total {self.total_ratio}% (expected {TOTAL_RATIO}%)")
        if not self.qty_reconciled:
            messages.append(f"Quantities total {self.total_qty} (planned {self.plan_qty})")
        return messages

def summarize_breakdown(breakdown: Sequence[SkuLine], plan_qty: int) -> BreakdownSummary:
    """Compute the totals row for a breakdown."""
    return BreakdownSummary(
        total_ratio=sum(line.ratio for line in breakdown),
        total_qty=sum(line.qty for line in breakdown),
        plan_qty=plan_qty
    )
