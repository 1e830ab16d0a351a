"""Budget Calculator - pure aggregation over a flat list of line items.

Children roll up through their parent: subtotals are computed over top-level
items only, using the group total for parents with children, so no amount is
ever counted twice.
"""

import logging
import re
from typing import Iterable, Optional

from production_runner.models import (
    BudgetLineItem,
    BudgetVariance,
    CategorySummary,
    CustomBudgetCategory,
)

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
ACCOUNT_CODE_PATTERN = re.compile(r"^\d{2}-\d{2}$")


def _index(items: Iterable[BudgetLineItem]) -> dict[str, BudgetLineItem]:
    return {item.id: item for item in items}


def item_total(item: BudgetLineItem) -> float:
    """Total for a single item, ignoring any children."""
    if item.ignore_total:
        return 0.0
    if item.total_budget is not None:
        return item.total_budget
    return item.computed_total


def group_total(item: BudgetLineItem, items: Iterable[BudgetLineItem]) -> float:
    """Total for an item including its children.

    A parent's own quantity, days and unit cost are ignored once it has
    children. Child ids that no longer resolve are skipped.
    """
    if not item.has_children:
        return item_total(item)
    by_id = _index(items)
    return sum(
        item_total(by_id[child_id]) for child_id in item.child_item_ids if child_id in by_id
    )


def top_level_items(items: Iterable[BudgetLineItem]) -> list[BudgetLineItem]:
    """Items with no parent, or whose parent is missing from the collection."""
    items = list(items)
    by_id = _index(items)
    return [
        item for item in items
        if item.parent_item_id is None or item.parent_item_id not in by_id
    ]


def _subtotal(items: list[BudgetLineItem], matches) -> float:
    total = 0.0
    for item in top_level_items(items):
        if item.ignore_total or not matches(item):
            continue
        total += group_total(item, items)
    return total


def category_subtotal(items: Iterable[BudgetLineItem], category: str) -> float:
    """Sum of group totals for top-level items in ``category``."""
    items = list(items)
    return _subtotal(items, lambda item: item.category == category)


def section_subtotal(items: Iterable[BudgetLineItem], section: str) -> float:
    """Sum of group totals for top-level items in ``section``."""
    items = list(items)
    return _subtotal(items, lambda item: item.section == section)


def grand_total(items: Iterable[BudgetLineItem]) -> float:
    """Sum of group totals over all top-level items."""
    items = list(items)
    return _subtotal(items, lambda item: True)


def totals_by_category(items: Iterable[BudgetLineItem]) -> dict[str, float]:
    """Subtotal per category name, in first-appearance order."""
    items = list(items)
    totals: dict[str, float] = {}
    for item in top_level_items(items):
        if item.ignore_total:
            continue
        totals[item.category] = totals.get(item.category, 0.0) + group_total(item, items)
    return totals


def totals_by_section(items: Iterable[BudgetLineItem]) -> dict[str, float]:
    """Subtotal per section; items without a section group under their subcategory."""
    items = list(items)
    totals: dict[str, float] = {}
    for item in top_level_items(items):
        if item.ignore_total:
            continue
        key = item.section or item.subcategory or UNCATEGORIZED
        totals[key] = totals.get(key, 0.0) + group_total(item, items)
    return totals


def category_summary(
    items: Iterable[BudgetLineItem],
    categories: list[CustomBudgetCategory],
) -> list[CategorySummary]:
    """Roll items up into the given categories.

    Children are attributed to their parent's category and are skipped when
    the parent is ignored. An item is matched
    by category name first, then by section name. Items matching neither go
    to an ``Uncategorized`` bucket, which is appended only when non-empty.
    """
    items = list(items)
    by_id = _index(items)
    ordered = sorted(categories, key=lambda c: c.sort_order)
    summaries = {
        c.name: CategorySummary(category=c.name, color_hex=c.color_hex) for c in ordered
    }
    uncategorized = CategorySummary(category=UNCATEGORIZED)

    for item in items:
        # Parents with children contribute through their children.
        if item.has_children:
            continue
        source = by_id.get(item.parent_item_id) if item.parent_item_id else None
        if source is not None and source.ignore_total:
            continue
        source = source or item
        summary = summaries.get(source.category)
        if summary is None and source.section:
            summary = summaries.get(source.section)
        if summary is None:
            logger.debug("No category named %r for item %s", source.category, item.name)
            summary = uncategorized
        summary.total += item_total(item)
        summary.item_count += 1

    result = list(summaries.values())
    if uncategorized.item_count:
        result.append(uncategorized)
    return result


def calculate_variance(budgeted: float, actual: float) -> BudgetVariance:
    """Variance between a budgeted and an actual amount."""
    return BudgetVariance(budgeted=budgeted, actual=actual)


def variance(item: BudgetLineItem, items: Iterable[BudgetLineItem]) -> BudgetVariance:
    """Budgeted (explicit override, 0 if unset) vs. actual for one item.

    Actual is the children's group total for parents and the computed
    quantity x days x unit cost for leaves. A negative ``variance`` on the
    result means over budget.
    """
    budgeted = item.total_budget if item.total_budget is not None else 0.0
    if item.has_children:
        actual = group_total(item, items)
    else:
        actual = item.computed_total
    return calculate_variance(budgeted, actual)


def validate_line_item(
    item: BudgetLineItem,
    existing: Iterable[BudgetLineItem] = (),
) -> Optional[str]:
    """Check an item for common entry mistakes.

    Returns:
        A human-readable problem description, or None if the item is valid
    """
    name = item.name.strip()
    if not name:
        return "Line item name cannot be empty."

    for other in existing:
        if (
            other.id != item.id
            and other.name.strip().lower() == name.lower()
            and other.category == item.category
            and other.section == item.section
        ):
            return f"A line item named '{name}' already exists in {item.category}."

    if item.quantity < 0:
        return "Quantity cannot be negative."
    if item.days < 0:
        return "Days cannot be negative."
    if item.unit_cost < 0:
        return "Unit cost cannot be negative."

    if item.account and not ACCOUNT_CODE_PATTERN.match(item.account):
        return f"Account code '{item.account}' must use the format NN-NN."

    return None
