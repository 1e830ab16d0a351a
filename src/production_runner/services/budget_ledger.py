"""Budget Ledger - stateful line-item collection persisted to a JSON file.

Responsible for:
- Adding, replacing, and deleting line items
- Keeping parent/child links consistent on every delete
- Attaching cast members to cast parent items
- Linking line items to external contacts
- Loading templates and persisting the ledger to disk
"""

import logging
from pathlib import Path
from typing import Optional

from production_runner.models import (
    BudgetDocument,
    BudgetLineItem,
    ContactType,
    CustomBudgetCategory,
)
from production_runner.services import budget_calculator

logger = logging.getLogger(__name__)


class LineItemNotFoundError(KeyError):
    """Raised when a line item id is not in the ledger."""

    def __init__(self, item_id: str):
        super().__init__(item_id)
        self.item_id = item_id

    def __str__(self) -> str:
        return f"Line item not found: {self.item_id}"


# (name, account, category, subcategory, section)
SHORT_FILM_TEMPLATE: tuple[tuple[str, str, str, str, str], ...] = (
    ("Lead Cast", "10-01", "Above the Line", "Cast", "Cast"),
    ("Supporting Cast", "10-02", "Above the Line", "Cast", "Cast"),
    ("Day Players", "10-03", "Above the Line", "Cast", "Cast"),
    ("Extras", "10-04", "Above the Line", "Cast", "Cast"),
    ("Director", "20-01", "Below the Line", "Crew", "Crew"),
    ("Writer", "20-02", "Below the Line", "Crew", "Crew"),
    ("Producer", "20-03", "Below the Line", "Crew", "Crew"),
    ("Cinematographer", "20-04", "Below the Line", "Crew", "Crew"),
    ("Sound", "20-05", "Below the Line", "Crew", "Crew"),
    ("Editor", "20-06", "Below the Line", "Crew", "Crew"),
    ("Lighting", "20-07", "Below the Line", "Crew", "Crew"),
    ("Makeup", "20-08", "Below the Line", "Crew", "Crew"),
    ("Wardrobe", "20-09", "Below the Line", "Crew", "Crew"),
    ("Food", "30-01", "Other", "Other", "Other"),
    ("Hard Drives", "30-02", "Other", "Other", "Other"),
)

TEMPLATES = ("short-film",)


class BudgetLedger:
    """Manages a production's budget line items.

    Validation problems are logged as warnings and the change is applied
    anyway. Operations that address an item by id raise
    LineItemNotFoundError when it is missing.
    """

    def __init__(
        self,
        path: Optional[str | Path] = None,
        document: Optional[BudgetDocument] = None,
    ):
        """Initialize the ledger.

        Args:
            path: JSON file backing the ledger. If it exists and no document is
                given, it is loaded. ``save()`` requires a path.
            document: Initial in-memory state
        """
        self.path = Path(path) if path else None
        if document is not None:
            self.document = document
        elif self.path is not None and self.path.exists():
            self.document = BudgetDocument.load_from_file(self.path)
        else:
            self.document = BudgetDocument()

    @property
    def items(self) -> list[BudgetLineItem]:
        return self.document.items

    @property
    def categories(self) -> list[CustomBudgetCategory]:
        return self.document.categories

    def get(self, item_id: str) -> BudgetLineItem:
        """Return the item with ``item_id``.

        Raises:
            LineItemNotFoundError: If no such item exists
        """
        return self.items[self._index_of(item_id)]

    def _index_of(self, item_id: str) -> int:
        for index, item in enumerate(self.items):
            if item.id == item_id:
                return index
        raise LineItemNotFoundError(item_id)

    def _warn_if_invalid(self, item: BudgetLineItem) -> None:
        problem = budget_calculator.validate_line_item(item, self.items)
        if problem:
            logger.warning("Budget validation: %s (item %s)", problem, item.id)

    # Line items

    def add_line_item(self, item: BudgetLineItem) -> BudgetLineItem:
        self._warn_if_invalid(item)
        self.items.append(item)
        logger.debug("Added line item %s (%s)", item.name, item.id)
        return item

    def update_line_item(self, item: BudgetLineItem) -> BudgetLineItem:
        """Replace the stored item that has the same id."""
        index = self._index_of(item.id)
        self._warn_if_invalid(item)
        self.items[index] = item
        return item

    def delete_line_item(self, item_id: str) -> list[str]:
        """Delete an item along with any children.

        The item is also removed from its parent's child list.

        Returns:
            Ids of every item removed, the requested one first
        """
        item = self.get(item_id)

        removed = [item.id]
        removed.extend(c.id for c in self.children_of(item.id))
        removed.extend(cid for cid in item.child_item_ids if cid not in removed)
        removed_set = set(removed)

        self.document.items = [i for i in self.items if i.id not in removed_set]

        if item.parent_item_id is not None:
            parent = self._find(item.parent_item_id)
            if parent is not None:
                parent.child_item_ids = [c for c in parent.child_item_ids if c != item.id]

        logger.debug("Deleted %d line item(s) starting at %s", len(removed), item_id)
        return removed

    def children_of(self, parent_id: str) -> list[BudgetLineItem]:
        return [item for item in self.items if item.parent_item_id == parent_id]

    def clear_all(self) -> int:
        """Remove every line item. Returns the number removed."""
        count = len(self.items)
        self.document.items = []
        return count

    def _find(self, item_id: str) -> Optional[BudgetLineItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    # Cast members

    def add_cast_member(
        self,
        parent_item_id: str,
        contact_name: str,
        day_rate: float,
        shoot_days: float,
        contact_id: Optional[str] = None,
    ) -> BudgetLineItem:
        """Attach a cast member as a child of a cast line item.

        The child inherits the parent's account, category, subcategory and
        section, and costs ``day_rate`` for ``shoot_days`` days.
        """
        parent = self.get(parent_item_id)
        if not parent.can_have_cast_members:
            logger.warning(
                "Adding cast member to '%s', which is not a cast line item", parent.name
            )

        child = BudgetLineItem(
            name=contact_name,
            account=parent.account,
            category=parent.category,
            subcategory=parent.subcategory,
            section=parent.section,
            quantity=1,
            days=shoot_days,
            unit_cost=day_rate,
            notes=f"Cast member linked to {parent.name}",
            parent_item_id=parent.id,
            linked_contact_id=contact_id,
            linked_contact_type=ContactType.CAST,
        )
        self.items.append(child)
        parent.child_item_ids = [*parent.child_item_ids, child.id]
        return child

    def remove_cast_member(self, cast_member_id: str) -> BudgetLineItem:
        """Remove a cast member and drop it from its parent's child list."""
        member = self.get(cast_member_id)
        self.document.items = [i for i in self.items if i.id != cast_member_id]

        if member.parent_item_id is not None:
            parent = self._find(member.parent_item_id)
            if parent is not None:
                parent.child_item_ids = [
                    c for c in parent.child_item_ids if c != cast_member_id
                ]
        return member

    # Contacts

    def link_contact(
        self, item_id: str, contact_id: str, contact_type: ContactType | str
    ) -> BudgetLineItem:
        item = self.get(item_id)
        item.linked_contact_id = contact_id
        item.linked_contact_type = ContactType(contact_type)
        return item

    def unlink_contact(self, item_id: str) -> BudgetLineItem:
        item = self.get(item_id)
        item.linked_contact_id = None
        item.linked_contact_type = None
        return item

    # Templates

    def load_template(self, template: str = "short-film", replace: bool = True) -> int:
        """Load a starter budget.

        Args:
            template: Template name; only "short-film" is available
            replace: Clear existing items and categories first; otherwise missing
                template categories are added after the existing ones

        Returns:
            Number of items added
        """
        if template not in TEMPLATES:
            raise ValueError(f"Unknown template: {template}. Must be one of {TEMPLATES}")

        defaults = CustomBudgetCategory.short_film_defaults()
        if replace:
            self.clear_all()
            self.document.categories = defaults
        else:
            # Keep existing categories; add template ones after them.
            existing = {c.name for c in self.document.categories}
            next_order = max((c.sort_order for c in self.document.categories), default=-1) + 1
            for category in defaults:
                if category.name in existing:
                    continue
                category.sort_order = next_order
                next_order += 1
                self.document.categories.append(category)

        for name, account, category, subcategory, section in SHORT_FILM_TEMPLATE:
            self.items.append(
                BudgetLineItem(
                    name=name,
                    account=account,
                    category=category,
                    subcategory=subcategory,
                    section=section,
                    quantity=1,
                    days=1,
                    unit_cost=0,
                    notes="Add cast members to this category" if section == "Cast" else "",
                )
            )
        logger.info("Loaded %s template (%d items)", template, len(SHORT_FILM_TEMPLATE))
        return len(SHORT_FILM_TEMPLATE)

    # Totals

    def grand_total(self) -> float:
        return budget_calculator.grand_total(self.items)

    def totals_by_category(self) -> dict[str, float]:
        return budget_calculator.totals_by_category(self.items)

    def totals_by_section(self) -> dict[str, float]:
        return budget_calculator.totals_by_section(self.items)

    # Persistence

    def save(self, path: Optional[str | Path] = None) -> Path:
        """Write the ledger to JSON.

        Raises:
            ValueError: If neither ``path`` nor the ledger's own path is set
        """
        target = Path(path) if path else self.path
        if target is None:
            raise ValueError("No ledger path configured")
        self.document.save_to_file(target)
        return target

    @classmethod
    def load(cls, path: str | Path) -> "BudgetLedger":
        """Load a ledger from JSON; a missing file yields an empty ledger."""
        return cls(path=path)
