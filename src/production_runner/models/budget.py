"""Budget entities - line items, categories, and variance summaries."""

from enum import Enum
from typing import Optional
import uuid

from pydantic import Field

from production_runner.models.base import RunnerModel


CAST_PARENT_MARKERS = ("Lead Cast", "Supporting Cast", "Day Player")


class ContactType(str, Enum):
    """Kind of contact a line item can be linked to."""
    CREW = "Crew"
    CAST = "Cast"
    VENDOR = "Vendor"


class BudgetLineItem(RunnerModel):
    """A budget line item.

    Items form a one-level hierarchy through ``parent_item_id`` and
    ``child_item_ids``. A parent's own quantity, days and unit cost are
    ignored once it has children; its total is the sum of theirs.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    account: str = Field(default="", description="Account code, e.g. '10-01'")
    category: str = Field(..., description="Category name")
    subcategory: str = ""
    section: Optional[str] = None
    quantity: float = 1.0
    days: float = 1.0
    unit_cost: float = 0.0
    total_budget: Optional[float] = Field(
        None, description="Explicit total overriding quantity x days x unit cost"
    )
    notes: str = ""

    # Hierarchy
    parent_item_id: Optional[str] = None
    child_item_ids: list[str] = Field(default_factory=list)

    # Contact linkage
    linked_contact_id: Optional[str] = None
    linked_contact_type: Optional[ContactType] = None

    ignore_total: bool = False

    @property
    def computed_total(self) -> float:
        """Quantity x days x unit cost, regardless of override or ignore flag."""
        return self.quantity * self.days * self.unit_cost

    @property
    def has_children(self) -> bool:
        return bool(self.child_item_ids)

    @property
    def is_child(self) -> bool:
        return self.parent_item_id is not None

    @property
    def can_have_cast_members(self) -> bool:
        """Whether cast members can be attached as children of this item."""
        return any(marker in self.name for marker in CAST_PARENT_MARKERS)


class CustomBudgetCategory(RunnerModel):
    """A user-editable budget category."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    color_hex: str = "#8E8E93"
    sort_order: int = 0
    subcategories: list[str] = Field(default_factory=list)

    @classmethod
    def feature_film_defaults(cls) -> list["CustomBudgetCategory"]:
        """Standard feature-film top sheet categories."""
        return [
            cls(
                name="Above the Line",
                color_hex="#AF52DE",
                sort_order=0,
                subcategories=["Writers", "Producers", "Directors", "Cast"],
            ),
            cls(
                name="Below the Line",
                color_hex="#007AFF",
                sort_order=1,
                subcategories=[
                    "Production Staff", "Camera", "Lighting", "Sound", "Art Department",
                    "Wardrobe", "Makeup", "Locations", "Transportation", "Equipment",
                ],
            ),
            cls(
                name="Post-Production",
                color_hex="#FF9500",
                sort_order=2,
                subcategories=["Editing", "Sound Design", "Color Grading", "VFX", "Music"],
            ),
            cls(
                name="Other",
                color_hex="#8E8E93",
                sort_order=3,
                subcategories=["Insurance", "Legal", "Contingency", "Marketing"],
            ),
        ]

    @classmethod
    def short_film_defaults(cls) -> list["CustomBudgetCategory"]:
        """Reduced category set for short films, matched against item sections."""
        return [
            cls(name="Cast", color_hex="#AF52DE", sort_order=0),
            cls(name="Crew", color_hex="#007AFF", sort_order=1),
            cls(name="Other", color_hex="#8E8E93", sort_order=2),
        ]


class VarianceStatus(str, Enum):
    """Spend level relative to budget."""
    ON_TRACK = "On Track"
    WARNING = "Warning"
    NEAR_LIMIT = "Near Limit"
    OVER_BUDGET = "Over Budget"


class BudgetVariance(RunnerModel):
    """Budgeted vs. actual for one item or category."""

    budgeted: float = 0.0
    actual: float = 0.0

    @property
    def variance(self) -> float:
        """Budgeted minus actual; negative means over budget."""
        return self.budgeted - self.actual

    @property
    def percentage_used(self) -> float:
        if self.budgeted <= 0:
            return 0.0
        return self.actual / self.budgeted * 100

    @property
    def status(self) -> VarianceStatus:
        used = self.percentage_used
        if used > 100:
            return VarianceStatus.OVER_BUDGET
        if used > 90:
            return VarianceStatus.NEAR_LIMIT
        if used > 75:
            return VarianceStatus.WARNING
        return VarianceStatus.ON_TRACK

    @property
    def is_over_budget(self) -> bool:
        return self.variance < 0

    @property
    def formatted_variance(self) -> str:
        sign = "+" if self.variance >= 0 else "-"
        return f"{sign}${abs(self.variance):,.2f}"


class CategorySummary(RunnerModel):
    """Rolled-up totals for one category."""

    category: str
    color_hex: str = "#8E8E93"
    total: float = 0.0
    item_count: int = 0


class BudgetDocument(RunnerModel):
    """Persisted state of a production budget: its line items and categories."""

    items: list[BudgetLineItem] = Field(default_factory=list)
    categories: list[CustomBudgetCategory] = Field(
        default_factory=CustomBudgetCategory.feature_film_defaults
    )
