"""Tests for the budget ledger - CRUD, cast members, templates, and persistence."""

import logging

import pytest

from production_runner.models import BudgetLineItem, ContactType
from production_runner.services import budget_calculator
from production_runner.services.budget_ledger import (
    SHORT_FILM_TEMPLATE,
    BudgetLedger,
    LineItemNotFoundError,
)


@pytest.fixture
def ledger(tmp_path):
    return BudgetLedger(tmp_path / "budget.json")


@pytest.fixture
def lead_cast(ledger):
    return ledger.add_line_item(
        BudgetLineItem(
            name="Lead Cast",
            account="10-01",
            category="Above the Line",
            subcategory="Cast",
            section="Cast",
        )
    )


class TestLineItems:
    """Tests for adding, updating, and deleting items."""

    def test_add_and_get(self, ledger):
        item = ledger.add_line_item(BudgetLineItem(name="Gaffer", category="Below the Line"))
        assert ledger.get(item.id) is item
        assert len(ledger.items) == 1

    def test_get_missing(self, ledger):
        with pytest.raises(LineItemNotFoundError) as exc_info:
            ledger.get("nope")
        assert exc_info.value.item_id == "nope"
        assert str(exc_info.value) == "Line item not found: nope"

    def test_not_found_is_key_error(self, ledger):
        with pytest.raises(KeyError):
            ledger.delete_line_item("nope")

    def test_invalid_item_is_added_with_warning(self, ledger, caplog):
        with caplog.at_level(logging.WARNING):
            ledger.add_line_item(BudgetLineItem(name="Grip", category="BTL", days=-2))

        assert len(ledger.items) == 1
        assert "Days cannot be negative." in caplog.text

    def test_duplicate_name_warns(self, ledger, caplog):
        ledger.add_line_item(BudgetLineItem(name="Grip", category="BTL"))
        with caplog.at_level(logging.WARNING):
            ledger.add_line_item(BudgetLineItem(name="Grip", category="BTL"))

        assert len(ledger.items) == 2
        assert "already exists" in caplog.text

    def test_update(self, ledger):
        item = ledger.add_line_item(BudgetLineItem(name="Gaffer", category="BTL"))

        ledger.update_line_item(item.model_copy(update={"unit_cost": 650.0}))

        assert ledger.get(item.id).unit_cost == 650

    def test_update_missing(self, ledger):
        with pytest.raises(LineItemNotFoundError):
            ledger.update_line_item(BudgetLineItem(name="Ghost", category="BTL"))

    def test_delete_standalone(self, ledger):
        keep = ledger.add_line_item(BudgetLineItem(name="Keep", category="BTL"))
        drop = ledger.add_line_item(BudgetLineItem(name="Drop", category="BTL"))

        assert ledger.delete_line_item(drop.id) == [drop.id]
        assert ledger.items == [keep]

    def test_clear_all(self, ledger):
        ledger.add_line_item(BudgetLineItem(name="A", category="BTL"))
        ledger.add_line_item(BudgetLineItem(name="B", category="BTL"))

        assert ledger.clear_all() == 2
        assert ledger.items == []


class TestCastMembers:
    """Tests for the cast parent/child hierarchy."""

    def test_add_cast_member(self, ledger, lead_cast):
        child = ledger.add_cast_member(lead_cast.id, "Ada Lane", 800, 5, contact_id="c-1")

        assert child.parent_item_id == lead_cast.id
        assert child.account == "10-01"
        assert child.category == "Above the Line"
        assert child.section == "Cast"
        assert child.computed_total == 4000
        assert child.notes == "Cast member linked to Lead Cast"
        assert child.linked_contact_id == "c-1"
        assert child.linked_contact_type == ContactType.CAST
        assert lead_cast.child_item_ids == [child.id]

    def test_parent_total_is_sum_of_children(self, ledger, lead_cast):
        lead_cast.unit_cost = 10000
        ledger.add_cast_member(lead_cast.id, "Ada Lane", 800, 5)
        ledger.add_cast_member(lead_cast.id, "Bo Reyes", 500, 2)

        assert budget_calculator.group_total(lead_cast, ledger.items) == 5000
        assert ledger.grand_total() == 5000

    def test_non_cast_parent_warns(self, ledger, caplog):
        gaffer = ledger.add_line_item(BudgetLineItem(name="Gaffer", category="BTL"))

        with caplog.at_level(logging.WARNING):
            ledger.add_cast_member(gaffer.id, "Ada Lane", 800, 5)

        assert "not a cast line item" in caplog.text
        assert gaffer.has_children

    def test_add_to_missing_parent(self, ledger):
        with pytest.raises(LineItemNotFoundError):
            ledger.add_cast_member("nope", "Ada Lane", 800, 5)

    def test_delete_parent_cascades(self, ledger, lead_cast):
        ada = ledger.add_cast_member(lead_cast.id, "Ada Lane", 800, 5)
        bo = ledger.add_cast_member(lead_cast.id, "Bo Reyes", 500, 2)

        removed = ledger.delete_line_item(lead_cast.id)

        assert removed[0] == lead_cast.id
        assert set(removed) == {lead_cast.id, ada.id, bo.id}
        assert ledger.items == []

    def test_delete_child_updates_parent(self, ledger, lead_cast):
        ada = ledger.add_cast_member(lead_cast.id, "Ada Lane", 800, 5)
        bo = ledger.add_cast_member(lead_cast.id, "Bo Reyes", 500, 2)

        ledger.delete_line_item(ada.id)

        assert lead_cast.child_item_ids == [bo.id]
        assert [i.id for i in ledger.items] == [lead_cast.id, bo.id]

    def test_remove_cast_member(self, ledger, lead_cast):
        ada = ledger.add_cast_member(lead_cast.id, "Ada Lane", 800, 5)

        removed = ledger.remove_cast_member(ada.id)

        assert removed.id == ada.id
        assert lead_cast.child_item_ids == []
        assert not lead_cast.has_children
        assert ledger.children_of(lead_cast.id) == []


class TestContacts:
    """Tests for contact linkage."""

    def test_link_and_unlink(self, ledger):
        item = ledger.add_line_item(BudgetLineItem(name="Catering", category="Other"))

        ledger.link_contact(item.id, "v-9", "Vendor")
        assert item.linked_contact_id == "v-9"
        assert item.linked_contact_type == ContactType.VENDOR

        ledger.unlink_contact(item.id)
        assert item.linked_contact_id is None
        assert item.linked_contact_type is None

    def test_link_invalid_type(self, ledger):
        item = ledger.add_line_item(BudgetLineItem(name="Catering", category="Other"))
        with pytest.raises(ValueError):
            ledger.link_contact(item.id, "v-9", "Landlord")


class TestTemplates:
    """Tests for the short-film starter budget."""

    def test_load_short_film(self, ledger):
        ledger.add_line_item(BudgetLineItem(name="Old", category="BTL"))

        count = ledger.load_template("short-film")

        assert count == len(SHORT_FILM_TEMPLATE) == 15
        assert len(ledger.items) == 15
        assert [c.name for c in ledger.categories] == ["Cast", "Crew", "Other"]
        assert ledger.grand_total() == 0

    def test_append(self, ledger):
        ledger.add_line_item(BudgetLineItem(name="Old", category="BTL"))
        ledger.load_template("short-film", replace=False)
        assert len(ledger.items) == 16

    def test_append_keeps_existing_categories(self, ledger):
        gaffer = ledger.add_line_item(
            BudgetLineItem(name="Gaffer", category="Below the Line", unit_cost=500)
        )

        ledger.load_template("short-film", replace=False)

        assert [c.name for c in ledger.categories] == [
            "Above the Line", "Below the Line", "Post-Production", "Other", "Cast", "Crew",
        ]
        assert [c.sort_order for c in ledger.categories] == [0, 1, 2, 3, 4, 5]
        summaries = budget_calculator.category_summary(ledger.items, ledger.categories)
        by_name = {s.category: s for s in summaries}
        assert "Uncategorized" not in by_name
        assert by_name["Below the Line"].total == budget_calculator.item_total(gaffer)

    def test_cast_items_accept_cast_members(self, ledger):
        ledger.load_template()
        lead = next(i for i in ledger.items if i.name == "Lead Cast")

        assert lead.can_have_cast_members
        assert lead.notes == "Add cast members to this category"

    def test_summary_groups_by_section(self, ledger):
        ledger.load_template()
        summaries = budget_calculator.category_summary(ledger.items, ledger.categories)

        assert [(s.category, s.item_count) for s in summaries] == [
            ("Cast", 4),
            ("Crew", 9),
            ("Other", 2),
        ]

    def test_unknown_template(self, ledger):
        with pytest.raises(ValueError, match="Unknown template"):
            ledger.load_template("feature")


class TestPersistence:
    """Tests for saving and loading the ledger."""

    def test_save_and_load(self, ledger, lead_cast, tmp_path):
        ledger.add_cast_member(lead_cast.id, "Ada Lane", 800, 5)

        path = ledger.save()
        loaded = BudgetLedger.load(path)

        assert path == tmp_path / "budget.json"
        assert len(loaded.items) == 2
        assert loaded.get(lead_cast.id).child_item_ids == lead_cast.child_item_ids
        assert loaded.grand_total() == 4000

    def test_load_missing_file_is_empty(self, tmp_path):
        ledger = BudgetLedger.load(tmp_path / "missing.json")
        assert ledger.items == []

    def test_save_without_path(self):
        with pytest.raises(ValueError, match="No ledger path"):
            BudgetLedger().save()

    def test_save_to_explicit_path(self, tmp_path):
        ledger = BudgetLedger()
        ledger.add_line_item(BudgetLineItem(name="A", category="BTL"))

        path = ledger.save(tmp_path / "elsewhere.json")

        assert path.exists()
