"""Tests for the one-liner builder - day splitting and calendar advancement."""

import datetime as dt

from conftest import day_break, make_scene, off_day

from production_runner.models import Scene
from production_runner.services.one_liner_builder import OneLinerBuilder, build_one_liner


class TestDaySplitting:
    """Tests for grouping scenes into shoot days."""

    def test_single_day(self, start_date):
        schedule = build_one_liner(
            [make_scene("1"), make_scene("2")], start_date, "Night Shift"
        )

        assert schedule.production_name == "Night Shift"
        assert len(schedule.days) == 1
        assert schedule.days[0].day_number == 1
        assert schedule.days[0].date == start_date
        assert [i.scene_number for i in schedule.days[0].items] == ["1", "2"]

    def test_break_splits_days(self, start_date):
        scenes = [make_scene("1"), make_scene("2"), day_break(), make_scene("3")]

        schedule = build_one_liner(scenes, start_date, "Test")

        assert [d.day_number for d in schedule.days] == [1, 2]
        assert [d.date for d in schedule.days] == [start_date, start_date + dt.timedelta(days=1)]
        assert [i.scene_number for i in schedule.days[1].items] == ["3"]

    def test_scene_order_is_preserved(self, start_date):
        scenes = [make_scene("9"), make_scene("2"), make_scene("5A")]

        schedule = build_one_liner(scenes, start_date, "Test")

        assert [i.scene_number for i in schedule.days[0].items] == ["9", "2", "5A"]

    def test_trailing_break_adds_no_day(self, start_date):
        schedule = build_one_liner([make_scene("1"), day_break()], start_date, "Test")
        assert len(schedule.days) == 1

    def test_empty_input(self, start_date):
        schedule = build_one_liner([], start_date, "Test")

        assert schedule.days == []
        assert schedule.total_scenes == 0
        assert schedule.total_pages == "0"


class TestEmptyDaySuppression:
    """Consecutive breaks never produce empty days or numbering gaps."""

    def test_consecutive_breaks(self, start_date):
        scenes = [make_scene("1"), day_break(), day_break(), make_scene("2")]

        schedule = build_one_liner(scenes, start_date, "Test")

        assert [d.day_number for d in schedule.days] == [1, 2]
        assert all(d.items for d in schedule.days)
        # Each break still advances the calendar.
        assert schedule.days[1].date == start_date + dt.timedelta(days=2)

    def test_leading_break(self, start_date):
        schedule = build_one_liner([day_break(), make_scene("1")], start_date, "Test")

        assert len(schedule.days) == 1
        assert schedule.days[0].day_number == 1
        assert schedule.days[0].date == start_date + dt.timedelta(days=1)

    def test_breaks_around_scenes(self, start_date):
        scenes = [day_break(), make_scene("A"), day_break(), day_break(), make_scene("B")]

        schedule = build_one_liner(scenes, start_date, "Test")

        assert [d.day_number for d in schedule.days] == [1, 2]
        assert [[i.scene_number for i in d.items] for d in schedule.days] == [["A"], ["B"]]

    def test_only_breaks(self, start_date):
        schedule = build_one_liner([day_break(), day_break()], start_date, "Test")
        assert schedule.days == []


class TestOffDays:
    """Off-day strips advance the calendar without ending a day."""

    def test_off_day_between_days(self, start_date):
        scenes = [make_scene("1"), day_break(), off_day(), make_scene("2")]

        schedule = build_one_liner(scenes, start_date, "Test")

        assert [d.day_number for d in schedule.days] == [1, 2]
        assert schedule.days[1].date == start_date + dt.timedelta(days=2)

    def test_weekend_of_off_days(self, start_date):
        scenes = [make_scene("1"), day_break(), off_day(), off_day(), make_scene("2")]

        schedule = build_one_liner(scenes, start_date, "Test")

        assert schedule.days[1].date == start_date + dt.timedelta(days=3)

    def test_off_day_inside_a_day_does_not_split(self, start_date):
        scenes = [make_scene("1"), off_day(), make_scene("2")]

        schedule = build_one_liner(scenes, start_date, "Test")

        assert len(schedule.days) == 1
        assert [i.scene_number for i in schedule.days[0].items] == ["1", "2"]
        # The day takes the date reached when it is closed.
        assert schedule.days[0].date == start_date + dt.timedelta(days=1)


class TestItems:
    """Tests for scene-to-item conversion during a build."""

    def test_unnumbered_scenes_are_skipped(self, start_date):
        scenes = [make_scene("1"), Scene(heading="INT. HALL - DAY"), make_scene("2")]

        schedule = build_one_liner(scenes, start_date, "Test")

        assert schedule.total_scenes == 2

    def test_item_fields(self, start_date):
        scene = make_scene(
            "14", heading="EXT. PIER - NIGHT", eighths=11, cast="1, 3", location="Santa Monica"
        )

        item = build_one_liner([scene], start_date, "Test").days[0].items[0]

        assert item.int_ext == "EXT"
        assert item.set_description == "PIER"
        assert item.day_night == "NIGHT"
        assert item.pages == "1 3/8"
        assert item.cast == "1, 3"
        assert item.location == "Santa Monica"

    def test_page_totals(self, start_date):
        scenes = [make_scene("1", eighths=5), make_scene("2", eighths=7), day_break(),
                  make_scene("3", eighths=3)]

        schedule = build_one_liner(scenes, start_date, "Test")

        assert schedule.days[0].total_pages_label == "1 4/8 pgs"
        assert schedule.days[1].total_pages_label == "3/8 pgs"
        assert schedule.total_pages == "1 7/8"


class TestCustomPredicates:
    """Tests for caller-supplied break and off-day predicates."""

    def test_builder_level_predicate(self, start_date):
        builder = OneLinerBuilder(is_day_break=lambda s: s.heading == "END OF DAY")
        scenes = [make_scene("1"), Scene(heading="END OF DAY"), make_scene("2")]

        schedule = builder.build(scenes, start_date, "Test")

        assert len(schedule.days) == 2

    def test_per_call_override(self, start_date):
        builder = OneLinerBuilder()
        scenes = [make_scene("1"), make_scene("2", notes="OFF"), make_scene("3")]

        schedule = builder.build(
            scenes, start_date, "Test", is_off_day=lambda s: s.notes == "OFF"
        )

        assert schedule.total_scenes == 2
        assert schedule.days[0].date == start_date + dt.timedelta(days=1)
