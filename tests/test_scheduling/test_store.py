"""Tests for schedule template and blackout editing."""

import logging

import pytest

from medecho.scheduling import ProviderAvailabilityProfile, WorkingRange
from medecho.scheduling import store


@pytest.fixture
def profile():
    """Default template: 09:00-17:00 every day, Monday to Friday active."""
    return ProviderAvailabilityProfile(provider_id="d1")


class TestProfileModel:
    def test_default_week(self, profile):
        assert [d.day_index for d in profile.schedules] == list(range(7))
        assert [d.is_active for d in profile.schedules] == [False, True, True, True, True, True, False]
        assert all(d.ranges == [WorkingRange(start="09:00", end="17:00")] for d in profile.schedules)

    def test_missing_days_filled_and_duplicates_dropped(self):
        profile = ProviderAvailabilityProfile.model_validate(
            {
                "provider_id": "d1",
                "schedules": [
                    {"day_index": 3, "ranges": [{"start": "08:00", "end": "10:00"}], "is_active": True},
                    {"day_index": 3, "ranges": [], "is_active": False},
                ],
            }
        )
        assert len(profile.schedules) == 7
        assert profile.day(3).ranges == [WorkingRange(start="08:00", end="10:00")]
        assert profile.day(0).is_active is False

    def test_day_out_of_range(self, profile):
        assert profile.day(7) is None
        assert profile.day(-1) is None


class TestDayEdits:
    def test_set_day_active_returns_new_profile(self, profile):
        updated = store.set_day_active(profile, 6, True)
        assert updated is not profile
        assert updated.day(6).is_active
        assert not profile.day(6).is_active

    def test_activating_rangeless_day_seeds_default(self, make_profile):
        profile = make_profile(day_ranges={1: [("09:00", "12:00")]})
        updated = store.set_day_active(profile, 2, True)
        assert updated.day(2).ranges == [WorkingRange(start="09:00", end="17:00")]

    def test_deactivate_keeps_ranges(self, profile):
        updated = store.set_day_active(profile, 1, False)
        assert not updated.day(1).is_active
        assert updated.day(1).ranges == profile.day(1).ranges

    def test_unknown_day_rejected(self, profile):
        assert store.set_day_active(profile, 9, True) is profile

    def test_add_range(self, profile):
        updated = store.add_range(profile, 1)
        assert len(updated.day(1).ranges) == 2
        assert updated.day(1).ranges[1] == WorkingRange(start="09:00", end="17:00")
        assert len(profile.day(1).ranges) == 1

    def test_remove_range(self, profile):
        two = store.add_range(profile, 1)
        two = store.update_range_field(two, 1, 1, "start", "18:00")
        updated = store.remove_range(two, 1, 0)
        assert updated.day(1).ranges == [WorkingRange(start="18:00", end="17:00")]

    def test_removing_last_range_is_noop(self, profile, caplog):
        with caplog.at_level(logging.DEBUG, logger="medecho.scheduling.store"):
            result = store.remove_range(profile, 1, 0)
        assert result is profile
        assert len(result.day(1).ranges) == 1
        assert "last_range" in caplog.text

    def test_remove_unknown_range(self, profile):
        two = store.add_range(profile, 1)
        assert store.remove_range(two, 1, 5) is two

    def test_update_range_field_keeps_raw_value(self, profile):
        updated = store.update_range_field(profile, 1, 0, "end", "")
        assert updated.day(1).ranges[0].end == ""
        assert updated.day(1).ranges[0].is_valid is False

    def test_update_range_rejects_unknown_field(self, profile):
        assert store.update_range_field(profile, 1, 0, "length", "10") is profile

    def test_update_range_rejects_unknown_index(self, profile):
        assert store.update_range_field(profile, 1, 3, "start", "10:00") is profile


class TestCopyRangesToWeekdays:
    def test_copies_monday_to_weekdays(self, make_profile):
        profile = make_profile(
            day_ranges={1: [("08:00", "12:00")], 6: [("10:00", "11:00")]},
            active_days=(1, 6),
        )
        updated = store.copy_ranges_to_weekdays(profile, 1)

        for idx in range(1, 6):
            assert updated.day(idx).is_active
            assert updated.day(idx).ranges == [WorkingRange(start="08:00", end="12:00")]
        assert updated.day(6) == profile.day(6)
        assert updated.day(0) == profile.day(0)

    def test_copies_are_independent(self, make_profile):
        profile = make_profile(day_ranges={1: [("08:00", "12:00")]})
        updated = store.copy_ranges_to_weekdays(profile, 1)
        edited = store.update_range_field(updated, 2, 0, "end", "13:00")

        assert edited.day(2).ranges[0].end == "13:00"
        assert edited.day(3).ranges[0].end == "12:00"
        assert edited.day(1).ranges[0].end == "12:00"

    def test_empty_source_rejected(self, make_profile):
        profile = make_profile(day_ranges={1: [("08:00", "12:00")]})
        assert store.copy_ranges_to_weekdays(profile, 0) is profile


class TestBlockedSlots:
    def test_add_all_day_block(self, profile):
        blocked = store.new_blocked_slot("2024-06-03", "Conference")
        updated = store.add_blocked_slot(profile, blocked)
        assert [b.id for b in updated.blocked_slots] == [blocked.id]
        assert updated.blocked_slots[0].range is None
        assert profile.blocked_slots == []

    def test_add_timed_block(self, profile):
        blocked = store.new_blocked_slot(
            "2024-06-03", "Surgery", is_all_day=False, start="10:00", end="11:00"
        )
        updated = store.add_blocked_slot(profile, blocked)
        assert updated.blocked_slots[0].range == WorkingRange(start="10:00", end="11:00")

    @pytest.mark.parametrize(
        "date,reason,kwargs",
        [
            ("", "Conference", {}),
            ("2024-6-3", "Conference", {}),
            ("20240603", "Conference", {}),
            ("2024-06-03", "  ", {}),
            ("2024-06-03", "Surgery", {"is_all_day": False, "start": "10:00"}),
            ("2024-06-03", "Surgery", {"is_all_day": False, "end": "11:00"}),
        ],
    )
    def test_incomplete_block_rejected(self, profile, date, reason, kwargs):
        blocked = store.new_blocked_slot(date, reason, **kwargs)
        assert store.add_blocked_slot(profile, blocked) is profile

    def test_duplicate_id_rejected(self, profile):
        blocked = store.new_blocked_slot("2024-06-03", "Conference")
        once = store.add_blocked_slot(profile, blocked)
        assert store.add_blocked_slot(once, blocked) is once

    def test_fresh_ids(self):
        a = store.new_blocked_slot("2024-06-03", "x")
        b = store.new_blocked_slot("2024-06-03", "x")
        assert a.id != b.id

    def test_remove_block(self, profile):
        blocked = store.new_blocked_slot("2024-06-03", "Conference")
        updated = store.remove_blocked_slot(store.add_blocked_slot(profile, blocked), blocked.id)
        assert updated.blocked_slots == []

    def test_remove_unknown_block(self, profile):
        assert store.remove_blocked_slot(profile, "nope") is profile
