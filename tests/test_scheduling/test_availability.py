"""Tests for availability resolution and booking conflicts."""

from datetime import date, datetime, timezone

import pytest

from medecho.scheduling import AppointmentStatus, BlockedSlot, WorkingRange, is_bookable, resolve
from medecho.scheduling.clock import CalendarPolicy, parse_date

MONDAY = "2024-06-03"
TUESDAY = "2024-06-04"


def _block(date=MONDAY, start=None, end=None, block_id="b1"):
    if start is None:
        return BlockedSlot(id=block_id, date=date, reason="Conference", is_all_day=True)
    return BlockedSlot(
        id=block_id,
        date=date,
        reason="Meeting",
        is_all_day=False,
        range=WorkingRange(start=start, end=end),
    )


class TestIsBookable:
    def test_free_slot(self, make_appointment):
        assert is_bookable("d1", MONDAY, "10:00", [make_appointment("09:30")])

    def test_taken_slot(self, make_appointment):
        assert not is_bookable("d1", MONDAY, "09:30", [make_appointment("09:30")])

    def test_cancelled_does_not_block(self, make_appointment):
        cancelled = make_appointment("09:30", status=AppointmentStatus.CANCELLED)
        assert is_bookable("d1", MONDAY, "09:30", [cancelled])

    def test_completed_still_blocks(self, make_appointment):
        done = make_appointment("09:30", status=AppointmentStatus.COMPLETED)
        assert not is_bookable("d1", MONDAY, "09:30", [done])

    def test_other_provider_or_date(self, make_appointment):
        booked = [make_appointment("09:30", provider_id="d2"), make_appointment("09:30", date=TUESDAY)]
        assert is_bookable("d1", MONDAY, "09:30", booked)

    def test_unpadded_time_matches(self, make_appointment):
        assert not is_bookable("d1", MONDAY, "9:30", [make_appointment("09:30")])

    def test_third_request_after_double_create(self, make_appointment):
        """Two stored duplicates still leave the slot unbookable."""
        booked = [
            make_appointment("10:00", appointment_id="a-1"),
            make_appointment("10:00", appointment_id="a-2"),
        ]
        assert not is_bookable("d1", MONDAY, "10:00", booked)


class TestResolve:
    def test_active_day(self, monday_profile):
        assert resolve(MONDAY, monday_profile, []) == [
            "09:00", "09:30", "10:00", "10:30", "11:00", "11:30",
        ]

    def test_inactive_day_with_ranges(self, make_profile):
        profile = make_profile(day_ranges={2: [("09:00", "12:00")]}, active_days=(1,))
        assert resolve(TUESDAY, profile, []) == []

    def test_missing_profile(self):
        assert resolve(MONDAY, None, []) == []

    @pytest.mark.parametrize("value", ["03/06/2024", "20240603", "2024-W23-1", "2024-6-3", " 2024-06-03"])
    def test_bad_date(self, monday_profile, value):
        assert resolve(value, monday_profile, []) == []

    def test_compact_date_does_not_skip_blackout(self, make_profile):
        profile = make_profile(blocked_slots=[_block()])
        assert resolve("20240603", profile, []) == []

    def test_all_day_blackout(self, make_profile):
        profile = make_profile(
            day_ranges={1: [("08:00", "12:00"), ("13:00", "18:00")]},
            blocked_slots=[_block()],
        )
        assert resolve(MONDAY, profile, []) == []

    def test_blackout_on_other_date_ignored(self, make_profile):
        profile = make_profile(blocked_slots=[_block(date="2024-06-10")])
        assert len(resolve(MONDAY, profile, [])) == 6

    def test_partial_blackout_boundaries(self, make_profile):
        profile = make_profile(blocked_slots=[_block(start="10:00", end="11:00")])
        assert resolve(MONDAY, profile, []) == ["09:00", "09:30", "11:00", "11:30"]

    def test_two_timed_blackouts_same_date(self, make_profile):
        profile = make_profile(
            blocked_slots=[
                _block(start="10:00", end="10:30", block_id="b1"),
                _block(start="11:00", end="11:30", block_id="b2"),
            ]
        )
        assert resolve(MONDAY, profile, []) == ["09:00", "09:30", "10:30", "11:30"]

    def test_timed_and_all_day_blackout_same_date(self, make_profile):
        profile = make_profile(
            blocked_slots=[_block(start="10:00", end="10:30", block_id="b1"), _block(block_id="b2")]
        )
        assert resolve(MONDAY, profile, []) == []

    def test_timed_blackout_with_blank_time_blocks_nothing(self, make_profile):
        profile = make_profile(blocked_slots=[_block(start="", end="11:00")])
        assert len(resolve(MONDAY, profile, [])) == 6

    def test_ranges_concatenated_in_declaration_order(self, make_profile):
        profile = make_profile(day_ranges={1: [("15:00", "16:00"), ("09:00", "10:00")]})
        assert resolve(MONDAY, profile, []) == ["15:00", "15:30", "09:00", "09:30"]

    def test_overlapping_ranges_keep_duplicates(self, make_profile):
        profile = make_profile(day_ranges={1: [("09:00", "10:00"), ("09:30", "10:30")]})
        assert resolve(MONDAY, profile, []) == ["09:00", "09:30", "09:30", "10:00"]

    def test_invalid_range_skipped(self, make_profile):
        profile = make_profile(day_ranges={1: [("12:00", "09:00"), ("14:00", "15:00")]})
        assert resolve(MONDAY, profile, []) == ["14:00", "14:30"]

    def test_cancelled_appointment_frees_slot(self, monday_profile, make_appointment):
        booked = [make_appointment("09:30", status=AppointmentStatus.CANCELLED)]
        assert "09:30" in resolve(MONDAY, monday_profile, booked)

    def test_end_to_end_scenario(self, make_profile, make_appointment):
        profile = make_profile(blocked_slots=[_block(start="10:00", end="10:30")])
        booked = [make_appointment("09:30")]
        assert resolve(MONDAY, profile, booked) == ["09:00", "10:30", "11:00", "11:30"]

    @pytest.mark.parametrize("tz", ["UTC", "Pacific/Auckland", "America/Los_Angeles"])
    def test_weekday_independent_of_timezone(self, monday_profile, tz):
        calendar = CalendarPolicy(tz=tz)
        assert resolve(MONDAY, monday_profile, [], calendar=calendar)

    def test_custom_step(self, monday_profile):
        assert resolve(MONDAY, monday_profile, [], step_minutes=60) == ["09:00", "10:00", "11:00"]


class TestCalendarPolicy:
    def test_day_index_sunday_zero(self):
        calendar = CalendarPolicy()
        assert calendar.day_index("2024-06-02") == 0
        assert calendar.day_index(MONDAY) == 1
        assert calendar.day_index("2024-06-08") == 6

    def test_day_index_invalid(self):
        assert CalendarPolicy().day_index("2024-13-01") is None

    @pytest.mark.parametrize("value", ["20240603", "2024-W23-1", "2024-06-03T00:00", "", None])
    def test_parse_date_only_accepts_iso_calendar_dates(self, value):
        assert parse_date(value) is None

    def test_parse_date(self):
        assert parse_date(MONDAY) == date(2024, 6, 3)

    def test_today_uses_clinic_timezone(self):
        # 23:30 UTC on Sunday is already Monday in Auckland
        fixed = datetime(2024, 6, 2, 23, 30, tzinfo=timezone.utc)
        assert CalendarPolicy(clock=lambda: fixed).today() == "2024-06-02"
        assert CalendarPolicy(tz="Pacific/Auckland", clock=lambda: fixed).today() == "2024-06-03"

    def test_naive_clock_treated_as_utc(self):
        calendar = CalendarPolicy(clock=lambda: datetime(2024, 6, 3, 8, 0))
        assert calendar.now().tzinfo is not None
        assert calendar.today() == MONDAY

    def test_starts_at(self):
        starts = CalendarPolicy().starts_at(MONDAY, 9 * 60 + 30)
        assert starts == datetime(2024, 6, 3, 9, 30, tzinfo=timezone.utc)
