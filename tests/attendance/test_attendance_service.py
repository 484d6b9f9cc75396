from __future__ import annotations

from datetime import date
from fractions import Fraction

import pytest

from shift_roster.attendance.service import parse_attendance_status
from shift_roster.core.enums import AttendanceStatus
from shift_roster.core.exceptions import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    TooEarlyError,
    ValidationError,
)

from support import EVE, GM, MANAGER, at

TUESDAY = date(2025, 10, 7)


@pytest.fixture
def shift(world, week):
    return world.schedules.place_shift(
        actor=GM, week_schedule_id=week.schedule_id, user_id=EVE.user_id, work_date=TUESDAY,
        position_id=1, start=at(7, 9), end=at(7, 16),
    )


def test_recording_before_the_shift_ended_is_too_early(world, shift):
    world.clock.now = at(7, 15)
    with pytest.raises(TooEarlyError):
        world.attendance.record(actor=GM, shift_id=shift.shift_id, status="SICK")

    world.clock.now = at(7, 16)
    with pytest.raises(TooEarlyError):
        world.attendance.record(actor=GM, shift_id=shift.shift_id, status="SICK")


def test_present_records_actual_hours(world, shift):
    world.clock.now = at(7, 16, 1)

    record = world.attendance.record(
        actor=GM,
        shift_id=shift.shift_id,
        status="present",
        actual_start=at(7, 9, 5),
        actual_end=at(7, 16, 10),
        notes=" traffic ",
    )

    assert record.status == AttendanceStatus.PRESENT
    assert record.exact_hours == Fraction(85, 12)
    assert record.actual_hours_worked == pytest.approx(7.0833, abs=1e-4)
    assert record.recorded_by == GM.user_id
    assert record.recorded_at == at(7, 16, 1)
    assert record.notes == "traffic"
    assert world.attendance.get_for_shift(shift_id=shift.shift_id) == record


def test_present_needs_actual_times(world, shift):
    world.clock.now = at(8, 8)

    with pytest.raises(ValidationError):
        world.attendance.record(actor=GM, shift_id=shift.shift_id, status=AttendanceStatus.PRESENT)
    with pytest.raises(ValidationError):
        world.attendance.record(
            actor=GM, shift_id=shift.shift_id, status=AttendanceStatus.PRESENT, actual_start=at(7, 9)
        )
    with pytest.raises(ValidationError):
        world.attendance.record(
            actor=GM,
            shift_id=shift.shift_id,
            status=AttendanceStatus.PRESENT,
            actual_start=at(7, 16),
            actual_end=at(7, 9),
        )


def test_sick_and_absent_count_zero_hours(world, shift):
    world.clock.now = at(8, 8)

    record = world.attendance.record(
        actor=GM, shift_id=shift.shift_id, status="ABSENT", actual_start=at(7, 9), actual_end=at(7, 16)
    )

    assert record.actual is None
    assert record.exact_hours == 0


def test_recording_again_replaces_the_record(world, shift):
    world.clock.now = at(8, 8)
    first = world.attendance.record(actor=GM, shift_id=shift.shift_id, status="SICK")

    second = world.attendance.record(
        actor=GM, shift_id=shift.shift_id, status="PRESENT", actual_start=at(7, 9), actual_end=at(7, 12)
    )

    assert second.record_id == first.record_id
    assert second.actual_hours_worked == 3
    assert len(world.db.attendance) == 1


def test_placeholder_shift_cannot_be_recorded(world, week):
    world.clock.now = at(20, 8)
    placeholder = world.container.shifts_repo.find_placeholder(
        week_schedule_id=week.schedule_id, user_id=EVE.user_id, work_date=TUESDAY
    )

    with pytest.raises(InvalidStateError):
        world.attendance.record(actor=GM, shift_id=placeholder.shift_id, status="SICK")


def test_only_reviewers_record_attendance(world, shift):
    world.clock.now = at(8, 8)

    for actor in (MANAGER, EVE):
        with pytest.raises(AuthorizationError):
            world.attendance.record(actor=actor, shift_id=shift.shift_id, status="SICK")


def test_unknown_shift_and_status(world, shift):
    world.clock.now = at(8, 8)

    with pytest.raises(NotFoundError):
        world.attendance.record(actor=GM, shift_id=9999, status="SICK")
    with pytest.raises(ValidationError):
        world.attendance.record(actor=GM, shift_id=shift.shift_id, status="LATE")


def test_parse_attendance_status_accepts_members_and_any_case():
    assert parse_attendance_status(AttendanceStatus.SICK) is AttendanceStatus.SICK
    assert parse_attendance_status(" absent ") is AttendanceStatus.ABSENT
    with pytest.raises(ValidationError):
        parse_attendance_status(None)


def test_list_unrecorded_returns_ended_shifts_without_record(world, week, shift):
    later = world.schedules.place_shift(
        actor=GM, week_schedule_id=week.schedule_id, user_id=EVE.user_id, work_date=date(2025, 10, 9),
        position_id=1, start=at(9, 9), end=at(9, 17),
    )
    world.clock.now = at(8, 8)

    assert [s.shift_id for s in world.attendance.list_unrecorded(actor=GM, week_schedule_id=week.schedule_id)] == [
        shift.shift_id
    ]

    world.attendance.record(actor=GM, shift_id=shift.shift_id, status="SICK")
    world.clock.now = at(10, 8)

    unrecorded = world.attendance.list_unrecorded(actor=GM, week_schedule_id=week.schedule_id)
    assert [s.shift_id for s in unrecorded] == [later.shift_id]

    with pytest.raises(AuthorizationError):
        world.attendance.list_unrecorded(actor=EVE, week_schedule_id=week.schedule_id)
