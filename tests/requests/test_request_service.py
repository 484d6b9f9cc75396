from __future__ import annotations

from datetime import date, datetime

import pytest

from shift_roster.core.enums import ShiftRequestStatus, ShiftRequestType
from shift_roster.core.exceptions import (
    AuthorizationError,
    ConflictError,
    DeadlinePassedError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from shift_roster.database.memory import MemoryRequestRepository
from shift_roster.requests.model import RequestPatch
from shift_roster.requests.service import RequestService
from shift_roster.shifts.model import FilledShift, PlaceholderShift

from support import EVE, ERIK, GM, MANAGER, NORA, OTTO, CEO, at, race

TUESDAY = date(2025, 10, 7)


def _specific(world, week, actor=EVE, day=7, start=9, end=17, **kwargs):
    return world.requests.submit(
        actor=actor,
        week_schedule_id=week.schedule_id,
        request_type=ShiftRequestType.SPECIFIC_TIME,
        work_date=date(2025, 10, day),
        preferred_start=at(day, start),
        preferred_end=at(day, end),
        **kwargs,
    )


# -------- submit --------
def test_submit_specific_time_request(world, week):
    request = _specific(world, week, notes="  morning please ")

    assert request.status == ShiftRequestStatus.PENDING
    assert request.preferred.label() == "09:00 - 17:00"
    assert request.requested_hours == 8
    assert request.notes == "morning please"
    assert request.vacation_days is None


def test_available_all_day_ignores_times(world, week):
    request = world.requests.submit(
        actor=EVE,
        week_schedule_id=week.schedule_id,
        request_type=ShiftRequestType.AVAILABLE_ALL_DAY,
        work_date=TUESDAY,
        preferred_start=at(7, 9),
        preferred_end=at(7, 17),
    )
    assert request.preferred is None


def test_time_off_defaults_to_one_vacation_day(world, week):
    request = world.requests.submit(
        actor=EVE, week_schedule_id=week.schedule_id, request_type=ShiftRequestType.TIME_OFF, work_date=TUESDAY
    )
    assert request.vacation_days == 1


def test_specific_time_needs_both_times(world, week):
    with pytest.raises(ValidationError):
        world.requests.submit(
            actor=EVE,
            week_schedule_id=week.schedule_id,
            request_type=ShiftRequestType.SPECIFIC_TIME,
            work_date=TUESDAY,
        )
    with pytest.raises(ValidationError):
        world.requests.submit(
            actor=EVE,
            week_schedule_id=week.schedule_id,
            request_type=ShiftRequestType.SPECIFIC_TIME,
            work_date=TUESDAY,
            preferred_start=at(7, 9),
        )


def test_preferred_time_must_start_on_the_requested_day(world, week):
    with pytest.raises(ValidationError):
        world.requests.submit(
            actor=EVE,
            week_schedule_id=week.schedule_id,
            request_type=ShiftRequestType.SPECIFIC_TIME,
            work_date=TUESDAY,
            preferred_start=at(8, 9),
            preferred_end=at(8, 17),
        )


def test_date_must_be_inside_the_week(world, week):
    with pytest.raises(ValidationError):
        _specific(world, week, day=13)


def test_submit_after_deadline_is_refused(world, week):
    world.clock.now = datetime(2025, 10, 4, 0, 0)

    with pytest.raises(DeadlinePassedError):
        _specific(world, week)


def test_schedule_without_deadline_stays_open(world):
    schedule = world.schedules.create_week_schedule(actor=MANAGER, week_start=date(2025, 10, 13))
    world.clock.now = datetime(2025, 10, 14, 8, 0)

    request = _specific(world, schedule, day=15)

    assert request.week_schedule_id == schedule.schedule_id


def test_unknown_schedule(world):
    with pytest.raises(NotFoundError):
        world.requests.submit(
            actor=EVE, week_schedule_id=999, request_type=ShiftRequestType.TIME_OFF, work_date=TUESDAY
        )


def test_only_active_employees_with_positions_can_submit(world, week):
    with pytest.raises(AuthorizationError):
        _specific(world, week, actor=NORA)
    with pytest.raises(AuthorizationError):
        _specific(world, week, actor=OTTO)


def test_second_active_request_for_same_day_conflicts(world, week):
    _specific(world, week)

    with pytest.raises(ConflictError):
        _specific(world, week, start=18, end=22)


def test_time_off_cannot_be_combined_with_work(world, week):
    world.requests.submit(
        actor=EVE, week_schedule_id=week.schedule_id, request_type=ShiftRequestType.TIME_OFF, work_date=TUESDAY
    )

    with pytest.raises(ConflictError) as excinfo:
        _specific(world, week)
    assert "time off" in str(excinfo.value)


def test_rejected_request_frees_the_day(world, week):
    first = _specific(world, week)
    world.requests.review(actor=GM, request_id=first.request_id, action="reject", reason="Fully staffed")

    again = _specific(world, week, start=12, end=18)

    assert again.request_id != first.request_id


def test_other_users_do_not_conflict(world, week):
    _specific(world, week)
    _specific(world, week, actor=ERIK)

    assert len(world.requests.list_requests(actor=GM, week_schedule_id=week.schedule_id)) == 2


# -------- edit / withdraw --------
def test_edit_moves_request_and_keeps_clock_times(world, week):
    request = _specific(world, week)

    edited = world.requests.edit(actor=EVE, request_id=request.request_id, patch=RequestPatch(work_date=date(2025, 10, 9)))

    assert edited.work_date == date(2025, 10, 9)
    assert edited.preferred.start == at(9, 9)
    assert edited.preferred.end == at(9, 17)
    assert world.container.requests_repo.get_by_id(request.request_id).work_date == date(2025, 10, 9)


def test_edit_to_time_off_drops_times(world, week):
    request = _specific(world, week)

    edited = world.requests.edit(
        actor=EVE, request_id=request.request_id, patch=RequestPatch(request_type=ShiftRequestType.TIME_OFF)
    )

    assert edited.preferred is None
    assert edited.vacation_days == 1


def test_edit_corrects_time_off_day_count(world, week):
    request = world.requests.submit(
        actor=EVE,
        week_schedule_id=week.schedule_id,
        request_type=ShiftRequestType.TIME_OFF,
        work_date=TUESDAY,
        vacation_days=2,
    )

    edited = world.requests.edit(actor=EVE, request_id=request.request_id, patch=RequestPatch(vacation_days=3))

    assert edited.vacation_days == 3
    assert world.container.requests_repo.get_by_id(request.request_id).vacation_days == 3
    with pytest.raises(ValidationError):
        world.requests.edit(actor=EVE, request_id=request.request_id, patch=RequestPatch(vacation_days=0))


def test_edit_into_an_occupied_day_conflicts(world, week):
    _specific(world, week, day=8)
    request = _specific(world, week)

    with pytest.raises(ConflictError):
        world.requests.edit(actor=EVE, request_id=request.request_id, patch=RequestPatch(work_date=date(2025, 10, 8)))


def test_only_owner_can_edit_or_withdraw(world, week):
    request = _specific(world, week)

    with pytest.raises(AuthorizationError):
        world.requests.edit(actor=ERIK, request_id=request.request_id, patch=RequestPatch(notes="mine now"))
    with pytest.raises(AuthorizationError):
        world.requests.withdraw(actor=ERIK, request_id=request.request_id)


def test_reviewed_request_is_frozen_for_employee(world, week):
    request = _specific(world, week)
    world.requests.review(actor=GM, request_id=request.request_id, action="approve")

    with pytest.raises(InvalidStateError):
        world.requests.edit(actor=EVE, request_id=request.request_id, patch=RequestPatch(notes="later"))
    with pytest.raises(InvalidStateError):
        world.requests.withdraw(actor=EVE, request_id=request.request_id)


def test_edit_after_deadline_is_refused(world, week):
    request = _specific(world, week)
    world.clock.now = datetime(2025, 10, 5, 9, 0)

    with pytest.raises(DeadlinePassedError):
        world.requests.edit(actor=EVE, request_id=request.request_id, patch=RequestPatch(notes="late"))


def test_withdraw_deletes_pending_request(world, week):
    request = _specific(world, week)

    world.requests.withdraw(actor=EVE, request_id=request.request_id)

    assert world.container.requests_repo.get_by_id(request.request_id) is None
    with pytest.raises(NotFoundError):
        world.requests.withdraw(actor=EVE, request_id=request.request_id)


# -------- review --------
def test_scenario_submit_and_approve(world, week):
    request = _specific(world, week)

    approved = world.requests.review(actor=GM, request_id=request.request_id, action="APPROVE")

    assert approved.status == ShiftRequestStatus.APPROVED
    assert approved.reviewed_by == GM.user_id
    assert approved.reviewed_at == world.clock.now
    assert approved.rejection_reason is None
    # approval alone places nothing on the roster
    assert world.container.shifts_repo.list_filled_for_user_and_date(user_id=EVE.user_id, work_date=TUESDAY) == []


def test_managers_and_employees_cannot_review(world, week):
    request = _specific(world, week)

    for actor in (MANAGER, EVE):
        with pytest.raises(AuthorizationError):
            world.requests.review(actor=actor, request_id=request.request_id, action="approve")


def test_reject_requires_a_reason(world, week):
    request = _specific(world, week)

    with pytest.raises(ValidationError):
        world.requests.review(actor=GM, request_id=request.request_id, action="reject", reason="  ")

    rejected = world.requests.review(actor=GM, request_id=request.request_id, action="reject", reason="No budget")
    assert rejected.status == ShiftRequestStatus.REJECTED
    assert rejected.rejection_reason == "No budget"


def test_unknown_review_action(world, week):
    request = _specific(world, week)

    with pytest.raises(ValidationError):
        world.requests.review(actor=GM, request_id=request.request_id, action="maybe")


def test_second_review_is_refused(world, week):
    request = _specific(world, week)
    world.requests.review(actor=GM, request_id=request.request_id, action="approve")

    with pytest.raises(InvalidStateError):
        world.requests.review(actor=CEO, request_id=request.request_id, action="reject", reason="Changed my mind")


def test_review_after_deadline_is_allowed(world, week):
    request = _specific(world, week)
    world.clock.now = datetime(2025, 10, 5, 9, 0)

    assert world.requests.review(actor=GM, request_id=request.request_id, action="approve").status == (
        ShiftRequestStatus.APPROVED
    )


def test_approving_time_off_marks_it_deducted(world, week):
    request = world.requests.submit(
        actor=EVE,
        week_schedule_id=week.schedule_id,
        request_type=ShiftRequestType.TIME_OFF,
        work_date=TUESDAY,
        vacation_days=2,
    )

    approved = world.requests.review(actor=CEO, request_id=request.request_id, action="approve")

    assert approved.deducted_from_balance is True
    assert approved.vacation_days == 2


def test_review_missing_request(world):
    with pytest.raises(NotFoundError):
        world.requests.review(actor=GM, request_id=404, action="approve")


# -------- convert --------
def test_scenario_convert_approved_request(world, week):
    request = _specific(world, week)
    world.requests.review(actor=GM, request_id=request.request_id, action="approve")
    placeholder = world.container.shifts_repo.find_placeholder(
        week_schedule_id=week.schedule_id, user_id=EVE.user_id, work_date=TUESDAY
    )

    shift = world.requests.convert(
        actor=GM, request_id=request.request_id, position_id=2, start=at(7, 10), end=at(7, 16)
    )

    assert isinstance(shift, FilledShift)
    assert shift.shift_id == placeholder.shift_id
    assert shift.shift_request_id == request.request_id
    assert shift.position_id == 2
    assert shift.hours_worked == 6

    stored = world.container.requests_repo.get_by_id(request.request_id)
    assert stored.status == ShiftRequestStatus.CONVERTED_TO_SHIFT
    assert stored.position_id == 2


def test_pending_request_can_be_converted_directly(world, week):
    request = _specific(world, week)

    world.requests.convert(actor=CEO, request_id=request.request_id, position_id=1, start=at(7, 9), end=at(7, 17))

    assert world.container.requests_repo.get_by_id(request.request_id).status == (
        ShiftRequestStatus.CONVERTED_TO_SHIFT
    )


def test_time_off_cannot_be_converted(world, week):
    request = world.requests.submit(
        actor=EVE, week_schedule_id=week.schedule_id, request_type=ShiftRequestType.TIME_OFF, work_date=TUESDAY
    )
    world.requests.review(actor=GM, request_id=request.request_id, action="approve")

    with pytest.raises(InvalidStateError):
        world.requests.convert(actor=GM, request_id=request.request_id, position_id=1, start=at(7, 9), end=at(7, 17))


def test_rejected_or_converted_request_cannot_be_converted(world, week):
    rejected = _specific(world, week)
    world.requests.review(actor=GM, request_id=rejected.request_id, action="reject", reason="No")
    with pytest.raises(InvalidStateError):
        world.requests.convert(actor=GM, request_id=rejected.request_id, position_id=1, start=at(7, 9), end=at(7, 17))

    converted = _specific(world, week, day=8)
    world.requests.convert(actor=GM, request_id=converted.request_id, position_id=1, start=at(8, 9), end=at(8, 12))
    with pytest.raises(InvalidStateError):
        world.requests.convert(actor=GM, request_id=converted.request_id, position_id=1, start=at(8, 13), end=at(8, 17))


def test_convert_requires_a_position_the_employee_holds(world, week):
    request = _specific(world, week, actor=ERIK)

    with pytest.raises(ValidationError):
        world.requests.convert(actor=GM, request_id=request.request_id, position_id=1, start=at(7, 9), end=at(7, 17))
    with pytest.raises(ValidationError):
        world.requests.convert(actor=GM, request_id=request.request_id, position_id=None, start=at(7, 9), end=at(7, 17))
    with pytest.raises(ValidationError):
        world.requests.convert(actor=GM, request_id=request.request_id, position_id=2, start=None, end=None)


def test_manager_cannot_convert(world, week):
    request = _specific(world, week)

    with pytest.raises(AuthorizationError):
        world.requests.convert(
            actor=MANAGER, request_id=request.request_id, position_id=1, start=at(7, 9), end=at(7, 17)
        )


def test_overlapping_conversion_leaves_request_untouched(world, week):
    world.schedules.place_shift(
        actor=GM, week_schedule_id=week.schedule_id, user_id=EVE.user_id, work_date=TUESDAY,
        position_id=1, start=at(7, 8), end=at(7, 12),
    )
    request = _specific(world, week)

    with pytest.raises(ConflictError):
        world.requests.convert(actor=GM, request_id=request.request_id, position_id=1, start=at(7, 11), end=at(7, 15))

    assert world.container.requests_repo.get_by_id(request.request_id).status == ShiftRequestStatus.PENDING
    assert len(world.container.shifts_repo.list_filled_for_user_and_date(user_id=EVE.user_id, work_date=TUESDAY)) == 1


class _LosingRequestRepository(MemoryRequestRepository):
    """Another reviewer rejects the request right before the conversion is stored."""

    def transition(self, *, request_id, to_status, **kwargs):
        if to_status == ShiftRequestStatus.CONVERTED_TO_SHIFT:
            super().transition(
                request_id=request_id,
                from_statuses={ShiftRequestStatus.PENDING},
                to_status=ShiftRequestStatus.REJECTED,
                rejection_reason="Rejected elsewhere",
            )
        return super().transition(request_id=request_id, to_status=to_status, **kwargs)


def test_lost_status_race_rolls_back_the_shift(world, week):
    request = _specific(world, week)
    c = world.container
    racing = RequestService(
        _LosingRequestRepository(world.db),
        c.schedules_repo,
        c.users_repo,
        c.schedule_service,
        locks=c.locks,
        clock=world.clock,
    )

    with pytest.raises(InvalidStateError):
        racing.convert(actor=GM, request_id=request.request_id, position_id=1, start=at(7, 9), end=at(7, 17))

    restored = c.shifts_repo.find_placeholder(week_schedule_id=week.schedule_id, user_id=EVE.user_id, work_date=TUESDAY)
    assert isinstance(restored, PlaceholderShift)
    assert c.shifts_repo.list_filled_for_user_and_date(user_id=EVE.user_id, work_date=TUESDAY) == []
    assert c.requests_repo.get_by_id(request.request_id).status == ShiftRequestStatus.REJECTED


def test_conversion_without_placeholder_inserts_and_rolls_back_by_deleting(world, week):
    request = _specific(world, week)
    c = world.container
    placeholder = c.shifts_repo.find_placeholder(
        week_schedule_id=week.schedule_id, user_id=EVE.user_id, work_date=TUESDAY
    )
    c.shifts_repo.delete(shift_id=placeholder.shift_id)
    before = len(c.shifts_repo.list_for_schedule(week.schedule_id))
    racing = RequestService(
        _LosingRequestRepository(world.db), c.schedules_repo, c.users_repo, c.schedule_service, clock=world.clock
    )

    with pytest.raises(InvalidStateError):
        racing.convert(actor=GM, request_id=request.request_id, position_id=1, start=at(7, 9), end=at(7, 17))

    assert len(c.shifts_repo.list_for_schedule(week.schedule_id)) == before


# -------- queries --------
def test_employees_only_see_their_own_requests(world, week):
    mine = _specific(world, week)
    theirs = _specific(world, week, actor=ERIK)

    assert [r.request_id for r in world.requests.list_requests(actor=EVE, user_id=ERIK.user_id)] == [mine.request_id]
    with pytest.raises(AuthorizationError):
        world.requests.get_request(actor=EVE, request_id=theirs.request_id)
    assert world.requests.get_request(actor=GM, request_id=theirs.request_id).user_id == ERIK.user_id


def test_list_filters_by_status_and_type(world, week):
    a = _specific(world, week)
    world.requests.submit(
        actor=EVE, week_schedule_id=week.schedule_id, request_type=ShiftRequestType.TIME_OFF, work_date=date(2025, 10, 8)
    )
    world.requests.review(actor=GM, request_id=a.request_id, action="approve")

    approved = world.requests.list_requests(actor=GM, status=ShiftRequestStatus.APPROVED)
    time_off = world.requests.list_requests(actor=GM, request_type=ShiftRequestType.TIME_OFF)

    assert [r.request_id for r in approved] == [a.request_id]
    assert [r.work_date for r in time_off] == [date(2025, 10, 8)]


# -------- concurrency --------
def test_concurrent_approvals_only_one_wins(world, week):
    request = _specific(world, week)

    results, errors = race(
        lambda: world.requests.review(actor=GM, request_id=request.request_id, action="approve"),
        lambda: world.requests.review(actor=CEO, request_id=request.request_id, action="approve"),
    )

    assert len(results) == 1
    assert [type(e) for e in errors] == [InvalidStateError]
    assert results[0].status == ShiftRequestStatus.APPROVED


def test_conversion_racing_a_manual_placement_keeps_one_shift(world, week):
    request = _specific(world, week)

    results, errors = race(
        lambda: world.requests.convert(
            actor=GM, request_id=request.request_id, position_id=1, start=at(7, 9), end=at(7, 17)
        ),
        lambda: world.schedules.place_shift(
            actor=CEO,
            week_schedule_id=week.schedule_id,
            user_id=EVE.user_id,
            work_date=TUESDAY,
            position_id=2,
            start=at(7, 12),
            end=at(7, 20),
        ),
    )

    assert len(results) == 1
    assert [type(e) for e in errors] == [ConflictError]
    tuesday = [
        s
        for s in world.container.shifts_repo.list_for_schedule(week.schedule_id)
        if s.user_id == EVE.user_id and s.work_date == TUESDAY
    ]
    assert len(tuesday) == 1
    assert isinstance(tuesday[0], FilledShift)

    expected = (
        ShiftRequestStatus.CONVERTED_TO_SHIFT
        if results[0].shift_request_id == request.request_id
        else ShiftRequestStatus.PENDING
    )
    assert world.container.requests_repo.get_by_id(request.request_id).status == expected
