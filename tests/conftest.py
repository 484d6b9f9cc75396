from __future__ import annotations

import pytest

from support import DEADLINE, MANAGER, WEEK_START, build_world


@pytest.fixture
def world():
    return build_world()


@pytest.fixture
def week(world):
    return world.schedules.create_week_schedule(actor=MANAGER, week_start=WEEK_START, request_deadline=DEADLINE)
