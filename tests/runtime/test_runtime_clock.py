from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from lib_closable import runtime
from lib_closable.adapters.clock import FrozenClock, SystemClock
from tests.os_markers import OS_AGNOSTIC

pytestmark = [OS_AGNOSTIC]

START = datetime(2025, 9, 23, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def restore_clock():
    try:
        yield
    finally:
        runtime.reset_clock()


def test_default_clock_is_the_system_clock() -> None:
    assert isinstance(runtime.current_clock(), SystemClock)
    assert runtime.now().tzinfo is timezone.utc


def test_with_current_time_frozen_pins_now() -> None:
    with runtime.with_current_time_frozen() as clock:
        first = runtime.now()
        second = runtime.now()
        clock.advance(timedelta(seconds=10))
        third = runtime.now()

    assert first == second
    assert third - first == timedelta(seconds=10)
    assert isinstance(runtime.current_clock(), SystemClock)


def test_with_current_time_at_uses_the_given_instant() -> None:
    with runtime.with_current_time_at(START):
        assert runtime.now() == START


def test_use_clock_restores_previous_clock_on_error() -> None:
    outer = FrozenClock(START)
    runtime.set_clock(outer)

    with pytest.raises(RuntimeError, match="inside"):
        with runtime.use_clock(FrozenClock(START + timedelta(days=1))):
            assert runtime.now() == START + timedelta(days=1)
            raise RuntimeError("inside")

    assert runtime.current_clock() is outer


def test_set_clock_returns_previous_and_reset_restores_system_clock() -> None:
    frozen = FrozenClock(START)

    previous = runtime.set_clock(frozen)

    assert isinstance(previous, SystemClock)
    assert runtime.now() == START
    runtime.reset_clock()
    assert isinstance(runtime.current_clock(), SystemClock)
