"""Tests for src/rate_keeper/integration/keeper.py: the stateful keeper shell."""

from __future__ import annotations

import logging
import threading

import pytest

from rate_keeper.core.dsmath import rpow
from rate_keeper.core.errors import (
    ClockRegressionError,
    InvalidConfigurationError,
    MaxRateReachedError,
)
from rate_keeper.core.keeper import MAX_RATE, Event
from rate_keeper.core.units import DECIMAL, to_fixed
from rate_keeper.integration.keeper import CompoundRateKeeper

DAY = 86_400
YEAR = 31_536_000
T0 = 1_700_000_000


class FakeClock:
    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestCreate:
    def test_initial_reads(self, clock):
        k = CompoundRateKeeper.create(to_fixed("1.1"), YEAR, clock=clock)
        assert k.rate == to_fixed("1.1")
        assert k.period == YEAR
        assert k.last_update == T0
        assert k.max_rate_reached is False
        assert k.get_compound_rate() == DECIMAL
        assert k.get_current_rate() == DECIMAL

    def test_logs_initialization(self, clock, caplog):
        with caplog.at_level(logging.INFO, logger="rate_keeper.integration.keeper"):
            CompoundRateKeeper.create(to_fixed("1.1"), YEAR, clock=clock)
        assert "keeper initialized: rate=1.1" in caplog.text

    def test_bad_clock_value(self):
        with pytest.raises(InvalidConfigurationError):
            CompoundRateKeeper.create(DECIMAL, DAY, clock=lambda: 1.5)

    def test_bad_parameters(self, clock):
        with pytest.raises(InvalidConfigurationError):
            CompoundRateKeeper.create(-1, DAY, clock=clock)

    def test_narrow_width_default_ceiling(self, clock):
        k = CompoundRateKeeper.create(DECIMAL, 10, clock=clock, width=128)
        assert k.state.max_rate == 2**128 - 1
        assert k.max_rate_reached is False

    def test_large_decimal_default_ceiling(self, clock):
        k = CompoundRateKeeper.create(10**70, 10, clock=clock, decimal=10**70)
        assert k.get_compound_rate() == 10**70
        assert k.state.max_rate == 2**256 - 1


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

class TestReads:
    def test_current_rate_follows_clock(self, clock):
        k = CompoundRateKeeper.create(to_fixed("1.0001"), DAY, clock=clock)
        clock.advance(3 * DAY)
        assert k.get_current_rate() == to_fixed("1.000300030001")
        # reads never checkpoint
        assert k.get_compound_rate() == DECIMAL
        assert k.last_update == T0

    def test_future_rate(self, clock):
        k = CompoundRateKeeper.create(to_fixed("1.5"), YEAR, clock=clock)
        assert k.get_future_rate(T0 + 2 * YEAR) == to_fixed("2.25")
        assert k.get_future_rate(T0 + 10 * YEAR) == to_fixed("57.6650390625")

    def test_future_rate_before_checkpoint(self, clock):
        k = CompoundRateKeeper.create(to_fixed("1.5"), YEAR, clock=clock)
        with pytest.raises(ClockRegressionError):
            k.get_future_rate(T0 - 1)

    def test_clock_regression_on_read(self, clock):
        k = CompoundRateKeeper.create(DECIMAL, DAY, clock=clock)
        clock.now = T0 - 1
        with pytest.raises(ClockRegressionError):
            k.get_current_rate()


# ---------------------------------------------------------------------------
# Setters
# ---------------------------------------------------------------------------

class TestSetters:
    def test_yearly_rate_changes(self, clock):
        k = CompoundRateKeeper.create(DECIMAL, YEAR, clock=clock)
        clock.advance(10)
        k.set_rate(to_fixed("1.1"))
        clock.advance(YEAR)
        assert k.get_current_rate() == to_fixed("1.1")

        k.set_rate(to_fixed("1.2"))
        clock.advance(2 * YEAR)
        assert k.get_current_rate() == to_fixed("1.584")

        k.set_rate(to_fixed("1.5"))
        clock.advance(3 * YEAR)
        assert k.get_current_rate() == to_fixed("5.346")

        k.set_rate(to_fixed("1.05"))
        clock.advance(YEAR)
        assert k.get_current_rate() == to_fixed("5.6133")

    def test_set_rate_effect(self, clock):
        k = CompoundRateKeeper.create(to_fixed("1.1"), YEAR, clock=clock)
        clock.advance(YEAR)
        effect = k.set_rate(to_fixed("1.2"))
        assert effect.event == Event.RATE_CHANGED
        assert effect.periods_folded == 1
        assert effect.current_rate == to_fixed("1.1")
        assert k.get_compound_rate() == to_fixed("1.1")
        assert k.last_update == T0 + YEAR

    def test_double_set_equals_single(self, clock):
        a = CompoundRateKeeper.create(to_fixed("1.1"), DAY, clock=clock)
        b = CompoundRateKeeper.create(to_fixed("1.1"), DAY, clock=clock)
        clock.advance(5 * DAY + 3)
        a.set_rate(to_fixed("1.3"))
        a.set_rate(to_fixed("1.2"))
        b.set_rate(to_fixed("1.2"))
        assert a.state == b.state

    def test_set_period_and_both(self, clock):
        k = CompoundRateKeeper.create(to_fixed("1.1"), YEAR, clock=clock)
        clock.advance(YEAR)
        assert k.set_period(DAY).event == Event.PERIOD_CHANGED
        assert k.period == DAY
        effect = k.set_rate_and_period(to_fixed("1.01"), DAY)
        assert effect.event == Event.RATE_AND_PERIOD_CHANGED
        clock.advance(2 * DAY)
        assert k.get_current_rate() == to_fixed("1.12211")

    def test_setter_logs_event(self, clock, caplog):
        k = CompoundRateKeeper.create(DECIMAL, DAY, clock=clock)
        with caplog.at_level(logging.INFO, logger="rate_keeper.integration.keeper"):
            k.set_rate(to_fixed("1.1"))
        assert "RateChanged" in caplog.text
        assert "rate=1.1" in caplog.text

    def test_rejected_setter_keeps_state(self, clock):
        k = CompoundRateKeeper.create(DECIMAL, DAY, clock=clock)
        before = k.state
        with pytest.raises(InvalidConfigurationError):
            k.set_rate(-1)
        assert k.state == before


# ---------------------------------------------------------------------------
# accrue
# ---------------------------------------------------------------------------

class TestAccrue:
    def test_carries_remainder(self, clock):
        k = CompoundRateKeeper.create(2 * DECIMAL, 100, clock=clock)
        clock.advance(250)
        effect = k.accrue()
        assert effect.event == Event.ACCRUED
        assert effect.periods_folded == 2
        assert k.get_compound_rate() == 4 * DECIMAL
        assert k.last_update == T0 + 200
        clock.advance(50)
        assert k.get_current_rate() == 8 * DECIMAL


# ---------------------------------------------------------------------------
# Saturation
# ---------------------------------------------------------------------------

class TestSaturation:
    def test_setters_disabled_after_saturation(self, clock, caplog):
        k = CompoundRateKeeper.create(5 * DECIMAL, YEAR, clock=clock)
        clock.advance(100 * YEAR)
        assert k.get_current_rate() == MAX_RATE
        with caplog.at_level(logging.WARNING, logger="rate_keeper.integration.keeper"):
            effect = k.accrue()
        assert effect.saturated
        assert "saturated" in caplog.text
        assert k.max_rate_reached
        assert k.get_compound_rate() == MAX_RATE

        with pytest.raises(MaxRateReachedError):
            k.set_rate(DECIMAL)
        with pytest.raises(MaxRateReachedError):
            k.set_period(DAY)
        with pytest.raises(MaxRateReachedError):
            k.set_rate_and_period(DECIMAL, DAY)

        clock.advance(YEAR)
        assert k.get_current_rate() == MAX_RATE

    def test_setter_can_trigger_saturation(self, clock):
        k = CompoundRateKeeper.create(2 * DECIMAL, DAY, clock=clock, max_rate=3 * DECIMAL)
        clock.advance(2 * DAY)
        effect = k.set_rate(DECIMAL)
        assert effect.saturated
        assert k.get_compound_rate() == 3 * DECIMAL
        with pytest.raises(MaxRateReachedError):
            k.set_rate(DECIMAL)


# ---------------------------------------------------------------------------
# Listeners
# ---------------------------------------------------------------------------

class TestListeners:
    def test_subscribe_and_unsubscribe(self, clock):
        k = CompoundRateKeeper.create(DECIMAL, DAY, clock=clock)
        seen = []
        unsubscribe = k.subscribe(seen.append)
        k.set_rate(to_fixed("1.1"))
        assert [e.event for e in seen] == [Event.RATE_CHANGED]
        unsubscribe()
        unsubscribe()
        k.accrue()
        assert len(seen) == 1

    def test_failing_listener_is_logged(self, clock, caplog):
        k = CompoundRateKeeper.create(DECIMAL, DAY, clock=clock)

        def boom(effect):
            raise RuntimeError("listener down")

        seen = []
        k.subscribe(boom)
        k.subscribe(seen.append)
        with caplog.at_level(logging.ERROR, logger="rate_keeper.integration.keeper"):
            k.set_rate(to_fixed("1.1"))
        assert "listener" in caplog.text
        assert k.rate == to_fixed("1.1")
        assert len(seen) == 1


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

class TestSnapshot:
    def test_round_trip(self, clock):
        k = CompoundRateKeeper.create(to_fixed("1.1"), DAY, clock=clock)
        clock.advance(3 * DAY)
        k.set_rate(to_fixed("1.2"))
        snap = k.snapshot()
        assert set(snap) == {"state", "digest"}
        assert snap["digest"].startswith("0x")

        restored = CompoundRateKeeper.from_snapshot(snap, clock=clock)
        assert restored.state == k.state
        assert restored.snapshot() == snap

    def test_digest_changes_with_state(self, clock):
        k = CompoundRateKeeper.create(DECIMAL, DAY, clock=clock)
        before = k.snapshot()["digest"]
        k.set_rate(to_fixed("1.1"))
        assert k.snapshot()["digest"] != before

    def test_digest_mismatch(self, clock):
        k = CompoundRateKeeper.create(DECIMAL, DAY, clock=clock)
        snap = k.snapshot()
        snap["state"]["rate"] = 2 * DECIMAL
        with pytest.raises(InvalidConfigurationError, match="digest"):
            CompoundRateKeeper.from_snapshot(snap, clock=clock)

    def test_without_digest(self, clock):
        k = CompoundRateKeeper.create(DECIMAL, DAY, clock=clock)
        restored = CompoundRateKeeper.from_snapshot({"state": k.snapshot()["state"]}, clock=clock)
        assert restored.state == k.state

    def test_malformed_state(self, clock):
        with pytest.raises(InvalidConfigurationError):
            CompoundRateKeeper.from_snapshot({"state": {"rate": 1}}, clock=clock)
        with pytest.raises(InvalidConfigurationError):
            CompoundRateKeeper.from_snapshot({"state": []}, clock=clock)

    @pytest.mark.parametrize("with_digest", [False, True])
    def test_float_field_rejected(self, clock, with_digest):
        k = CompoundRateKeeper.create(DECIMAL, DAY, clock=clock)
        snap = k.snapshot()
        state = dict(snap["state"])
        state["rate"] = 1.5
        doc = {"state": state, "digest": snap["digest"]} if with_digest else {"state": state}
        with pytest.raises(InvalidConfigurationError, match="malformed"):
            CompoundRateKeeper.from_snapshot(doc, clock=clock)

    def test_invalid_state_rejected(self, clock):
        k = CompoundRateKeeper.create(DECIMAL, DAY, clock=clock)
        state = dict(k.snapshot()["state"])
        state["max_rate_reached"] = True
        with pytest.raises(InvalidConfigurationError):
            CompoundRateKeeper.from_snapshot({"state": state}, clock=clock)


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

class TestThreads:
    def test_concurrent_setters_and_reads(self, clock):
        k = CompoundRateKeeper.create(to_fixed("1.01"), DAY, clock=clock)
        clock.advance(10 * DAY)
        errors = []

        def worker(i: int) -> None:
            try:
                for _ in range(50):
                    k.set_rate(to_fixed("1.01") + i)
                    k.get_current_rate()
            except Exception as exc:  # pragma: no cover
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert k.last_update == T0 + 10 * DAY
        assert k.get_compound_rate() == rpow(to_fixed("1.01"), 10, DECIMAL)
