"""
Tests for allowance period ids.
"""

import pytest

from sso_erc4337.errors import InvalidConfiguration
from sso_erc4337.period import PeriodClock, period_id, period_ids_for, system_time
from sso_erc4337.session import LIMIT_PERIODS, LimitType, SessionSpec, UsageLimit

from vectors import SESSION_SIGNER

NOW = 1700000000


def fixed_clock():
    return NOW


class TestPeriodId:
    """Tests for period_id."""

    def test_daily_allowance(self):
        assert period_id(UsageLimit.allowance(1, LIMIT_PERIODS["daily"]), fixed_clock) == 19675

    @pytest.mark.parametrize("name", sorted(LIMIT_PERIODS))
    def test_allowance_is_floor_division(self, name):
        period = LIMIT_PERIODS[name]
        assert period_id(UsageLimit.allowance(1, period), fixed_clock) == NOW // period

    @pytest.mark.parametrize("limit", [UsageLimit.unlimited(), UsageLimit.lifetime(10), UsageLimit(LimitType.LIFETIME, 1, 3600)])
    def test_non_allowance_is_zero(self, limit):
        assert period_id(limit, fixed_clock) == 0

    def test_non_allowance_never_reads_clock(self):
        def clock():
            raise AssertionError("clock read")

        assert period_id(UsageLimit.lifetime(1), clock) == 0

    def test_zero_period_allowance_rejected(self):
        with pytest.raises(InvalidConfiguration):
            period_id(UsageLimit(LimitType.ALLOWANCE, 1, 0), fixed_clock)

    def test_window_boundaries(self):
        limit = UsageLimit.allowance(1, 3600)
        assert period_id(limit, lambda: 7199) == 1
        assert period_id(limit, lambda: 7200) == 2

    def test_system_time(self):
        assert system_time() > NOW


class TestPeriodIdsFor:
    """Tests for the period ids sent with session signatures."""

    def test_two_slots_second_reserved(self):
        spec = SessionSpec(SESSION_SIGNER, 1, UsageLimit.allowance(1, LIMIT_PERIODS["daily"]))
        assert period_ids_for(spec, fixed_clock) == [19675, 0]

    def test_lifetime_fee_limit(self, session_spec):
        assert period_ids_for(session_spec, fixed_clock) == [0, 0]


class TestPeriodClock:
    """Tests for PeriodClock with an injected time source."""

    def test_uses_injected_clock(self):
        clock = PeriodClock(fixed_clock)
        assert clock.now() == NOW
        assert clock.period_id(UsageLimit.allowance(1, LIMIT_PERIODS["hourly"])) == NOW // 3600

    def test_reads_clock_at_call_time(self):
        now = [NOW]
        clock = PeriodClock(lambda: now[0])
        limit = UsageLimit.allowance(1, 100)

        first = clock.period_id(limit)
        now[0] += 100
        assert clock.period_id(limit) == first + 1

    def test_period_ids_for(self, session_spec):
        assert PeriodClock(fixed_clock).period_ids_for(session_spec) == [0, 0]
