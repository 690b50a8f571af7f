"""
Usage-window ("period") ids for allowance limits
"""

import time
from typing import Callable, List

from sso_erc4337.errors import InvalidConfiguration
from sso_erc4337.session import LimitType, SessionSpec, UsageLimit

# Returns the current unix time in seconds
TimeSource = Callable[[], int]


def system_time() -> int:
    return int(time.time())


def period_id(limit: UsageLimit, time_source: TimeSource = system_time) -> int:
    """
    Index of the current allowance window: ``now // period`` for Allowance
    limits, 0 for every other limit type.
    """
    if limit.limit_type is not LimitType.ALLOWANCE:
        return 0
    if limit.period == 0:
        raise InvalidConfiguration("Allowance limit has a zero period")
    return time_source() // limit.period


def period_ids_for(session_spec: SessionSpec, time_source: TimeSource = system_time) -> List[int]:
    """Period ids sent with a session signature; the second slot is reserved and always 0"""
    return [period_id(session_spec.fee_limit, time_source), 0]


class PeriodClock:
    """Computes period ids against an injected clock"""

    def __init__(self, time_source: TimeSource = system_time):
        self.time_source = time_source

    def now(self) -> int:
        return self.time_source()

    def period_id(self, limit: UsageLimit) -> int:
        return period_id(limit, self.time_source)

    def period_ids_for(self, session_spec: SessionSpec) -> List[int]:
        return period_ids_for(session_spec, self.time_source)
