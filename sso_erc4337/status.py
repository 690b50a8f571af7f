"""
Map raw on-chain view results to guardian, recovery and session status types
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterable, Optional, Sequence, Tuple

from sso_erc4337.errors import DecodeFailure, UnknownRecoveryCode, UnknownStatusCode
from sso_erc4337.utils import checksum_address, to_bytes


class GuardianStatus(Enum):
    DOES_NOT_EXIST = "does_not_exist"
    PRESENT_NOT_ACTIVE = "present_not_active"
    ACTIVE = "active"

    @property
    def is_present_but_not_active(self) -> bool:
        return self is GuardianStatus.PRESENT_NOT_ACTIVE

    @property
    def is_active(self) -> bool:
        return self is GuardianStatus.ACTIVE


def map_guardian_status(status: Tuple[bool, bool]) -> GuardianStatus:
    """Map the ``guardianStatusFor`` (is_present, is_active) pair"""
    is_present, is_active = status
    if not is_present:
        return GuardianStatus.DOES_NOT_EXIST
    if not is_active:
        return GuardianStatus.PRESENT_NOT_ACTIVE
    return GuardianStatus.ACTIVE


class RecoveryType(IntEnum):
    NONE = 0
    EOA = 1
    PASSKEY = 2


def map_recovery_type(code: int) -> RecoveryType:
    if isinstance(code, bool):
        raise UnknownRecoveryCode(code)
    try:
        return RecoveryType(code)
    except ValueError:
        raise UnknownRecoveryCode(code) from None


def recovery_type_code(recovery_type: RecoveryType) -> int:
    return int(recovery_type)


class RecoveryStatus(Enum):
    INITIALIZED = "initialized"
    FINALIZED = "finalized"

    @property
    def is_initialized(self) -> bool:
        return self is RecoveryStatus.INITIALIZED

    @property
    def is_finalized(self) -> bool:
        return self is RecoveryStatus.FINALIZED


class RecoveryEvent(Enum):
    """GuardianExecutor recovery events, RecoveryInitiated / RecoveryFinished / RecoveryDiscarded"""

    INITIATED = "RecoveryInitiated"
    FINISHED = "RecoveryFinished"
    DISCARDED = "RecoveryDiscarded"


def determine_recovery_status(events: Iterable[RecoveryEvent]) -> Optional[RecoveryStatus]:
    """
    Current recovery status of an account from its recovery events in
    chronological order. Only the most recent event counts, since an account
    has at most one pending recovery.
    """
    last = None
    for last in events:
        pass

    if last is RecoveryEvent.INITIATED:
        return RecoveryStatus.INITIALIZED
    if last is RecoveryEvent.FINISHED:
        return RecoveryStatus.FINALIZED
    # Discarded or no events
    return None


class SessionStatus(IntEnum):
    NOT_INITIALIZED = 0
    ACTIVE = 1
    CLOSED = 2

    @property
    def is_active(self) -> bool:
        return self is SessionStatus.ACTIVE


def map_session_status(code: int) -> SessionStatus:
    if isinstance(code, bool):
        raise UnknownStatusCode(code)
    try:
        return SessionStatus(code)
    except ValueError:
        raise UnknownStatusCode(code) from None


@dataclass(frozen=True)
class LimitState:
    """Remaining allowance for one limit of a session"""

    remaining: int
    target: str
    selector: bytes
    index: int


@dataclass(frozen=True)
class SessionState:
    status: SessionStatus
    fees_remaining: int
    transfer_value: Tuple[LimitState, ...]
    call_value: Tuple[LimitState, ...]
    call_params: Tuple[LimitState, ...]


def _map_limit_state(raw: Sequence) -> LimitState:
    try:
        remaining, target, selector, index = raw
    except (TypeError, ValueError) as e:
        raise DecodeFailure(f"Malformed limit state: {raw!r}") from e

    selector = to_bytes(selector, "selector")
    if len(selector) != 4:
        raise DecodeFailure(f"Limit state selector must be 4 bytes, got {len(selector)}")
    return LimitState(
        remaining=int(remaining),
        target=checksum_address(target, "limit state target"),
        selector=selector,
        index=int(index),
    )


def map_session_state(raw: Sequence) -> SessionState:
    """Map a decoded SessionLib.SessionState tuple"""
    try:
        status, fees_remaining, transfer_value, call_value, call_params = raw
    except (TypeError, ValueError) as e:
        raise DecodeFailure(f"Malformed session state: {raw!r}") from e

    return SessionState(
        status=map_session_status(status),
        fees_remaining=int(fees_remaining),
        transfer_value=tuple(_map_limit_state(item) for item in transfer_value),
        call_value=tuple(_map_limit_state(item) for item in call_value),
        call_params=tuple(_map_limit_state(item) for item in call_params),
    )
