"""
Tests for guardian, recovery and session status mapping.
"""

import pytest

from sso_erc4337.errors import DecodeFailure, UnknownRecoveryCode, UnknownStatusCode
from sso_erc4337.status import (
    GuardianStatus,
    LimitState,
    RecoveryEvent,
    RecoveryStatus,
    RecoveryType,
    SessionStatus,
    determine_recovery_status,
    map_guardian_status,
    map_recovery_type,
    map_session_state,
    map_session_status,
    recovery_type_code,
)

TARGET = "0x" + "44" * 20


class TestGuardianStatus:
    """Tests for the guardianStatusFor mapping."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ((False, False), GuardianStatus.DOES_NOT_EXIST),
            ((False, True), GuardianStatus.DOES_NOT_EXIST),
            ((True, False), GuardianStatus.PRESENT_NOT_ACTIVE),
            ((True, True), GuardianStatus.ACTIVE),
        ],
    )
    def test_mapping(self, raw, expected):
        assert map_guardian_status(raw) is expected

    def test_predicates(self):
        assert GuardianStatus.ACTIVE.is_active
        assert GuardianStatus.PRESENT_NOT_ACTIVE.is_present_but_not_active
        assert not GuardianStatus.DOES_NOT_EXIST.is_active


class TestRecoveryType:
    """Tests for the recovery type byte mapping."""

    @pytest.mark.parametrize("recovery_type", list(RecoveryType))
    def test_round_trip(self, recovery_type):
        assert map_recovery_type(recovery_type_code(recovery_type)) is recovery_type

    def test_codes(self):
        assert recovery_type_code(RecoveryType.NONE) == 0
        assert recovery_type_code(RecoveryType.EOA) == 1
        assert recovery_type_code(RecoveryType.PASSKEY) == 2

    @pytest.mark.parametrize("code", [3, 255, -1])
    def test_unknown_code(self, code):
        with pytest.raises(UnknownRecoveryCode) as exc_info:
            map_recovery_type(code)
        assert exc_info.value.code == code

    @pytest.mark.parametrize("code", [True, False])
    def test_bool_code_rejected(self, code):
        with pytest.raises(UnknownRecoveryCode):
            map_recovery_type(code)


class TestRecoveryStatus:
    """Tests for folding recovery events into a status."""

    def test_no_events(self):
        assert determine_recovery_status([]) is None

    @pytest.mark.parametrize(
        "events,expected",
        [
            ([RecoveryEvent.INITIATED], RecoveryStatus.INITIALIZED),
            ([RecoveryEvent.INITIATED, RecoveryEvent.FINISHED], RecoveryStatus.FINALIZED),
            ([RecoveryEvent.INITIATED, RecoveryEvent.DISCARDED], None),
            ([RecoveryEvent.INITIATED, RecoveryEvent.DISCARDED, RecoveryEvent.INITIATED], RecoveryStatus.INITIALIZED),
            ([RecoveryEvent.INITIATED, RecoveryEvent.FINISHED, RecoveryEvent.INITIATED], RecoveryStatus.INITIALIZED),
        ],
    )
    def test_latest_event_wins(self, events, expected):
        assert determine_recovery_status(events) is expected

    def test_accepts_iterator(self):
        assert determine_recovery_status(iter([RecoveryEvent.FINISHED])) is RecoveryStatus.FINALIZED

    def test_predicates(self):
        assert RecoveryStatus.INITIALIZED.is_initialized
        assert RecoveryStatus.FINALIZED.is_finalized


class TestSessionStatus:
    """Tests for session status and state mapping."""

    @pytest.mark.parametrize("code,expected", [(0, SessionStatus.NOT_INITIALIZED), (1, SessionStatus.ACTIVE), (2, SessionStatus.CLOSED)])
    def test_status(self, code, expected):
        assert map_session_status(code) is expected

    def test_unknown_status(self):
        with pytest.raises(UnknownStatusCode):
            map_session_status(3)

    def test_bool_status_rejected(self):
        with pytest.raises(UnknownStatusCode):
            map_session_status(True)

    def test_state(self):
        raw = (
            1,
            10**18,
            ((5, TARGET, b"\x00\x00\x00\x00", 0),),
            (),
            ((7, TARGET, bytes.fromhex("a9059cbb"), 2**64),),
        )

        state = map_session_state(raw)

        assert state.status is SessionStatus.ACTIVE
        assert state.status.is_active
        assert state.fees_remaining == 10**18
        (transfer,) = state.transfer_value
        assert transfer == LimitState(5, transfer.target, bytes(4), 0)
        assert transfer.target.lower() == TARGET
        assert state.call_value == ()
        assert state.call_params[0].selector == bytes.fromhex("a9059cbb")
        assert state.call_params[0].index == 2**64

    def test_state_unknown_status(self):
        with pytest.raises(UnknownStatusCode):
            map_session_state((9, 0, (), (), ()))

    def test_state_malformed(self):
        with pytest.raises(DecodeFailure):
            map_session_state((1, 0, ()))
        with pytest.raises(DecodeFailure):
            map_session_state((1, 0, ((1, TARGET),), (), ()))

