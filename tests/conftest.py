"""
Shared fixtures for the client core tests.
"""

import pytest

from sso_erc4337.session import SessionSpec, TransferSpec, UsageLimit
from sso_erc4337.user_operations import UserOperationRecord

from vectors import SESSION_SIGNER, V08_MOCK_CALL_DATA


@pytest.fixture
def v08_record():
    return UserOperationRecord(
        sender="0x6bf1C0c174e11B933e7d8940aFADf8BB7B8d421C",
        nonce=1,
        init_code=b"",
        call_data=V08_MOCK_CALL_DATA,
        account_gas_limits="0x00000000000000000000000000003fc30000000000000000000000000000e7a8",
        pre_verification_gas=52147,
        gas_fees="0x0000000000000000000000008585115a00000000000000000000000077359400",
        paymaster_and_data=b"",
    )


@pytest.fixture
def session_spec():
    return SessionSpec(
        signer=SESSION_SIGNER,
        expires_at=2088558400,
        fee_limit=UsageLimit.lifetime(10**18),
        call_policies=(),
        transfer_policies=(
            TransferSpec(
                target=SESSION_SIGNER,
                max_value_per_use=1,
                value_limit=UsageLimit.unlimited(),
            ),
        ),
    )
