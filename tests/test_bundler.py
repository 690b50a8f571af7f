"""
Tests for the bundler JSON-RPC user operation format.
"""

from dataclasses import replace

import pytest

from sso_erc4337.bundler import from_rpc_dict, to_rpc_dict
from sso_erc4337.errors import DecodeFailure
from sso_erc4337.user_operations import create_user_operation

FACTORY = "0x" + "11" * 20
PAYMASTER = "0x" + "22" * 20


@pytest.fixture
def full_record():
    return create_user_operation(
        sender="0x6bf1C0c174e11B933e7d8940aFADf8BB7B8d421C",
        nonce=7,
        call_data="0xdeadbeef",
        call_gas_limit=100000,
        verification_gas_limit=200000,
        pre_verification_gas=50000,
        max_fee_per_gas=2000000000,
        max_priority_fee_per_gas=1000000000,
        factory=FACTORY,
        factory_data="0xabcd",
        paymaster=PAYMASTER,
        paymaster_verification_gas_limit=30000,
        paymaster_post_op_gas_limit=40000,
        paymaster_data="0x01",
        signature=b"\x02" * 65,
    )


class TestToRpcDict:
    """Tests for the unpacked eth_sendUserOperation format."""

    def test_gas_fields(self, v08_record):
        rpc_dict = to_rpc_dict(v08_record)

        assert rpc_dict["sender"] == v08_record.sender
        assert rpc_dict["nonce"] == "0x1"
        assert rpc_dict["callGasLimit"] == "0xe7a8"
        assert rpc_dict["verificationGasLimit"] == "0x3fc3"
        assert rpc_dict["preVerificationGas"] == "0xcbb3"
        assert rpc_dict["maxFeePerGas"] == "0x77359400"
        assert rpc_dict["maxPriorityFeePerGas"] == "0x8585115a"
        assert rpc_dict["signature"] == "0x"

    def test_absent_factory_and_paymaster(self, v08_record):
        rpc_dict = to_rpc_dict(v08_record)

        assert rpc_dict["factory"] is None
        assert rpc_dict["factoryData"] is None
        assert rpc_dict["paymaster"] is None
        assert rpc_dict["paymasterData"] is None

    def test_factory_and_paymaster(self, full_record):
        rpc_dict = to_rpc_dict(full_record)

        assert rpc_dict["factory"].lower() == FACTORY
        assert rpc_dict["factoryData"] == "0xabcd"
        assert rpc_dict["paymaster"].lower() == PAYMASTER
        assert rpc_dict["paymasterVerificationGasLimit"] == hex(30000)
        assert rpc_dict["paymasterPostOpGasLimit"] == hex(40000)
        assert rpc_dict["paymasterData"] == "0x01"


class TestFromRpcDict:
    """Tests for reading bundler user operations."""

    def test_unpacked_round_trip(self, full_record):
        assert from_rpc_dict(to_rpc_dict(full_record)) == full_record

    def test_packed_form(self, v08_record):
        rpc_dict = {
            "sender": v08_record.sender,
            "nonce": "0x1",
            "initCode": "0x",
            "callData": "0x" + v08_record.call_data.hex(),
            "accountGasLimits": "0x" + v08_record.account_gas_limits.hex(),
            "preVerificationGas": "0xcbb3",
            "gasFees": "0x" + v08_record.gas_fees.hex(),
            "paymasterAndData": "0x",
            "signature": "0x",
        }
        assert from_rpc_dict(rpc_dict) == v08_record

    def test_undersized_packed_field_reads_as_zero(self, v08_record):
        rpc_dict = to_rpc_dict(v08_record)
        rpc_dict["accountGasLimits"] = "0x1234"

        record = from_rpc_dict(rpc_dict)

        assert record.account_gas_limits == bytes(32)

    def test_missing_quantities_are_zero(self):
        record = from_rpc_dict({"sender": "0x6bf1C0c174e11B933e7d8940aFADf8BB7B8d421C"})

        assert record.nonce == 0
        assert record.call_gas_limit == 0
        assert record.max_fee_per_gas == 0
        assert record.init_code == b""

    @pytest.mark.parametrize("packed_key", ["accountGasLimits", "gasFees"])
    def test_oversized_packed_field_rejected(self, v08_record, packed_key):
        rpc_dict = to_rpc_dict(v08_record)
        rpc_dict[packed_key] = "0x" + "11" * 33

        with pytest.raises(DecodeFailure):
            from_rpc_dict(rpc_dict)

    def test_invalid_quantity(self, v08_record):
        rpc_dict = to_rpc_dict(v08_record)
        rpc_dict["nonce"] = "0xzz"

        with pytest.raises(DecodeFailure):
            from_rpc_dict(rpc_dict)

    def test_invalid_hex_bytes(self, v08_record):
        rpc_dict = to_rpc_dict(v08_record)
        rpc_dict["callData"] = "0xnothex"

        with pytest.raises(DecodeFailure):
            from_rpc_dict(rpc_dict)


class TestEip7702InitCode:
    """Tests for delegated accounts whose initCode is only the 0x7702 marker."""

    @pytest.fixture
    def delegated_record(self, v08_record):
        return replace(v08_record, init_code=b"\x77\x02")

    def test_bare_marker_passed_through(self, delegated_record):
        rpc_dict = to_rpc_dict(delegated_record)

        assert rpc_dict["factory"] == "0x7702"
        assert rpc_dict["factoryData"] == "0x"

    def test_bare_marker_round_trip(self, delegated_record):
        assert from_rpc_dict(to_rpc_dict(delegated_record)) == delegated_record

    def test_marker_with_delegate_slot(self, v08_record):
        record = replace(v08_record, init_code=b"\x77\x02" + bytes(18) + b"\x01")

        rpc_dict = to_rpc_dict(record)

        assert rpc_dict["factory"].lower() == "0x7702" + "00" * 18
        assert rpc_dict["factoryData"] == "0x01"
