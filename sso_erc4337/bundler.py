"""
Conversion between packed user operations and the bundler JSON-RPC format (entry point v0.7 / v0.8)
"""

import logging
from typing import Dict, Optional

from sso_erc4337.errors import DecodeFailure
from sso_erc4337.packing import (
    ADDRESS_SIZE,
    HALF_SIZE,
    PACKED_FIELD_SIZE,
    combine_packed32,
    is_eip7702_init_code,
    split_packed32,
)
from sso_erc4337.user_operations import UserOperationRecord
from sso_erc4337.utils import checksum_address, to_bytes, to_hex

logger = logging.getLogger(__name__)

PAYMASTER_DATA_OFFSET = ADDRESS_SIZE + PACKED_FIELD_SIZE


def _quantity(value: Optional[str], name: str) -> int:
    """Parse a hex quantity; absent values read as zero"""
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(value, 16)
    except ValueError as e:
        raise DecodeFailure(f"Invalid hex quantity for {name}: {value!r}") from e


def _packed_field(rpc_dict: Dict, packed_key: str, high_key: str, low_key: str) -> bytes:
    """
    A bytes32 packed field from either its packed form or its two unpacked quantities.

    An undersized packed value reads as all zeros, an oversized one is rejected.
    """
    if rpc_dict.get(packed_key) is not None:
        packed = to_bytes(rpc_dict[packed_key], packed_key)
        if len(packed) > PACKED_FIELD_SIZE:
            raise DecodeFailure(f"{packed_key} longer than {PACKED_FIELD_SIZE} bytes: {len(packed)}")
        return combine_packed32(*split_packed32(packed))
    return combine_packed32(
        _quantity(rpc_dict.get(high_key), high_key),
        _quantity(rpc_dict.get(low_key), low_key),
    )


def to_rpc_dict(record: UserOperationRecord) -> Dict:
    """Convert a packed user operation to the unpacked eth_sendUserOperation format"""
    rpc_dict = {
        "sender": record.sender,
        "nonce": hex(record.nonce),
        "callData": to_hex(record.call_data),
        "callGasLimit": hex(record.call_gas_limit),
        "verificationGasLimit": hex(record.verification_gas_limit),
        "preVerificationGas": hex(record.pre_verification_gas),
        "maxFeePerGas": hex(record.max_fee_per_gas),
        "maxPriorityFeePerGas": hex(record.max_priority_fee_per_gas),
        "signature": to_hex(record.signature),
    }

    # Handle optional factory fields
    init_code = record.init_code
    if is_eip7702_init_code(init_code) and len(init_code) < ADDRESS_SIZE:
        # Bare 7702 marker, passed through unsplit
        rpc_dict.update({"factory": to_hex(init_code), "factoryData": "0x"})
    elif init_code:
        rpc_dict.update({
            "factory": checksum_address(init_code[:ADDRESS_SIZE], "factory"),
            "factoryData": to_hex(init_code[ADDRESS_SIZE:]),
        })
    else:
        rpc_dict.update({"factory": None, "factoryData": None})

    # Handle optional paymaster fields
    paymaster_and_data = record.paymaster_and_data
    if paymaster_and_data:
        gas_limits = paymaster_and_data[ADDRESS_SIZE:PAYMASTER_DATA_OFFSET].ljust(PACKED_FIELD_SIZE, b"\x00")
        rpc_dict.update({
            "paymaster": checksum_address(paymaster_and_data[:ADDRESS_SIZE], "paymaster"),
            "paymasterVerificationGasLimit": hex(int.from_bytes(gas_limits[:HALF_SIZE], "big")),
            "paymasterPostOpGasLimit": hex(int.from_bytes(gas_limits[HALF_SIZE:], "big")),
            "paymasterData": to_hex(paymaster_and_data[PAYMASTER_DATA_OFFSET:]),
        })
    else:
        rpc_dict.update({
            "paymaster": None,
            "paymasterVerificationGasLimit": None,
            "paymasterPostOpGasLimit": None,
            "paymasterData": None,
        })

    return rpc_dict


def from_rpc_dict(rpc_dict: Dict) -> UserOperationRecord:
    """
    Build a packed user operation from the bundler JSON-RPC format.

    Both the unpacked v0.7 fields (factory, paymaster, gas quantities) and the
    packed form (initCode, accountGasLimits, gasFees, paymasterAndData) are
    accepted. Missing gas limit and fee quantities pack as zero.
    """
    init_code = to_bytes(rpc_dict.get("initCode") or "0x", "initCode")
    factory = rpc_dict.get("factory")
    if factory:
        init_code = to_bytes(factory, "factory") + to_bytes(rpc_dict.get("factoryData") or "0x", "factoryData")

    paymaster_and_data = to_bytes(rpc_dict.get("paymasterAndData") or "0x", "paymasterAndData")
    paymaster = rpc_dict.get("paymaster")
    if paymaster:
        paymaster_and_data = (
            to_bytes(paymaster, "paymaster")
            + combine_packed32(
                _quantity(rpc_dict.get("paymasterVerificationGasLimit"), "paymasterVerificationGasLimit"),
                _quantity(rpc_dict.get("paymasterPostOpGasLimit"), "paymasterPostOpGasLimit"),
            )
            + to_bytes(rpc_dict.get("paymasterData") or "0x", "paymasterData")
        )

    record = UserOperationRecord(
        sender=rpc_dict["sender"],
        nonce=_quantity(rpc_dict.get("nonce"), "nonce"),
        init_code=init_code,
        call_data=to_bytes(rpc_dict.get("callData") or "0x", "callData"),
        account_gas_limits=_packed_field(rpc_dict, "accountGasLimits", "verificationGasLimit", "callGasLimit"),
        pre_verification_gas=_quantity(rpc_dict.get("preVerificationGas"), "preVerificationGas"),
        gas_fees=_packed_field(rpc_dict, "gasFees", "maxPriorityFeePerGas", "maxFeePerGas"),
        paymaster_and_data=paymaster_and_data,
        signature=to_bytes(rpc_dict.get("signature") or "0x", "signature"),
    )

    logger.debug(f"Decoded user operation for {record.sender} (nonce {record.nonce})")
    return record
