"""
Per-field packing rules shared by the v0.7 and v0.8 user operation hashers
"""

import logging
from typing import TYPE_CHECKING, Optional, Tuple

from web3 import Web3

from sso_erc4337.errors import InvalidConfiguration
from sso_erc4337.utils import address_bytes

if TYPE_CHECKING:
    from sso_erc4337.providers import CodeReader
    from sso_erc4337.user_operations import UserOperationRecord

logger = logging.getLogger(__name__)

PACKED_FIELD_SIZE = 32
HALF_SIZE = 16
UINT128_MAX = 2**128 - 1

# initCode marker for EIP-7702 delegated accounts
EIP7702_INIT_CODE_MARKER = b"\x77\x02"
# Code of a 7702-delegated EOA is 0xef0100 || delegate address
EIP7702_DELEGATION_PREFIX = b"\xef\x01\x00"
ADDRESS_SIZE = 20


def hash_raw(data: bytes) -> bytes:
    """keccak256 of an opaque field (initCode, callData, paymasterAndData)"""
    return bytes(Web3.keccak(data))


def split_packed32(packed: Optional[bytes]) -> Tuple[int, int]:
    """
    Split a packed bytes32 into its (high, low) 128-bit halves.

    Values shorter than 32 bytes, or None, read as all zeros.
    """
    if packed is None or len(packed) < PACKED_FIELD_SIZE:
        packed = bytes(PACKED_FIELD_SIZE)
    return (
        int.from_bytes(packed[:HALF_SIZE], "big"),
        int.from_bytes(packed[HALF_SIZE:PACKED_FIELD_SIZE], "big"),
    )


def combine_packed32(high: int, low: int) -> bytes:
    """Pack two 128-bit values into a bytes32, high half first"""
    for value in (high, low):
        if not 0 <= value <= UINT128_MAX:
            raise InvalidConfiguration(f"Packed half out of uint128 range: {value}")
    return high.to_bytes(HALF_SIZE, "big") + low.to_bytes(HALF_SIZE, "big")


def pack_uint128_pair(first: int, second: int) -> bytes:
    """Pack the lower 128 bits of each value into a bytes32"""
    return combine_packed32(first & UINT128_MAX, second & UINT128_MAX)


def concat_factory_data(factory: str, factory_data: bytes) -> bytes:
    """initCode = factory address || factoryData"""
    return address_bytes(factory) + factory_data


def concat_paymaster_data(
    paymaster: str,
    verification_gas_limit: int,
    post_op_gas_limit: int,
    paymaster_data: bytes,
) -> bytes:
    """paymasterAndData = paymaster || uint128 verification gas || uint128 post-op gas || data"""
    return address_bytes(paymaster) + pack_uint128_pair(verification_gas_limit, post_op_gas_limit) + paymaster_data


def is_eip7702_init_code(init_code: bytes) -> bool:
    return init_code[:2] == EIP7702_INIT_CODE_MARKER


def eip7702_delegate_from_code(code: Optional[bytes]) -> Optional[bytes]:
    """Return the delegate address of a 7702-designated account, if any"""
    if not code or len(code) < len(EIP7702_DELEGATION_PREFIX) + ADDRESS_SIZE:
        return None
    if not code.startswith(EIP7702_DELEGATION_PREFIX):
        return None
    start = len(EIP7702_DELEGATION_PREFIX)
    return bytes(code[start:start + ADDRESS_SIZE])


def hash_init_code_with_delegation(record: "UserOperationRecord", sender_code: Optional[bytes]) -> bytes:
    """
    Hash initCode the way the v0.8 entry point does for EIP-7702 accounts.

    When initCode starts with the 0x7702 marker and the sender's deployed code
    designates a delegate, the delegate address replaces the first 20 bytes of
    initCode. Otherwise initCode is hashed verbatim.
    """
    init_code = record.init_code
    if not is_eip7702_init_code(init_code):
        return hash_raw(init_code)

    delegate = eip7702_delegate_from_code(sender_code)
    if delegate is None:
        return hash_raw(init_code)

    if len(init_code) <= ADDRESS_SIZE:
        return hash_raw(delegate)
    return hash_raw(delegate + init_code[ADDRESS_SIZE:])


async def read_sender_code(
    record: "UserOperationRecord",
    code_reader: Optional["CodeReader"],
    strict: bool = False,
) -> Optional[bytes]:
    """
    Fetch the sender's deployed code when the delegated initCode case applies.

    Only one lookup is made per call. Provider failures are treated as "no
    delegation" unless ``strict`` is set.
    """
    if code_reader is None or not is_eip7702_init_code(record.init_code):
        return None
    try:
        return await code_reader.get_code(record.sender)
    except Exception as e:
        if strict:
            raise
        logger.warning(f"Code lookup for {record.sender} failed, hashing initCode verbatim: {e}")
        return None
