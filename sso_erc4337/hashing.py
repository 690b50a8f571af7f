"""
User operation hashing for entry point v0.7 (ABI packing) and v0.8 (EIP-712)
"""

import logging
from typing import Callable, Optional

from eth_abi import encode

from sso_erc4337.chain import EntryPointVersion
from sso_erc4337.packing import hash_init_code_with_delegation, hash_raw, read_sender_code
from sso_erc4337.providers import CodeReader
from sso_erc4337.user_operations import UserOperationHash, UserOperationRecord
from sso_erc4337.utils import checksum_address

logger = logging.getLogger(__name__)

# Receives (name, value) for each intermediate value of a hash computation
HashObserver = Callable[[str, bytes], None]

PACKED_USER_OPERATION_TYPE = (
    "PackedUserOperation(address sender,uint256 nonce,bytes initCode,bytes callData,"
    "bytes32 accountGasLimits,uint256 preVerificationGas,bytes32 gasFees,bytes paymasterAndData)"
)
EIP712_DOMAIN_TYPE = "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
DOMAIN_NAME = "ERC4337"
DOMAIN_VERSION = "1"
EIP712_PREFIX = b"\x19\x01"

PACKED_USER_OPERATION_TYPEHASH = hash_raw(PACKED_USER_OPERATION_TYPE.encode())
EIP712_DOMAIN_TYPEHASH = hash_raw(EIP712_DOMAIN_TYPE.encode())

PACKED_USER_OPERATION_ABI = [
    "address", "uint256", "bytes32", "bytes32", "bytes32", "uint256", "bytes32", "bytes32",
]
USER_OPERATION_HASH_ABI = ["bytes32", "address", "uint256"]
STRUCT_HASH_ABI = ["bytes32"] + PACKED_USER_OPERATION_ABI
DOMAIN_SEPARATOR_ABI = ["bytes32", "bytes32", "bytes32", "uint256", "address"]


def _observe(observer: Optional[HashObserver], name: str, value: bytes) -> None:
    if observer is not None:
        observer(name, value)


def _chain_id(chain_id) -> int:
    return int(chain_id)


def pack_user_operation_v07(record: UserOperationRecord) -> bytes:
    """ABI-encode the 8 hashed/verbatim fields of a PackedUserOperation"""
    return encode(
        PACKED_USER_OPERATION_ABI,
        [
            record.sender,
            record.nonce,
            hash_raw(record.init_code),
            hash_raw(record.call_data),
            record.account_gas_limits,
            record.pre_verification_gas,
            record.gas_fees,
            hash_raw(record.paymaster_and_data),
        ],
    )


def get_user_operation_hash_v07(
    record: UserOperationRecord,
    entry_point: str,
    chain_id,
    observer: Optional[HashObserver] = None,
) -> UserOperationHash:
    packed = pack_user_operation_v07(record)
    _observe(observer, "packed", packed)
    packed_hash = hash_raw(packed)
    _observe(observer, "packed_user_operation_hash", packed_hash)

    encoded = encode(
        USER_OPERATION_HASH_ABI,
        [packed_hash, checksum_address(entry_point, "entry point"), _chain_id(chain_id)],
    )
    _observe(observer, "abi_encoded", encoded)
    return UserOperationHash(hash_raw(encoded))


def build_domain_separator(entry_point: str, chain_id) -> bytes:
    return hash_raw(
        encode(
            DOMAIN_SEPARATOR_ABI,
            [
                EIP712_DOMAIN_TYPEHASH,
                hash_raw(DOMAIN_NAME.encode()),
                hash_raw(DOMAIN_VERSION.encode()),
                _chain_id(chain_id),
                checksum_address(entry_point, "entry point"),
            ],
        )
    )


def struct_hash_v08(
    record: UserOperationRecord,
    sender_code: Optional[bytes] = None,
    observer: Optional[HashObserver] = None,
) -> bytes:
    hash_init_code = hash_init_code_with_delegation(record, sender_code)
    _observe(observer, "hash_init_code", hash_init_code)
    hash_call_data = hash_raw(record.call_data)
    _observe(observer, "hash_call_data", hash_call_data)
    hash_paymaster_and_data = hash_raw(record.paymaster_and_data)
    _observe(observer, "hash_paymaster_and_data", hash_paymaster_and_data)

    return hash_raw(
        encode(
            STRUCT_HASH_ABI,
            [
                PACKED_USER_OPERATION_TYPEHASH,
                record.sender,
                record.nonce,
                hash_init_code,
                hash_call_data,
                record.account_gas_limits,
                record.pre_verification_gas,
                record.gas_fees,
                hash_paymaster_and_data,
            ],
        )
    )


def eip712_digest(domain_separator: bytes, struct_hash: bytes) -> bytes:
    return hash_raw(EIP712_PREFIX + domain_separator + struct_hash)


def get_user_operation_hash_v08(
    record: UserOperationRecord,
    entry_point: str,
    chain_id,
    sender_code: Optional[bytes] = None,
    observer: Optional[HashObserver] = None,
) -> UserOperationHash:
    """
    EIP-712 hash of a PackedUserOperation for the v0.8 entry point.

    ``sender_code`` is the sender's currently deployed code; it only matters for
    EIP-7702 initCode (see hash_init_code_with_delegation).
    """
    domain_separator = build_domain_separator(entry_point, chain_id)
    _observe(observer, "domain_separator", domain_separator)
    struct_hash = struct_hash_v08(record, sender_code, observer)
    _observe(observer, "struct_hash", struct_hash)
    return UserOperationHash(eip712_digest(domain_separator, struct_hash))


async def compute_hash(
    record: UserOperationRecord,
    entry_point: str,
    chain_id,
    version: EntryPointVersion,
    code_reader: Optional[CodeReader] = None,
    strict: bool = False,
    observer: Optional[HashObserver] = None,
) -> UserOperationHash:
    """
    Hash a user operation for the given entry point version.

    For v0.8 the sender's code is looked up at most once through ``code_reader``;
    a failed lookup hashes initCode verbatim unless ``strict`` is set.
    """
    if version is EntryPointVersion.V07:
        user_operation_hash = get_user_operation_hash_v07(record, entry_point, chain_id, observer)
    elif version is EntryPointVersion.V08:
        sender_code = await read_sender_code(record, code_reader, strict)
        user_operation_hash = get_user_operation_hash_v08(record, entry_point, chain_id, sender_code, observer)
    else:
        raise TypeError(f"Expected EntryPointVersion, got {version!r}")

    logger.debug(f"{version} user operation hash for {record.sender}: {user_operation_hash}")
    return user_operation_hash
