"""
UserOperation value types for ERC-4337 smart accounts (entry point v0.7 / v0.8)
"""

from dataclasses import dataclass, replace
from typing import Optional

from hexbytes import HexBytes

from sso_erc4337.errors import InvalidConfiguration
from sso_erc4337.packing import (
    PACKED_FIELD_SIZE,
    combine_packed32,
    concat_factory_data,
    concat_paymaster_data,
    split_packed32,
)
from sso_erc4337.utils import BytesLike, checksum_address, to_bytes


UINT256_MAX = 2**256 - 1


@dataclass(frozen=True)
class UserOperationHash:
    """32-byte user operation digest"""

    value: bytes

    def __post_init__(self):
        if len(self.value) != 32:
            raise InvalidConfiguration(f"User operation hash must be 32 bytes, got {len(self.value)}")

    @classmethod
    def from_hex(cls, value: str) -> "UserOperationHash":
        return cls(to_bytes(value, "user operation hash"))

    def hex(self) -> str:
        return HexBytes(self.value).to_0x_hex()

    def __bytes__(self) -> bytes:
        return self.value

    def __str__(self) -> str:
        return self.hex()


@dataclass(frozen=True)
class UserOperationRecord:
    """
    PackedUserOperation as consumed by the entry point.

    ``account_gas_limits`` is verificationGasLimit (16 bytes) followed by callGasLimit
    (16 bytes), ``gas_fees`` is maxPriorityFeePerGas (16 bytes) followed by maxFeePerGas
    (16 bytes), both big-endian.
    """

    sender: str
    nonce: int
    init_code: bytes
    call_data: bytes
    account_gas_limits: bytes
    pre_verification_gas: int
    gas_fees: bytes
    paymaster_and_data: bytes = b""
    signature: bytes = b""

    def __post_init__(self):
        object.__setattr__(self, "sender", checksum_address(self.sender, "sender"))
        for name in ("init_code", "call_data", "account_gas_limits", "gas_fees",
                     "paymaster_and_data", "signature"):
            object.__setattr__(self, name, to_bytes(getattr(self, name), name))
        for name in ("account_gas_limits", "gas_fees"):
            if len(getattr(self, name)) != PACKED_FIELD_SIZE:
                raise InvalidConfiguration(
                    f"{name} must be exactly {PACKED_FIELD_SIZE} bytes, got {len(getattr(self, name))}"
                )
        for name in ("nonce", "pre_verification_gas"):
            value = getattr(self, name)
            if not isinstance(value, int) or not 0 <= value <= UINT256_MAX:
                raise InvalidConfiguration(f"{name} must be a uint256, got {value!r}")

    @property
    def verification_gas_limit(self) -> int:
        return split_packed32(self.account_gas_limits)[0]

    @property
    def call_gas_limit(self) -> int:
        return split_packed32(self.account_gas_limits)[1]

    @property
    def max_priority_fee_per_gas(self) -> int:
        return split_packed32(self.gas_fees)[0]

    @property
    def max_fee_per_gas(self) -> int:
        return split_packed32(self.gas_fees)[1]

    def with_signature(self, signature: BytesLike) -> "UserOperationRecord":
        return replace(self, signature=to_bytes(signature, "signature"))


def create_user_operation(
    sender: str,
    nonce: int,
    call_data: BytesLike,
    call_gas_limit: int,
    verification_gas_limit: int,
    pre_verification_gas: int,
    max_fee_per_gas: int,
    max_priority_fee_per_gas: int,
    factory: Optional[str] = None,
    factory_data: BytesLike = b"",
    paymaster: Optional[str] = None,
    paymaster_verification_gas_limit: int = 0,
    paymaster_post_op_gas_limit: int = 0,
    paymaster_data: BytesLike = b"",
    signature: BytesLike = b"",
) -> UserOperationRecord:
    """Create a packed UserOperation from its unpacked v0.7 RPC fields"""
    init_code = concat_factory_data(factory, to_bytes(factory_data)) if factory else b""
    paymaster_and_data = (
        concat_paymaster_data(
            paymaster,
            paymaster_verification_gas_limit,
            paymaster_post_op_gas_limit,
            to_bytes(paymaster_data),
        )
        if paymaster
        else b""
    )

    return UserOperationRecord(
        sender=sender,
        nonce=nonce,
        init_code=init_code,
        call_data=to_bytes(call_data, "call_data"),
        account_gas_limits=combine_packed32(verification_gas_limit, call_gas_limit),
        pre_verification_gas=pre_verification_gas,
        gas_fees=combine_packed32(max_priority_fee_per_gas, max_fee_per_gas),
        paymaster_and_data=paymaster_and_data,
        signature=to_bytes(signature, "signature"),
    )
