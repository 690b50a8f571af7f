"""
Session key policy types (SessionLib structs) and session hashing
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Tuple

from eth_abi import encode

from sso_erc4337.errors import InvalidConfiguration
from sso_erc4337.packing import hash_raw
from sso_erc4337.utils import checksum_address, to_bytes

UINT48_MAX = 2**48 - 1
UINT64_MAX = 2**64 - 1
UINT256_MAX = 2**256 - 1

# Period lengths for allowance limits, in seconds
LIMIT_PERIODS = {
    "hourly": 3600,
    "daily": 86400,
    "weekly": 604800,
    "monthly": 2592000,
    "yearly": 31536000,
}

USAGE_LIMIT_ABI = "(uint8,uint256,uint48)"
CONSTRAINT_ABI = f"(uint8,uint64,bytes32,{USAGE_LIMIT_ABI})"
CALL_SPEC_ABI = f"(address,bytes4,uint256,{USAGE_LIMIT_ABI},{CONSTRAINT_ABI}[])"
TRANSFER_SPEC_ABI = f"(address,uint256,{USAGE_LIMIT_ABI})"
SESSION_SPEC_ABI = f"(address,uint48,{USAGE_LIMIT_ABI},{CALL_SPEC_ABI}[],{TRANSFER_SPEC_ABI}[])"
LIMIT_STATE_ABI = "(uint256,address,bytes4,uint256)"


def _check_range(name: str, value: int, maximum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= maximum:
        raise InvalidConfiguration(f"{name} out of range: {value!r}")


class LimitType(IntEnum):
    UNLIMITED = 0
    LIFETIME = 1
    ALLOWANCE = 2


class ConstraintCondition(IntEnum):
    UNCONSTRAINED = 0
    EQUAL = 1
    GREATER = 2
    LESS = 3
    GREATER_EQUAL = 4
    LESS_EQUAL = 5
    NOT_EQUAL = 6


@dataclass(frozen=True)
class UsageLimit:
    """
    Usage limit for fees, transferred value or a constrained call parameter.

    ``period`` is the allowance window in seconds and is only meaningful for
    ``LimitType.ALLOWANCE``.
    """

    limit_type: LimitType
    limit: int = 0
    period: int = 0

    def __post_init__(self):
        object.__setattr__(self, "limit_type", LimitType(self.limit_type))
        _check_range("limit", self.limit, UINT256_MAX)
        _check_range("period", self.period, UINT48_MAX)

    @classmethod
    def unlimited(cls) -> "UsageLimit":
        return cls(LimitType.UNLIMITED)

    @classmethod
    def zero(cls) -> "UsageLimit":
        return cls(LimitType.LIFETIME)

    @classmethod
    def lifetime(cls, limit: int) -> "UsageLimit":
        return cls(LimitType.LIFETIME, limit)

    @classmethod
    def allowance(cls, limit: int, period: int) -> "UsageLimit":
        if period == 0:
            raise InvalidConfiguration("Allowance limits need a nonzero period")
        return cls(LimitType.ALLOWANCE, limit, period)

    def to_abi(self) -> Tuple[int, int, int]:
        return (int(self.limit_type), self.limit, self.period)


@dataclass(frozen=True)
class Constraint:
    condition: ConstraintCondition
    index: int
    ref_value: bytes
    limit: UsageLimit = field(default_factory=UsageLimit.unlimited)

    def __post_init__(self):
        object.__setattr__(self, "condition", ConstraintCondition(self.condition))
        _check_range("constraint index", self.index, UINT64_MAX)
        ref_value = to_bytes(self.ref_value, "ref_value")
        if len(ref_value) > 32:
            raise InvalidConfiguration(f"ref_value longer than 32 bytes: {len(ref_value)}")
        object.__setattr__(self, "ref_value", ref_value.rjust(32, b"\x00"))

    def to_abi(self) -> tuple:
        return (int(self.condition), self.index, self.ref_value, self.limit.to_abi())


@dataclass(frozen=True)
class CallSpec:
    """Policy for contract calls to ``target`` with function ``selector``"""

    target: str
    selector: bytes
    max_value_per_use: int = 0
    value_limit: UsageLimit = field(default_factory=UsageLimit.zero)
    constraints: Tuple[Constraint, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "target", checksum_address(self.target, "call policy target"))
        selector = to_bytes(self.selector, "selector")
        if len(selector) != 4:
            raise InvalidConfiguration(f"Selector must be 4 bytes, got {len(selector)}")
        object.__setattr__(self, "selector", selector)
        _check_range("max_value_per_use", self.max_value_per_use, UINT256_MAX)
        object.__setattr__(self, "constraints", tuple(self.constraints))

    def to_abi(self) -> tuple:
        return (
            self.target,
            self.selector,
            self.max_value_per_use,
            self.value_limit.to_abi(),
            [constraint.to_abi() for constraint in self.constraints],
        )


@dataclass(frozen=True)
class TransferSpec:
    """Policy for plain value transfers (no calldata) to ``target``"""

    target: str
    max_value_per_use: int = 0
    value_limit: UsageLimit = field(default_factory=UsageLimit.zero)

    def __post_init__(self):
        object.__setattr__(self, "target", checksum_address(self.target, "transfer policy target"))
        _check_range("max_value_per_use", self.max_value_per_use, UINT256_MAX)

    def to_abi(self) -> tuple:
        return (self.target, self.max_value_per_use, self.value_limit.to_abi())


@dataclass(frozen=True)
class SessionSpec:
    """
    Session key authorization: the ``signer`` may act for the account until
    ``expires_at`` within the fee limit and the call/transfer policies.
    """

    signer: str
    expires_at: int
    fee_limit: UsageLimit
    call_policies: Tuple[CallSpec, ...] = ()
    transfer_policies: Tuple[TransferSpec, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "signer", checksum_address(self.signer, "session signer"))
        _check_range("expires_at", self.expires_at, UINT48_MAX)
        object.__setattr__(self, "call_policies", tuple(self.call_policies))
        object.__setattr__(self, "transfer_policies", tuple(self.transfer_policies))

    def to_abi(self) -> tuple:
        """SessionLib.SessionSpec as an eth_abi tuple value"""
        return (
            self.signer,
            self.expires_at,
            self.fee_limit.to_abi(),
            [policy.to_abi() for policy in self.call_policies],
            [policy.to_abi() for policy in self.transfer_policies],
        )

    def encode(self) -> bytes:
        return encode([SESSION_SPEC_ABI], [self.to_abi()])


def hash_session(session_spec: SessionSpec) -> bytes:
    """keccak256(abi.encode(sessionSpec)), the key the validator stores sessions under"""
    return hash_raw(session_spec.encode())
