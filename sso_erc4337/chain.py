"""
Chain identity: numeric chain ids, CAIP-2 identifiers and entry point versions
"""

from dataclasses import dataclass, field
from enum import Enum

from sso_erc4337.errors import InvalidConfiguration, UnsupportedVersion

EIP155_NAMESPACE = "eip155"
MAX_CHAIN_ID = 2**64 - 1

ENTRYPOINT_V07_TYPE = "v0.7"
ENTRYPOINT_V08_TYPE = "v0.8"


class EntryPointVersion(Enum):
    """Entry point revision, which selects the user operation hashing algorithm"""

    V07 = ENTRYPOINT_V07_TYPE
    V08 = ENTRYPOINT_V08_TYPE

    @classmethod
    def from_string(cls, value: str) -> "EntryPointVersion":
        for version in cls:
            if version.value == value:
                return version
        raise UnsupportedVersion(value)

    @property
    def is_v07(self) -> bool:
        return self is EntryPointVersion.V07

    @property
    def is_v08(self) -> bool:
        return self is EntryPointVersion.V08

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, order=True)
class ChainId:
    """EIP-155 chain id"""

    id: int

    def __post_init__(self):
        if isinstance(self.id, bool) or not isinstance(self.id, int):
            raise InvalidConfiguration(f"Chain id must be an integer, got {self.id!r}")
        if not 0 <= self.id <= MAX_CHAIN_ID:
            raise InvalidConfiguration(f"Chain id out of range: {self.id}")

    @classmethod
    def from_caip2(cls, identifier: str) -> "ChainId":
        """Parse an ``eip155:<id>`` identifier"""
        namespace, separator, reference = identifier.partition(":")
        if not separator or not reference:
            raise InvalidConfiguration(f"Invalid CAIP-2 chain identifier: {identifier!r}")
        if namespace != EIP155_NAMESPACE:
            raise InvalidConfiguration(f"Invalid EIP-155 chain identifier: {identifier!r}")
        if not (reference.isascii() and reference.isdigit()):
            raise InvalidConfiguration(f"Invalid EIP-155 chain reference: {reference!r}")
        return cls(int(reference))

    def caip2_identifier(self) -> str:
        return f"{EIP155_NAMESPACE}:{self.id}"

    def __int__(self) -> int:
        return self.id

    def __str__(self) -> str:
        return str(self.id)


ETHEREUM_MAINNET = ChainId(1)
ETHEREUM_SEPOLIA = ChainId(11155111)
BASE_SEPOLIA = ChainId(84532)
LOCAL_FOUNDRY = ChainId(31337)


@dataclass(frozen=True)
class Chain:
    """Target ledger network"""

    id: ChainId
    entry_point_version: EntryPointVersion = EntryPointVersion.V07
    name: str = field(default="", compare=False)

    @classmethod
    def from_chain_id(cls, chain_id: int) -> "Chain":
        return cls(ChainId(chain_id))

    def caip2_identifier(self) -> str:
        return self.id.caip2_identifier()

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"
