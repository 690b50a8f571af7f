"""
ERC-7579 module identities installed on a modular smart account
"""

from dataclasses import dataclass
from enum import IntEnum

from sso_erc4337.errors import UnknownModuleType
from sso_erc4337.utils import checksum_address


class ModuleType(IntEnum):
    VALIDATOR = 1
    EXECUTOR = 2
    FALLBACK = 3
    HOOK = 4
    PREVALIDATION_HOOK_ERC1271 = 8
    PREVALIDATION_HOOK_ERC4337 = 9

    @classmethod
    def from_code(cls, code: int) -> "ModuleType":
        if isinstance(code, bool):
            raise UnknownModuleType(code)
        try:
            return cls(code)
        except ValueError:
            raise UnknownModuleType(code) from None


@dataclass(frozen=True)
class Module:
    address: str
    module_type: ModuleType

    def __post_init__(self):
        object.__setattr__(self, "address", checksum_address(self.address, "module address"))
        object.__setattr__(self, "module_type", ModuleType.from_code(self.module_type))

    @classmethod
    def from_code(cls, address: str, code: int) -> "Module":
        return cls(address, code)

    @classmethod
    def validator(cls, address: str) -> "Module":
        return cls(address, ModuleType.VALIDATOR)

    @classmethod
    def executor(cls, address: str) -> "Module":
        return cls(address, ModuleType.EXECUTOR)

    @property
    def type_code(self) -> int:
        return int(self.module_type)
