"""
Configuration for smart account client operations
"""

import os
from dataclasses import dataclass
from typing import Optional

from sso_erc4337.chain import ChainId, EntryPointVersion
from sso_erc4337.errors import InvalidConfiguration
from sso_erc4337.utils import checksum_address

# Network constants
ENTRYPOINT_V07 = "0x0000000071727De22E5E9d8BAf0edAc6f37da032"
ENTRYPOINT_V08 = "0x4337084D9E255Ff0702461CF8895CE9E3b5Ff108"

ENTRYPOINTS = {
    EntryPointVersion.V07: ENTRYPOINT_V07,
    EntryPointVersion.V08: ENTRYPOINT_V08,
}

# Environment variable names read by SsoConfig.from_env
ENV_RPC_URL = "SSO_RPC_URL"
ENV_CHAIN_ID = "SSO_CHAIN_ID"
ENV_ENTRY_POINT_VERSION = "SSO_ENTRY_POINT_VERSION"
ENV_CONTRACTS = {
    "entry_point": "SSO_ENTRY_POINT_ADDRESS",
    "account_factory": "SSO_ACCOUNT_FACTORY_ADDRESS",
    "webauthn_validator": "SSO_WEBAUTHN_VALIDATOR_ADDRESS",
    "eoa_validator": "SSO_EOA_VALIDATOR_ADDRESS",
    "session_validator": "SSO_SESSION_VALIDATOR_ADDRESS",
    "guardian_executor": "SSO_GUARDIAN_EXECUTOR_ADDRESS",
}


@dataclass(frozen=True)
class Contracts:
    """Deployed contract addresses used by the modular smart account"""

    entry_point: str
    account_factory: str
    webauthn_validator: str
    eoa_validator: str
    session_validator: Optional[str] = None
    guardian_executor: Optional[str] = None

    def __post_init__(self):
        for name in ("entry_point", "account_factory", "webauthn_validator", "eoa_validator",
                     "session_validator", "guardian_executor"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, checksum_address(value, name))

    @classmethod
    def from_strings(
        cls,
        entry_point: str,
        account_factory: str,
        webauthn_validator: str,
        eoa_validator: str,
        session_validator: Optional[str] = None,
        guardian_executor: Optional[str] = None,
    ) -> "Contracts":
        """Build from hex strings, raising InvalidConfiguration on malformed input"""
        return cls(
            entry_point=entry_point,
            account_factory=account_factory,
            webauthn_validator=webauthn_validator,
            eoa_validator=eoa_validator,
            session_validator=session_validator,
            guardian_executor=guardian_executor,
        )


@dataclass(frozen=True)
class SsoConfig:
    """Configuration for smart account client operations"""

    rpc_url: str
    chain_id: ChainId
    entry_point_version: EntryPointVersion
    contracts: Contracts

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "SsoConfig":
        """Read configuration from environment variables"""
        env = os.environ if environ is None else environ

        rpc_url = env.get(ENV_RPC_URL)
        if not rpc_url:
            raise InvalidConfiguration(f"{ENV_RPC_URL} environment variable is required")

        raw_chain_id = env.get(ENV_CHAIN_ID)
        if not raw_chain_id:
            raise InvalidConfiguration(f"{ENV_CHAIN_ID} environment variable is required")
        if raw_chain_id.startswith("eip155:"):
            chain_id = ChainId.from_caip2(raw_chain_id)
        else:
            try:
                chain_id = ChainId(int(raw_chain_id))
            except ValueError as e:
                raise InvalidConfiguration(f"Invalid {ENV_CHAIN_ID}: {raw_chain_id!r}") from e

        version = EntryPointVersion.from_string(
            env.get(ENV_ENTRY_POINT_VERSION, EntryPointVersion.V08.value)
        )

        addresses = {name: env.get(var) for name, var in ENV_CONTRACTS.items()}
        if not addresses["entry_point"]:
            addresses["entry_point"] = ENTRYPOINTS[version]
        for name in ("account_factory", "webauthn_validator", "eoa_validator"):
            if not addresses[name]:
                raise InvalidConfiguration(f"{ENV_CONTRACTS[name]} environment variable is required")

        return cls(
            rpc_url=rpc_url,
            chain_id=chain_id,
            entry_point_version=version,
            contracts=Contracts.from_strings(**addresses),
        )
