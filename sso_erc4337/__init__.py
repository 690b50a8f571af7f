"""
SSO ERC-4337 client core

User operation hashing for entry point v0.7 and v0.8, signature assembly for
the plain key, passkey and session key validators, session period ids and
on-chain status mapping for modular smart accounts.
"""

# Chain identity
from sso_erc4337.chain import Chain, ChainId, EntryPointVersion

# Configuration
from sso_erc4337.config import Contracts, SsoConfig

# User operations and hashing
from sso_erc4337.user_operations import UserOperationHash, UserOperationRecord, create_user_operation
from sso_erc4337.hashing import compute_hash, get_user_operation_hash_v07, get_user_operation_hash_v08

# Sessions and signatures
from sso_erc4337.session import SessionSpec, UsageLimit, hash_session
from sso_erc4337.period import PeriodClock, period_id
from sso_erc4337.signatures import SignatureScheme, assemble_signature, sign_user_operation

# Status mapping
from sso_erc4337.status import map_guardian_status, map_recovery_type, map_session_state, map_session_status

from sso_erc4337.errors import SsoError

__version__ = "0.1.0"

__all__ = [
    "Chain",
    "ChainId",
    "EntryPointVersion",
    "Contracts",
    "SsoConfig",
    "UserOperationHash",
    "UserOperationRecord",
    "create_user_operation",
    "compute_hash",
    "get_user_operation_hash_v07",
    "get_user_operation_hash_v08",
    "SessionSpec",
    "UsageLimit",
    "hash_session",
    "PeriodClock",
    "period_id",
    "SignatureScheme",
    "assemble_signature",
    "sign_user_operation",
    "map_guardian_status",
    "map_recovery_type",
    "map_session_state",
    "map_session_status",
    "SsoError",
]
