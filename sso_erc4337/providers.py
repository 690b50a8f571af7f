"""
Chain and signer capabilities consumed by the client core, with web3 / eth-account adapters
"""

import logging
from typing import Optional, Protocol, Tuple

from eth_abi import decode, encode
from eth_account import Account
from web3 import AsyncWeb3, Web3

from sso_erc4337.errors import InvalidConfiguration, SignatureFailure
from sso_erc4337.session import LIMIT_STATE_ABI, SESSION_SPEC_ABI, SessionSpec
from sso_erc4337.utils import checksum_address

logger = logging.getLogger(__name__)

SESSION_STATE_ABI = f"(uint8,uint256,{LIMIT_STATE_ABI}[],{LIMIT_STATE_ABI}[],{LIMIT_STATE_ABI}[])"
# Function selector for sessionState(address,SessionSpec)
SESSION_STATE_SELECTOR = Web3.keccak(text=f"sessionState(address,{SESSION_SPEC_ABI})")[:4]

GUARDIAN_STATUS_FOR_ABI = [{
    "inputs": [{"name": "account", "type": "address"}, {"name": "guardian", "type": "address"}],
    "name": "guardianStatusFor",
    "outputs": [{"name": "isPresent", "type": "bool"}, {"name": "isActive", "type": "bool"}],
    "stateMutability": "view",
    "type": "function"
}]

SESSION_STATUS_ABI = [{
    "inputs": [{"name": "account", "type": "address"}, {"name": "sessionHash", "type": "bytes32"}],
    "name": "sessionStatus",
    "outputs": [{"name": "", "type": "uint8"}],
    "stateMutability": "view",
    "type": "function"
}]


class CodeReader(Protocol):
    async def get_code(self, address: str) -> Optional[bytes]:
        """Deployed code at ``address``, or None when there is none"""


class Signer(Protocol):
    @property
    def address(self) -> str:
        ...

    async def sign_hash(self, message_hash: bytes) -> bytes:
        """Sign a 32-byte digest, returning the 65-byte r || s || v signature"""


class Web3CodeReader:
    """CodeReader backed by an async JSON-RPC provider"""

    def __init__(self, web3: AsyncWeb3):
        self.web3 = web3

    @classmethod
    def from_rpc_url(cls, rpc_url: str) -> "Web3CodeReader":
        return cls(AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url)))

    async def get_code(self, address: str) -> Optional[bytes]:
        code = await self.web3.eth.get_code(checksum_address(address))
        if not code:
            return None
        return bytes(code)


class LocalAccountSigner:
    """Signs raw digests with a private key held in memory"""

    def __init__(self, private_key):
        self._account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self._account.address

    async def sign_hash(self, message_hash: bytes) -> bytes:
        try:
            signed = self._account.unsafe_sign_hash(message_hash)
        except (ValueError, TypeError) as e:
            raise SignatureFailure(f"Signing failed for {self.address}: {e}") from e
        return bytes(signed.signature)


class ValidatorReader:
    """View calls on the guardian executor and session key validator modules"""

    def __init__(self, web3: AsyncWeb3, guardian_executor: Optional[str] = None,
                 session_validator: Optional[str] = None):
        self.web3 = web3
        self.guardian_executor = checksum_address(guardian_executor, "guardian executor") if guardian_executor else None
        self.session_validator = checksum_address(session_validator, "session validator") if session_validator else None

    def _require(self, address: Optional[str], name: str) -> str:
        if address is None:
            raise InvalidConfiguration(f"{name} address is not configured")
        return address

    async def guardian_status_for(self, account: str, guardian: str) -> Tuple[bool, bool]:
        """Raw (is_present, is_active) pair"""
        contract = self.web3.eth.contract(
            address=self._require(self.guardian_executor, "Guardian executor"),
            abi=GUARDIAN_STATUS_FOR_ABI,
        )
        is_present, is_active = await contract.functions.guardianStatusFor(
            checksum_address(account, "account"),
            checksum_address(guardian, "guardian"),
        ).call()

        logger.info(f"Guardian {guardian} for {account}: present={is_present}, active={is_active}")
        return is_present, is_active

    async def session_status(self, account: str, session_hash: bytes) -> int:
        contract = self.web3.eth.contract(
            address=self._require(self.session_validator, "Session validator"),
            abi=SESSION_STATUS_ABI,
        )
        status = await contract.functions.sessionStatus(
            checksum_address(account, "account"), session_hash
        ).call()

        logger.info(f"Session {session_hash.hex()} status for {account}: {status}")
        return status

    async def session_state(self, account: str, session_spec: SessionSpec) -> tuple:
        """Raw SessionLib.SessionState tuple for the given spec"""
        call_data = SESSION_STATE_SELECTOR + encode(
            ["address", SESSION_SPEC_ABI],
            [checksum_address(account, "account"), session_spec.to_abi()],
        )
        result = await self.web3.eth.call({
            "to": self._require(self.session_validator, "Session validator"),
            "data": call_data,
        })
        (state,) = decode([SESSION_STATE_ABI], bytes(result))
        return state
