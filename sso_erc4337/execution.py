"""
ERC-7579 ``execute(bytes32 mode, bytes executionCalldata)`` call data for the modular smart account
"""

from dataclasses import dataclass
from typing import List

from eth_abi import encode
from web3 import Web3

from sso_erc4337.errors import InvalidConfiguration
from sso_erc4337.utils import BytesLike, address_bytes, checksum_address, to_bytes

# Function selector for execute(bytes32,bytes)
EXECUTE_SELECTOR = Web3.keccak(text="execute(bytes32,bytes)")[:4]

# Mode byte 0 is the call type: 0x00 single, 0x01 batch
MODE_SINGLE_CALL = bytes(32)
MODE_BATCH_CALL = b"\x01" + bytes(31)

EXECUTION_ABI = "(address,uint256,bytes)"


@dataclass(frozen=True)
class Execution:
    target: str
    value: int = 0
    call_data: bytes = b""

    def __post_init__(self):
        object.__setattr__(self, "target", checksum_address(self.target, "execution target"))
        object.__setattr__(self, "call_data", to_bytes(self.call_data, "call_data"))
        if not 0 <= self.value < 2**256:
            raise InvalidConfiguration(f"Execution value out of uint256 range: {self.value}")

    def to_abi(self) -> tuple:
        return (self.target, self.value, self.call_data)


def encode_execute(mode: bytes, execution_call_data: bytes) -> bytes:
    return bytes(EXECUTE_SELECTOR) + encode(["bytes32", "bytes"], [mode, execution_call_data])


def encode_execute_call_data(target: str, value: int = 0, data: BytesLike = b"") -> bytes:
    """
    Single call: the execution payload is target (20 bytes) || value (32 bytes,
    big-endian) || data, packed without ABI offsets.
    """
    execution = Execution(target, value, to_bytes(data, "data"))
    execution_call_data = address_bytes(execution.target) + execution.value.to_bytes(32, "big") + execution.call_data
    return encode_execute(MODE_SINGLE_CALL, execution_call_data)


def encode_batch_call_data(executions: List[Execution]) -> bytes:
    """Batch call: the execution payload is abi.encode(Execution[])"""
    execution_call_data = encode([f"{EXECUTION_ABI}[]"], [[execution.to_abi() for execution in executions]])
    return encode_execute(MODE_BATCH_CALL, execution_call_data)


def encode_calls(executions: List[Execution]) -> bytes:
    """Single-call encoding for one execution, batch encoding otherwise"""
    if len(executions) == 1:
        execution = executions[0]
        return encode_execute_call_data(execution.target, execution.value, execution.call_data)
    return encode_batch_call_data(executions)
