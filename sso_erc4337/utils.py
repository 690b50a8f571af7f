"""
Address and byte normalization helpers shared across the client core
"""

from typing import Union

from eth_utils import is_address, to_canonical_address
from hexbytes import HexBytes
from web3 import Web3

from sso_erc4337.errors import DecodeFailure, InvalidConfiguration

BytesLike = Union[bytes, bytearray, str]

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def checksum_address(value: Union[str, bytes], name: str = "address") -> str:
    """Validate an address given as hex string or 20 raw bytes and checksum it"""
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise InvalidConfiguration(f"Invalid {name}: expected 20 bytes, got {len(value)}")
        return Web3.to_checksum_address(bytes(value))
    if not isinstance(value, str) or not is_address(value):
        raise InvalidConfiguration(f"Invalid {name}: {value!r}")
    return Web3.to_checksum_address(value)


def address_bytes(value: Union[str, bytes]) -> bytes:
    return to_canonical_address(checksum_address(value))


def to_bytes(value: BytesLike, name: str = "value") -> bytes:
    """Accept raw bytes or a 0x-prefixed hex string"""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    try:
        return bytes(HexBytes(value))
    except (ValueError, TypeError) as e:
        raise DecodeFailure(f"Invalid hex for {name}: {value!r}") from e


def to_hex(value: bytes) -> str:
    return HexBytes(value).to_0x_hex()
