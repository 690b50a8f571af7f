"""
Signature payloads for the modular smart account validators.

Three schemes are supported:

- plain key: the 65-byte ECDSA signature, optionally prefixed with the EOA
  validator address;
- passkey: WebAuthn authenticator data, client data JSON, the P-256 (r, s)
  pair and the credential id, ABI-encoded behind the WebAuthn validator address;
- session key: the session signer's ECDSA signature, the session spec and the
  period ids, ABI-encoded behind the session validator address.

The on-chain validator is selected by the leading 20-byte address, so field
order inside each payload must match the validator exactly.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature
from eth_abi import encode
from eth_account import Account

from sso_erc4337.chain import EntryPointVersion
from sso_erc4337.errors import DecodeFailure
from sso_erc4337.hashing import compute_hash
from sso_erc4337.period import TimeSource, period_ids_for, system_time
from sso_erc4337.providers import CodeReader, Signer
from sso_erc4337.session import SESSION_SPEC_ABI, SessionSpec
from sso_erc4337.user_operations import UserOperationRecord
from sso_erc4337.utils import BytesLike, address_bytes, to_bytes

logger = logging.getLogger(__name__)

ECDSA_SIGNATURE_SIZE = 65
P256_COMPONENT_SIZE = 32
# secp256r1 group order
P256_N = 0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551
P256_HALF_N = P256_N // 2

# Well-known throwaway key; signs the zero hash for gas estimation stubs
STUB_PRIVATE_KEY = "0x2a871d0798f97d79848a013d4936a73bf4cc922c825d33c1cf7073dff6d409c6"

PASSKEY_SIGNATURE_ABI = ["bytes", "bytes", "bytes32[2]", "bytes"]
SESSION_SIGNATURE_ABI = ["bytes", SESSION_SPEC_ABI, "uint48[]"]


class SignatureScheme(Enum):
    PLAIN_KEY = "plain_key"
    PASSKEY = "passkey"
    SESSION_KEY = "session_key"


@dataclass(frozen=True)
class PlainKeyParams:
    """``validator`` is the EOA validator module; leave unset for a bare ECDSA signature"""

    validator: Optional[str] = None


@dataclass(frozen=True)
class PasskeyParams:
    validator: str
    authenticator_data: bytes
    client_data_json: bytes
    # Base64URL without padding, as reported by the authenticator
    credential_id: str


@dataclass(frozen=True)
class SessionKeyParams:
    validator: str
    session_spec: SessionSpec
    time_source: TimeSource = system_time


SchemeParams = Union[PlainKeyParams, PasskeyParams, SessionKeyParams]


def base64url_decode(value: str) -> bytes:
    """Decode unpadded Base64URL"""
    if not isinstance(value, str):
        raise DecodeFailure(f"Expected a Base64URL string, got {type(value).__name__}")
    if "+" in value or "/" in value:
        raise DecodeFailure(f"Standard Base64 characters in Base64URL value: {value!r}")
    padded = value + "=" * (-len(value) % 4)
    try:
        return base64.b64decode(padded, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeFailure(f"Invalid Base64URL value: {value!r}") from e


def base64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


def webauthn_challenge(message_hash: BytesLike) -> str:
    """The WebAuthn challenge for a user operation hash"""
    return base64url_encode(to_bytes(message_hash, "hash"))


def unwrap_der_signature(der_signature: BytesLike) -> Tuple[bytes, bytes]:
    """
    Split a DER-encoded P-256 signature into 32-byte (r, s) components.

    s is normalized to the lower half of the curve order, which the WebAuthn
    validator requires.
    """
    der = to_bytes(der_signature, "DER signature")
    try:
        r, s = decode_dss_signature(der)
    except ValueError as e:
        raise DecodeFailure(f"Invalid DER signature: {e}") from e

    for name, value in (("r", r), ("s", s)):
        if not 0 < value < P256_N:
            raise DecodeFailure(f"Invalid DER signature: {name} outside the P-256 group order")

    if s > P256_HALF_N:
        s = P256_N - s

    return r.to_bytes(P256_COMPONENT_SIZE, "big"), s.to_bytes(P256_COMPONENT_SIZE, "big")


def der_to_raw_signature(der_signature: BytesLike) -> bytes:
    """DER signature as the 64-byte r || s expected by assemble_signature"""
    r, s = unwrap_der_signature(der_signature)
    return r + s


def encode_fat_signature(
    authenticator_data: BytesLike,
    client_data_json: Union[str, bytes],
    r: bytes,
    s: bytes,
    credential_id: str,
) -> bytes:
    """ABI-encode the WebAuthn assertion (without the validator prefix)"""
    if isinstance(client_data_json, str):
        client_data_json = client_data_json.encode()
    for name, component in (("r", r), ("s", s)):
        if len(component) != P256_COMPONENT_SIZE:
            raise DecodeFailure(f"Passkey {name} must be 32 bytes, got {len(component)}")

    return encode(
        PASSKEY_SIGNATURE_ABI,
        [
            to_bytes(authenticator_data, "authenticator data"),
            client_data_json,
            [r, s],
            base64url_decode(credential_id),
        ],
    )


def encode_full_signature(validator: str, fat_signature: bytes) -> bytes:
    return address_bytes(validator) + fat_signature


def eoa_signature(raw_signature: BytesLike, validator: Optional[str] = None) -> bytes:
    signature = to_bytes(raw_signature, "signature")
    if validator is None:
        return signature
    return address_bytes(validator) + signature


def passkey_signature(raw_signature: BytesLike, params: PasskeyParams) -> bytes:
    signature = to_bytes(raw_signature, "signature")
    if len(signature) != 2 * P256_COMPONENT_SIZE:
        raise DecodeFailure(f"Passkey signature must be 64 bytes r || s, got {len(signature)}")
    fat_signature = encode_fat_signature(
        params.authenticator_data,
        params.client_data_json,
        signature[:P256_COMPONENT_SIZE],
        signature[P256_COMPONENT_SIZE:],
        params.credential_id,
    )
    return encode_full_signature(params.validator, fat_signature)


def session_signature(raw_signature: BytesLike, params: SessionKeyParams) -> bytes:
    period_ids = period_ids_for(params.session_spec, params.time_source)
    fat_signature = encode(
        SESSION_SIGNATURE_ABI,
        [to_bytes(raw_signature, "signature"), params.session_spec.to_abi(), period_ids],
    )
    return encode_full_signature(params.validator, fat_signature)


_ENCODERS = {
    SignatureScheme.PLAIN_KEY: (PlainKeyParams, lambda raw, params: eoa_signature(raw, params.validator)),
    SignatureScheme.PASSKEY: (PasskeyParams, passkey_signature),
    SignatureScheme.SESSION_KEY: (SessionKeyParams, session_signature),
}


def assemble_signature(scheme: SignatureScheme, raw_signature: BytesLike, params: SchemeParams) -> bytes:
    """Wrap a raw signature into the payload the scheme's validator verifies"""
    try:
        params_type, encoder = _ENCODERS[scheme]
    except KeyError:
        raise TypeError(f"Expected SignatureScheme, got {scheme!r}") from None
    if not isinstance(params, params_type):
        raise TypeError(f"{scheme.value} signatures need {params_type.__name__}, got {type(params).__name__}")
    return encoder(raw_signature, params)


def stub_eoa_signature(validator: Optional[str] = None) -> bytes:
    """Correctly sized EOA (or passkey validator) signature for gas estimation"""
    signed = Account.from_key(STUB_PRIVATE_KEY).unsafe_sign_hash(bytes(32))
    return eoa_signature(bytes(signed.signature), validator)


def stub_session_signature(
    validator: str,
    session_spec: SessionSpec,
    time_source: TimeSource = system_time,
) -> bytes:
    """Session signature with a zeroed ECDSA signature, sized like the real one"""
    return session_signature(bytes(ECDSA_SIGNATURE_SIZE), SessionKeyParams(validator, session_spec, time_source))


async def sign_user_operation(
    record: UserOperationRecord,
    signer: Signer,
    entry_point: str,
    chain_id,
    version: EntryPointVersion,
    scheme: SignatureScheme = SignatureScheme.PLAIN_KEY,
    params: Optional[SchemeParams] = None,
    code_reader: Optional[CodeReader] = None,
) -> UserOperationRecord:
    """Hash, sign and wrap a user operation, returning it with the signature set"""
    if params is None:
        params = PlainKeyParams()

    user_operation_hash = await compute_hash(record, entry_point, chain_id, version, code_reader)
    logger.info(f"Signing {version} user operation {user_operation_hash} for {record.sender} with {signer.address}")

    raw_signature = await signer.sign_hash(bytes(user_operation_hash))
    signature = assemble_signature(scheme, raw_signature, params)

    logger.info(f"Assembled {scheme.value} signature ({len(signature)} bytes)")
    return record.with_signature(signature)
