"""
Error types raised by the smart account client core
"""


class SsoError(Exception):
    """Base class for all client core errors"""


class InvalidConfiguration(SsoError, ValueError):
    """Malformed chain identifier, address string or limit configuration"""


class DecodeFailure(SsoError, ValueError):
    """Base64 / hex / DER payload could not be decoded"""


class UnsupportedVersion(SsoError, ValueError):
    """Unrecognized entry point version tag"""

    def __init__(self, version: str):
        super().__init__(f"Unsupported entry point version: {version!r}")
        self.version = version


class UnknownModuleType(SsoError, ValueError):
    """Module type id outside the ERC-7579 set"""

    def __init__(self, code: int):
        super().__init__(f"Unknown module type: {code}")
        self.code = code


class UnknownRecoveryCode(SsoError, ValueError):
    """Recovery type byte outside {0, 1, 2}"""

    def __init__(self, code: int):
        super().__init__(f"Unknown recovery type code: {code}")
        self.code = code


class UnknownStatusCode(SsoError, ValueError):
    """Session status code outside the on-chain enum"""

    def __init__(self, code: int):
        super().__init__(f"Unknown session status code: {code}")
        self.code = code


class SignatureFailure(SsoError):
    """The underlying signer rejected the hash"""
