"""Error taxonomy for TLS policy assembly.

Every error is terminal for the call that raised it. Messages carry the role
and the offending path or version so they can be acted on without reading
the source.
"""

from __future__ import annotations


class TLSConfigError(Exception):
    """Base class for all configuration assembly failures."""

    def __init__(self, message: str, *, role=None):
        self.role = role
        self.message = message
        prefix = f"[{role}] " if role is not None else ""
        super().__init__(prefix + message)


class InvalidConfiguration(TLSConfigError):
    """Raised when the request itself is inconsistent (e.g. cert without key)."""


class IdentityLoadFailure(TLSConfigError):
    """Raised when the certificate/key pair cannot be read or parsed."""

    def __init__(self, message: str, *, cert_file: str, key_file: str, role=None):
        self.cert_file = cert_file
        self.key_file = key_file
        super().__init__(message, role=role)


class EncryptedKeyError(IdentityLoadFailure):
    """Raised when the private key is encrypted and no passphrase was given."""


class TrustBundleLoadFailure(TLSConfigError):
    """Raised when a CA bundle or the system trust store cannot be loaded."""

    def __init__(self, message: str, *, path: str, role=None):
        self.path = path
        super().__init__(message, role=role)


class InvalidVersion(TLSConfigError):
    """Raised when a requested minimum version is not a known protocol version."""

    def __init__(self, message: str, *, version, role=None):
        self.version = version
        super().__init__(message, role=role)


class VersionTooLow(TLSConfigError):
    """Raised when a requested minimum version is below the role floor."""

    def __init__(self, message: str, *, version, floor, role=None):
        self.version = version
        self.floor = floor
        super().__init__(message, role=role)


class UntrustedCertificate(TLSConfigError):
    """Raised when a certificate does not chain to any root in a trust pool."""
