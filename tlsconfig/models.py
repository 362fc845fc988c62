"""Request, identity, and resolved-policy data types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Optional

from cryptography.hazmat.primitives import serialization

from tlsconfig.errors import InvalidConfiguration


class Role(str, Enum):
    SERVER = "server"
    CLIENT = "client"

    def __str__(self) -> str:
        return self.value


class ClientAuthPolicy(IntEnum):
    """Server-side client certificate policy, ordered weakest to strongest."""

    NONE = 0
    REQUEST = 1
    REQUIRE_ANY = 2
    VERIFY_IF_GIVEN = 3
    REQUIRE_AND_VERIFY = 4

    @classmethod
    def parse(cls, value, role=None) -> "ClientAuthPolicy":
        """Resolve a member, its rank, or a name like ``"verify-if-given"``."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                pass
        elif isinstance(value, str):
            key = value.strip().upper().replace("-", "_")
            if key in cls.__members__:
                return cls[key]
        choices = ", ".join(m.name.lower().replace("_", "-") for m in cls)
        raise InvalidConfiguration(
            f"unknown client auth policy {value!r} (expected one of: {choices})",
            role=role,
        )

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")


@dataclass(frozen=True)
class ConfigurationRequest:
    cert_file: str = ""
    key_file: str = ""
    passphrase: Optional[str] = None
    ca_file: str = ""
    client_auth: ClientAuthPolicy = ClientAuthPolicy.NONE
    min_version: Any = None
    insecure_skip_verify: bool = False
    exclusive_root_pools: bool = False

    def __repr__(self) -> str:
        # keep passphrases out of logs and tracebacks
        masked = "***" if self.passphrase else None
        return (
            f"ConfigurationRequest(cert_file={self.cert_file!r}, "
            f"key_file={self.key_file!r}, passphrase={masked!r}, "
            f"ca_file={self.ca_file!r}, client_auth={self.client_auth!r}, "
            f"min_version={self.min_version!r}, "
            f"insecure_skip_verify={self.insecure_skip_verify}, "
            f"exclusive_root_pools={self.exclusive_root_pools})"
        )


@dataclass(frozen=True)
class LoadedIdentity:
    """A certificate chain and its matching private key."""

    cert_file: str
    key_file: str
    certificates: tuple
    private_key: Any
    passphrase: Optional[str] = None

    @property
    def leaf(self):
        return self.certificates[0]

    @property
    def chain_der(self) -> list[bytes]:
        """DER encoding of every certificate, in file order."""
        return [
            cert.public_bytes(serialization.Encoding.DER)
            for cert in self.certificates
        ]

    def __repr__(self) -> str:
        return (
            f"LoadedIdentity(cert_file={self.cert_file!r}, "
            f"key_file={self.key_file!r}, chain_length={len(self.certificates)})"
        )


@dataclass(frozen=True)
class ResolvedPolicy:
    """Finished TLS policy handed to the transport layer."""

    role: Role
    min_version: Any
    cipher_suites: tuple
    prefer_server_cipher_suites: bool = False
    identity: Optional[LoadedIdentity] = None
    trust_pool: Any = None
    client_auth: Optional[ClientAuthPolicy] = None
    insecure_skip_verify: bool = False

    @property
    def client_cas(self):
        """Pool used to verify client certificates (server role)."""
        return self.trust_pool if self.role is Role.SERVER else None

    @property
    def root_cas(self):
        """Pool used to verify the server certificate (client role)."""
        return self.trust_pool if self.role is Role.CLIENT else None

    def to_dict(self) -> dict:
        pool = self.trust_pool
        data = {
            "role": self.role.value,
            "min_version": self.min_version.name,
            "cipher_suites": list(self.cipher_suites),
            "prefer_server_cipher_suites": self.prefer_server_cipher_suites,
            "identity": None,
            "trust_pool": None,
        }
        if self.identity is not None:
            data["identity"] = {
                "cert_file": self.identity.cert_file,
                "key_file": self.identity.key_file,
                "subject": self.identity.leaf.subject.rfc4514_string(),
                "chain_length": len(self.identity.certificates),
            }
        if pool is not None:
            data["trust_pool"] = {"origin": pool.origin, "certificates": len(pool)}
        if self.role is Role.SERVER:
            data["client_auth"] = self.client_auth.label
        else:
            data["insecure_skip_verify"] = self.insecure_skip_verify
        return data
