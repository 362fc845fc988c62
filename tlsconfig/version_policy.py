"""Minimum protocol version validation and per-role cipher suite lists."""

from __future__ import annotations

import re
import ssl
from dataclasses import dataclass
from enum import IntEnum

from tlsconfig.errors import InvalidVersion, VersionTooLow
from tlsconfig.models import Role


class ProtocolVersion(IntEnum):
    """Known protocol versions, valued with their wire codes."""

    SSLv3 = 0x0300
    TLSv1 = 0x0301
    TLSv1_1 = 0x0302
    TLSv1_2 = 0x0303
    TLSv1_3 = 0x0304

    def to_ssl(self) -> ssl.TLSVersion:
        return ssl.TLSVersion(int(self))


SERVER_FLOOR = ProtocolVersion.TLSv1
CLIENT_FLOOR = ProtocolVersion.TLSv1_2

_FLOORS = {
    Role.SERVER: SERVER_FLOOR,
    Role.CLIENT: CLIENT_FLOOR,
}

# OpenSSL names. TLS 1.3 suites are not configurable through set_ciphers.
SERVER_CIPHER_SUITES = (
    "ECDHE-ECDSA-AES256-GCM-SHA384",
    "ECDHE-RSA-AES256-GCM-SHA384",
    "ECDHE-ECDSA-AES128-GCM-SHA256",
    "ECDHE-RSA-AES128-GCM-SHA256",
    "ECDHE-RSA-AES256-SHA",
    "ECDHE-RSA-AES128-SHA",
    "AES256-SHA",
    "AES128-SHA",
)

CLIENT_CIPHER_SUITES = (
    "ECDHE-RSA-AES256-GCM-SHA384",
    "ECDHE-RSA-AES128-GCM-SHA256",
    "ECDHE-ECDSA-AES256-GCM-SHA384",
    "ECDHE-ECDSA-AES128-GCM-SHA256",
)

_NAME_RE = re.compile(r"^(?P<proto>ssl|tls)?v?(?P<major>\d)(?:[._](?P<minor>\d))?$")


@dataclass(frozen=True)
class VersionPolicy:
    min_version: ProtocolVersion
    cipher_suites: tuple
    prefer_server_cipher_suites: bool


def role_floor(role: Role) -> ProtocolVersion:
    return _FLOORS[Role(role)]


def _lookup_name(text: str):
    if text in ProtocolVersion.__members__:
        return ProtocolVersion[text]
    match = _NAME_RE.match(text.strip().lower().replace(" ", ""))
    if match is None:
        return None
    major, minor = int(match.group("major")), match.group("minor")
    if match.group("proto") is None and minor is None:
        # a bare "1" reads as an integer, not a version name
        return None
    proto = match.group("proto") or "tls"
    if proto == "ssl":
        return ProtocolVersion.SSLv3 if major == 3 and minor in (None, "0") else None
    if major != 1:
        return None
    return {
        None: ProtocolVersion.TLSv1,
        "0": ProtocolVersion.TLSv1,
        "1": ProtocolVersion.TLSv1_1,
        "2": ProtocolVersion.TLSv1_2,
        "3": ProtocolVersion.TLSv1_3,
    }.get(minor)


def resolve_version(value, role=None) -> ProtocolVersion:
    """Map a version identifier onto a ProtocolVersion.

    Accepts a ProtocolVersion, an ``ssl.TLSVersion``, a wire code such as
    ``0x0303``, or a name such as ``"TLSv1.2"``, ``"tls1.2"`` or ``"1.2"``.

    Raises:
        InvalidVersion: If the value is not a known protocol version.
    """
    version = None
    if isinstance(value, ProtocolVersion):
        version = value
    elif isinstance(value, int) and not isinstance(value, bool):
        try:
            version = ProtocolVersion(int(value))
        except ValueError:
            pass
    elif isinstance(value, str):
        version = _lookup_name(value)

    if version is None:
        raise InvalidVersion(
            f"invalid minimum TLS version {value!r}", version=value, role=role
        )
    return version


def select_version_policy(role: Role, requested=None) -> VersionPolicy:
    """Validate *requested* against the role floor and attach the cipher list.

    Raises:
        InvalidVersion: If *requested* is not a known version.
        VersionTooLow: If *requested* is below the role floor.
    """
    role = Role(role)
    floor = role_floor(role)

    if requested is None:
        min_version = floor
    else:
        min_version = resolve_version(requested, role=role)
        if min_version < floor:
            raise VersionTooLow(
                f"minimum TLS version {min_version.name} is below the "
                f"{role} floor {floor.name}",
                version=min_version,
                floor=floor,
                role=role,
            )

    if role is Role.SERVER:
        return VersionPolicy(min_version, SERVER_CIPHER_SUITES, True)
    return VersionPolicy(min_version, CLIENT_CIPHER_SUITES, False)
