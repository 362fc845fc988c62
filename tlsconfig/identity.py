"""Resolve an optional certificate/key pair into a loaded identity."""

from __future__ import annotations

import logging
from typing import Optional

from cryptography.exceptions import UnsupportedAlgorithm

from tlsconfig.errors import EncryptedKeyError, IdentityLoadFailure, InvalidConfiguration
from tlsconfig.models import LoadedIdentity
from tlsconfig.x509_loader import load_key_pair

logger = logging.getLogger(__name__)


def load_identity(cert_file: str, key_file: str, passphrase=None, role=None) -> Optional[LoadedIdentity]:
    """Load the identity at *cert_file*/*key_file*, or ``None`` if neither is set.

    Raises:
        InvalidConfiguration: If only one of the two paths is given.
        EncryptedKeyError: If the key is encrypted and no passphrase was given.
        IdentityLoadFailure: If either file cannot be read or decoded.
    """
    if not cert_file and not key_file:
        return None
    if not cert_file or not key_file:
        raise InvalidConfiguration(
            "certificate and key must both be supplied or both omitted "
            f"(cert_file={cert_file!r}, key_file={key_file!r})",
            role=role,
        )

    try:
        certificates, private_key = load_key_pair(cert_file, key_file, passphrase)
    except TypeError as e:
        if passphrase is None:
            raise EncryptedKeyError(
                f"private key {key_file!r} is encrypted; a passphrase is required",
                cert_file=cert_file, key_file=key_file, role=role,
            ) from e
        raise IdentityLoadFailure(
            f"failed to load key pair ({cert_file!r}, {key_file!r}): {e}",
            cert_file=cert_file, key_file=key_file, role=role,
        ) from e
    except (OSError, ValueError, UnsupportedAlgorithm) as e:
        raise IdentityLoadFailure(
            f"failed to load key pair ({cert_file!r}, {key_file!r}): {e}",
            cert_file=cert_file, key_file=key_file, role=role,
        ) from e

    logger.debug("Loaded identity %s from %s", certificates[0].subject.rfc4514_string(), cert_file)
    return LoadedIdentity(
        cert_file=cert_file,
        key_file=key_file,
        certificates=tuple(certificates),
        private_key=private_key,
        passphrase=passphrase,
    )
