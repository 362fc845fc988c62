"""PEM and X.509 decoding on top of ``cryptography``.

These helpers raise the underlying I/O and decode errors unchanged; the
identity loader and trust pool builder decide how to report them.
"""

from __future__ import annotations

import logging
import os
import re
import ssl

import certifi
from cryptography import x509
from cryptography.hazmat.primitives import serialization

logger = logging.getLogger(__name__)

_CERT_MARKER = b"-----BEGIN CERTIFICATE-----"
_CERT_BLOCK_RE = re.compile(
    rb"-----BEGIN CERTIFICATE-----.*?-----END CERTIFICATE-----", re.DOTALL
)


def parse_certificate_bundle(data: bytes) -> list[x509.Certificate]:
    """Decode every CERTIFICATE block in *data*.

    Other PEM blocks (keys, CRLs) are skipped, so data holding no
    certificate block yields an empty list.

    Raises:
        ValueError: If a certificate block is truncated or cannot be decoded.
    """
    blocks = _CERT_BLOCK_RE.findall(data)
    if len(blocks) != data.count(_CERT_MARKER):
        raise ValueError("unterminated CERTIFICATE block")
    if not blocks:
        return []
    return x509.load_pem_x509_certificates(b"\n".join(blocks))


def read_certificate_file(path: str) -> list[x509.Certificate]:
    with open(path, "rb") as f:
        data = f.read()
    return parse_certificate_bundle(data)


def _public_der(public_key) -> bytes:
    return public_key.public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def load_key_pair(cert_file: str, key_file: str, passphrase=None):
    """Load a certificate chain and the private key matching its leaf.

    Returns:
        Tuple of (certificates, private_key), certificates leaf first.

    Raises:
        OSError: If either file cannot be read.
        ValueError: If either file cannot be decoded or the key does not
            match the leaf certificate.
        TypeError: If the key is encrypted and no passphrase was given, or a
            passphrase was given for an unencrypted key.
    """
    certificates = read_certificate_file(cert_file)
    if not certificates:
        raise ValueError(f"no certificates found in {cert_file!r}")

    with open(key_file, "rb") as f:
        key_data = f.read()
    password = passphrase.encode("utf-8") if isinstance(passphrase, str) else passphrase
    private_key = serialization.load_pem_private_key(key_data, password=password)

    if _public_der(private_key.public_key()) != _public_der(certificates[0].public_key()):
        raise ValueError("private key does not match the certificate public key")
    return certificates, private_key


def _system_bundle_paths() -> list[str]:
    paths = ssl.get_default_verify_paths()
    if paths.cafile and os.path.isfile(paths.cafile):
        return [paths.cafile]
    if paths.capath and os.path.isdir(paths.capath):
        found = []
        for name in sorted(os.listdir(paths.capath)):
            full = os.path.join(paths.capath, name)
            if os.path.isfile(full):
                found.append(full)
        if found:
            return found
    return [certifi.where()]


def read_system_trust_pool() -> list[x509.Certificate]:
    """Read the platform trust store.

    Uses the default OpenSSL CA file, then the default CA directory, and
    falls back to the certifi bundle when neither exists.
    """
    certificates = []
    for path in _system_bundle_paths():
        with open(path, "rb") as f:
            data = f.read()
        if _CERT_MARKER not in data:
            continue
        certificates.extend(parse_certificate_bundle(data))
    logger.debug("Read %d system root certificates", len(certificates))
    return certificates
