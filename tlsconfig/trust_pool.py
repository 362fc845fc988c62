"""Trusted root pools and the CA bundle policy that builds them."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.x509.verification import PolicyBuilder, Store, VerificationError

from tlsconfig.errors import TrustBundleLoadFailure, UntrustedCertificate
from tlsconfig.x509_loader import read_certificate_file, read_system_trust_pool

logger = logging.getLogger(__name__)

SYSTEM = "system"
MERGED = "merged"
EXCLUSIVE = "exclusive"


class TrustPool:
    """Immutable set of root certificates, deduplicated by DER encoding."""

    def __init__(self, certificates: Iterable[x509.Certificate] = (), origin: str = EXCLUSIVE):
        self._certs: dict[bytes, x509.Certificate] = {}
        for cert in certificates:
            self._certs.setdefault(cert.public_bytes(serialization.Encoding.DER), cert)
        self.origin = origin

    def __len__(self) -> int:
        return len(self._certs)

    def __iter__(self):
        return iter(self._certs.values())

    def __contains__(self, cert) -> bool:
        if not isinstance(cert, x509.Certificate):
            return False
        return cert.public_bytes(serialization.Encoding.DER) in self._certs

    def __repr__(self) -> str:
        return f"TrustPool(origin={self.origin!r}, certificates={len(self)})"

    def subjects(self) -> list[x509.Name]:
        return [cert.subject for cert in self]

    def union(self, certificates: Iterable[x509.Certificate], origin: str = MERGED) -> "TrustPool":
        return TrustPool([*self, *certificates], origin=origin)

    def to_pem(self) -> str:
        return "".join(
            cert.public_bytes(serialization.Encoding.PEM).decode("ascii")
            for cert in self
        )

    def verify(self, certificate: x509.Certificate, intermediates=(), at=None) -> list:
        """Verify *certificate* chains to a root in this pool.

        Returns:
            The verified chain, leaf first.

        Raises:
            UntrustedCertificate: If no chain to a pool root can be built.
        """
        if not self._certs:
            raise UntrustedCertificate("trust pool is empty")
        builder = PolicyBuilder().store(Store(list(self)))
        if at is not None:
            builder = builder.time(at)
        verifier = builder.build_client_verifier()
        try:
            verified = verifier.verify(certificate, list(intermediates))
        except VerificationError as e:
            raise UntrustedCertificate(
                f"{certificate.subject.rfc4514_string()} does not chain to a "
                f"trusted root: {e}"
            ) from e
        return verified.chain

    def is_trusted(self, certificate: x509.Certificate, intermediates=(), at=None) -> bool:
        try:
            self.verify(certificate, intermediates, at)
        except UntrustedCertificate:
            return False
        return True


class SystemTrustStore:
    """Process-wide platform trust store, read once on first use."""

    def __init__(self, loader: Callable[[], Iterable[x509.Certificate]] = read_system_trust_pool):
        self._loader = loader
        self._lock = threading.Lock()
        self._pool: Optional[TrustPool] = None

    def pool(self) -> TrustPool:
        pool = self._pool
        if pool is not None:
            return pool
        with self._lock:
            if self._pool is None:
                try:
                    certificates = list(self._loader())
                except (OSError, ValueError) as e:
                    raise TrustBundleLoadFailure(
                        f"failed to read system certificates: {e}", path="<system>"
                    ) from e
                self._pool = TrustPool(certificates, origin=SYSTEM)
                logger.debug("Loaded system trust store (%d roots)", len(self._pool))
            return self._pool


DEFAULT_SYSTEM_STORE = SystemTrustStore()


def build_trust_pool(ca_file: str, exclusive: bool, system_store: SystemTrustStore, role=None) -> Optional[TrustPool]:
    """Resolve a CA bundle path into the pool a policy should trust.

    No bundle gives ``None`` (the transport's implicit default), except
    under *exclusive*, where the system pool is returned explicitly. A bundle
    is merged with the system pool, or replaces it under *exclusive*.

    Raises:
        TrustBundleLoadFailure: If the bundle or the system store cannot be
            read or parsed.
    """
    if not ca_file:
        if not exclusive:
            return None
        try:
            return system_store.pool()
        except TrustBundleLoadFailure as e:
            raise TrustBundleLoadFailure(e.message, path=e.path, role=role) from e

    try:
        bundle = read_certificate_file(ca_file)
    except (OSError, ValueError) as e:
        raise TrustBundleLoadFailure(
            f"failed to load CA bundle {ca_file!r}: {e}", path=ca_file, role=role
        ) from e

    if exclusive:
        pool = TrustPool(bundle, origin=EXCLUSIVE)
    else:
        try:
            system = system_store.pool()
        except TrustBundleLoadFailure as e:
            raise TrustBundleLoadFailure(e.message, path=e.path, role=role) from e
        pool = system.union(bundle, origin=MERGED)

    logger.debug(
        "Built %s trust pool from %s (%d bundle certs, %d total)",
        pool.origin, ca_file, len(bundle), len(pool),
    )
    return pool
