"""Assemble server and client TLS policies from a configuration request.

Both entry points run identity loading, trust pool building and version
selection in that order and let the first error propagate. A policy is only
ever returned whole.
"""

from __future__ import annotations

import logging
from typing import Optional

from tlsconfig.identity import load_identity
from tlsconfig.models import ClientAuthPolicy, ConfigurationRequest, ResolvedPolicy, Role
from tlsconfig.trust_pool import DEFAULT_SYSTEM_STORE, SystemTrustStore, build_trust_pool
from tlsconfig.version_policy import select_version_policy

logger = logging.getLogger(__name__)


def assemble_server_policy(request: ConfigurationRequest, system_store: Optional[SystemTrustStore] = None) -> ResolvedPolicy:
    """Build the server-side policy for *request*."""
    role = Role.SERVER
    store = system_store or DEFAULT_SYSTEM_STORE
    client_auth = ClientAuthPolicy.parse(request.client_auth, role=role)

    identity = load_identity(request.cert_file, request.key_file, request.passphrase, role=role)
    pool = build_trust_pool(request.ca_file, request.exclusive_root_pools, store, role=role)
    versions = select_version_policy(role, request.min_version)

    if pool is not None and client_auth < ClientAuthPolicy.VERIFY_IF_GIVEN:
        # the bundle was still parsed above so a broken CA file fails fast
        logger.debug(
            "Client auth %s does not verify certificates; not attaching %s",
            client_auth.label, pool,
        )
        pool = None

    policy = ResolvedPolicy(
        role=role,
        min_version=versions.min_version,
        cipher_suites=versions.cipher_suites,
        prefer_server_cipher_suites=versions.prefer_server_cipher_suites,
        identity=identity,
        trust_pool=pool,
        client_auth=client_auth,
    )
    logger.info(
        "Assembled server TLS policy: min=%s client_auth=%s client_cas=%s",
        policy.min_version.name, client_auth.label, pool,
    )
    return policy


def assemble_client_policy(request: ConfigurationRequest, system_store: Optional[SystemTrustStore] = None) -> ResolvedPolicy:
    """Build the client-side policy for *request*."""
    role = Role.CLIENT
    store = system_store or DEFAULT_SYSTEM_STORE

    identity = load_identity(request.cert_file, request.key_file, request.passphrase, role=role)
    pool = build_trust_pool(request.ca_file, request.exclusive_root_pools, store, role=role)
    versions = select_version_policy(role, request.min_version)

    if pool is not None and request.insecure_skip_verify:
        logger.debug("Server verification disabled; not attaching %s", pool)
        pool = None

    policy = ResolvedPolicy(
        role=role,
        min_version=versions.min_version,
        cipher_suites=versions.cipher_suites,
        prefer_server_cipher_suites=versions.prefer_server_cipher_suites,
        identity=identity,
        trust_pool=pool,
        insecure_skip_verify=request.insecure_skip_verify,
    )
    if request.insecure_skip_verify:
        logger.warning("Client TLS policy skips server certificate verification")
    logger.info("Assembled client TLS policy: min=%s root_cas=%s", policy.min_version.name, pool)
    return policy


def assemble_policy(role, request: ConfigurationRequest, system_store: Optional[SystemTrustStore] = None) -> ResolvedPolicy:
    if Role(role) is Role.SERVER:
        return assemble_server_policy(request, system_store)
    return assemble_client_policy(request, system_store)
