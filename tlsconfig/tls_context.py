"""SSLContext factory functions for server and client policies."""

import logging
import ssl

from tlsconfig.models import ClientAuthPolicy, ResolvedPolicy, Role
from tlsconfig.version_policy import CLIENT_CIPHER_SUITES, CLIENT_FLOOR, SERVER_CIPHER_SUITES, SERVER_FLOOR

logger = logging.getLogger(__name__)

_VERIFY_MODES = {
    ClientAuthPolicy.VERIFY_IF_GIVEN: ssl.CERT_OPTIONAL,
    ClientAuthPolicy.REQUIRE_AND_VERIFY: ssl.CERT_REQUIRED,
}


def _apply_versions(ctx: ssl.SSLContext, min_version, cipher_suites) -> None:
    # TLSv1 and TLSv1_1 minimums emit DeprecationWarning on Python 3.10+
    ctx.minimum_version = min_version.to_ssl()
    ctx.set_ciphers(":".join(cipher_suites))


def _load_pool(ctx: ssl.SSLContext, pool, purpose: ssl.Purpose) -> None:
    if pool is None:
        ctx.load_default_certs(purpose)
    elif len(pool):
        ctx.load_verify_locations(cadata=pool.to_pem())


def server_default() -> ssl.SSLContext:
    """Create a server context with the default floor and cipher list only."""
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    _apply_versions(ctx, SERVER_FLOOR, SERVER_CIPHER_SUITES)
    ctx.options |= ssl.OP_CIPHER_SERVER_PREFERENCE
    return ctx


def client_default() -> ssl.SSLContext:
    """Create a client context with the default floor and cipher list only."""
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    _apply_versions(ctx, CLIENT_FLOOR, CLIENT_CIPHER_SUITES)
    return ctx


def create_server_context(policy: ResolvedPolicy) -> ssl.SSLContext:
    """Create an SSL context for a resolved server policy."""
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    if policy.identity is not None:
        ctx.load_cert_chain(
            certfile=policy.identity.cert_file,
            keyfile=policy.identity.key_file,
            password=policy.identity.passphrase,
        )
    _apply_versions(ctx, policy.min_version, policy.cipher_suites)
    if policy.prefer_server_cipher_suites:
        ctx.options |= ssl.OP_CIPHER_SERVER_PREFERENCE

    verify_mode = _VERIFY_MODES.get(policy.client_auth, ssl.CERT_NONE)
    if verify_mode == ssl.CERT_NONE and policy.client_auth not in (None, ClientAuthPolicy.NONE):
        # ssl cannot request a client certificate without verifying it
        logger.debug("Client auth %s maps to CERT_NONE", policy.client_auth.label)
    ctx.verify_mode = verify_mode
    if verify_mode != ssl.CERT_NONE:
        _load_pool(ctx, policy.client_cas, ssl.Purpose.CLIENT_AUTH)
    return ctx


def create_client_context(policy: ResolvedPolicy) -> ssl.SSLContext:
    """Create an SSL context for a resolved client policy."""
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    if policy.identity is not None:
        ctx.load_cert_chain(
            certfile=policy.identity.cert_file,
            keyfile=policy.identity.key_file,
            password=policy.identity.passphrase,
        )
    _apply_versions(ctx, policy.min_version, policy.cipher_suites)

    if policy.insecure_skip_verify:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        return ctx

    _load_pool(ctx, policy.root_cas, ssl.Purpose.SERVER_AUTH)
    ctx.verify_mode = ssl.CERT_REQUIRED
    ctx.check_hostname = True
    return ctx


def create_context(policy: ResolvedPolicy) -> ssl.SSLContext:
    if policy.role is Role.SERVER:
        return create_server_context(policy)
    return create_client_context(policy)
