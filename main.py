"""tlsconfig: resolve a server or client TLS policy and print it as JSON."""

import json
import logging
import sys
from argparse import ArgumentParser

from tlsconfig.assembler import assemble_policy
from tlsconfig.config import load_request, load_yaml, request_from_mapping
from tlsconfig.errors import TLSConfigError
from tlsconfig.tls_context import create_context


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="tlsconfig",
        description="Resolve a TLS server or client policy from declarative options.",
    )
    parser.add_argument("role", choices=["server", "client"], help="Policy role")
    parser.add_argument("--config", help="YAML file with a server: or client: section")
    parser.add_argument("--cert-file", help="Identity certificate (PEM)")
    parser.add_argument("--key-file", help="Identity private key (PEM)")
    parser.add_argument("--ca-file", help="CA bundle (PEM)")
    parser.add_argument("--min-version", help="Minimum protocol version (e.g. TLSv1.2)")
    parser.add_argument(
        "--client-auth",
        help="Client auth policy: none, request, require-any, verify-if-given, require-and-verify",
    )
    parser.add_argument(
        "--insecure-skip-verify",
        action="store_true",
        help="Disable server certificate verification (client only)",
    )
    parser.add_argument(
        "--exclusive-root-pools",
        action="store_true",
        help="Replace the system trust store with the CA bundle instead of merging",
    )
    parser.add_argument(
        "--build-context",
        action="store_true",
        help="Also build an ssl.SSLContext from the resolved policy",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def build_request(args):
    """Environment first, then the YAML file, then command-line flags."""
    request = load_request(args.role)
    if args.config:
        request = request_from_mapping(load_yaml(args.config), args.role, base=request)

    overrides = {}
    for name in ("cert_file", "key_file", "ca_file", "min_version", "client_auth"):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    if args.insecure_skip_verify:
        overrides["insecure_skip_verify"] = True
    if args.exclusive_root_pools:
        overrides["exclusive_root_pools"] = True
    if overrides:
        request = request_from_mapping(overrides, args.role, base=request)
    return request


def run(args) -> dict:
    request = build_request(args)
    policy = assemble_policy(args.role, request)
    result = policy.to_dict()
    if args.build_context:
        ctx = create_context(policy)
        result["context"] = {
            "minimum_version": ctx.minimum_version.name,
            "verify_mode": ctx.verify_mode.name,
            "ca_certs_loaded": len(ctx.get_ca_certs()),
        }
    return result


def main():
    parser = build_parser()
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        result = run(args)
    except (TLSConfigError, OSError) as e:
        print(f"[TLSCONFIG] Error: {e}", file=sys.stderr)
        sys.exit(1)
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
