"""Configuration module: build ConfigurationRequest from env vars or YAML."""
import dataclasses
import os

import yaml

from tlsconfig.errors import InvalidConfiguration
from tlsconfig.models import ClientAuthPolicy, ConfigurationRequest, Role

_FIELDS = {f.name for f in dataclasses.fields(ConfigurationRequest)}
_BOOL_FIELDS = ("insecure_skip_verify", "exclusive_root_pools")

def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")

def _common_env() -> dict:
    return dict(
        cert_file=os.environ.get("TLS_CERT_FILE", ConfigurationRequest.cert_file),
        key_file=os.environ.get("TLS_KEY_FILE", ConfigurationRequest.key_file),
        passphrase=os.environ.get("TLS_KEY_PASSPHRASE") or None,
        ca_file=os.environ.get("TLS_CA_FILE", ConfigurationRequest.ca_file),
        min_version=os.environ.get("TLS_MIN_VERSION") or None,
        exclusive_root_pools=_parse_bool(os.environ.get("TLS_EXCLUSIVE_ROOT_POOLS", "false")),
    )

def load_server_request() -> ConfigurationRequest:
    return ConfigurationRequest(
        client_auth=ClientAuthPolicy.parse(os.environ.get("TLS_CLIENT_AUTH", "none"), role=Role.SERVER),
        **_common_env(),
    )

def load_client_request() -> ConfigurationRequest:
    return ConfigurationRequest(
        insecure_skip_verify=_parse_bool(os.environ.get("TLS_INSECURE_SKIP_VERIFY", "false")),
        **_common_env(),
    )

def load_request(role) -> ConfigurationRequest:
    if Role(role) is Role.SERVER:
        return load_server_request()
    return load_client_request()

def load_yaml(path: str = None) -> dict:
    """Load YAML config from *path* and return as a dict.

    Without an explicit *path*, ``CONFIG_PATH`` is used, then ``tls.yml``.
    """
    path = path or os.environ.get("CONFIG_PATH", "tls.yml")
    with open(path, "r") as f:
        try:
            return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise InvalidConfiguration(f"invalid YAML in {path!r}: {e}") from e

def request_from_mapping(data: dict, role, base: ConfigurationRequest = None) -> ConfigurationRequest:
    """Overlay the *role* section of *data* (or *data* itself) onto *base*."""
    role = Role(role)
    section = data.get(role.value, data) if isinstance(data, dict) else None
    if not isinstance(section, dict):
        raise InvalidConfiguration(f"expected a mapping for {role} TLS settings", role=role)

    settings = {k: v for k, v in section.items() if k not in ("server", "client")}
    unknown = sorted(set(settings) - _FIELDS)
    if unknown:
        raise InvalidConfiguration(f"unknown TLS settings: {', '.join(unknown)}", role=role)

    for name in _BOOL_FIELDS:
        if name in settings and isinstance(settings[name], str):
            settings[name] = _parse_bool(settings[name])
    if "client_auth" in settings:
        settings["client_auth"] = ClientAuthPolicy.parse(settings["client_auth"], role=role)
    if isinstance(settings.get("min_version"), float):
        # YAML reads an unquoted 1.2 as a float
        settings["min_version"] = str(settings["min_version"])
    for name in ("cert_file", "key_file", "ca_file"):
        if name in settings and settings[name] is None:
            settings[name] = ""

    return dataclasses.replace(base or ConfigurationRequest(), **settings)
