"""Shared pytest fixtures: throwaway PKI material and a fake system trust store."""

from __future__ import annotations

import datetime

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from tlsconfig.trust_pool import SystemTrustStore

# ---------------------------------------------------------------------------
# Certificate generation helpers
# ---------------------------------------------------------------------------


def _name(common_name: str) -> x509.Name:
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])


def _key_usage(ca: bool) -> x509.KeyUsage:
    return x509.KeyUsage(
        digital_signature=True,
        content_commitment=False,
        key_encipherment=False,
        data_encipherment=False,
        key_agreement=False,
        key_cert_sign=ca,
        crl_sign=ca,
        encipher_only=False,
        decipher_only=False,
    )


def _validity(builder: x509.CertificateBuilder) -> x509.CertificateBuilder:
    now = datetime.datetime.now(datetime.timezone.utc)
    return builder.not_valid_before(now - datetime.timedelta(days=1)).not_valid_after(
        now + datetime.timedelta(days=365)
    )


def make_ca(common_name: str, key=None):
    """Return a self-signed (certificate, key) root CA."""
    key = key or ec.generate_private_key(ec.SECP256R1())
    builder = (
        x509.CertificateBuilder()
        .subject_name(_name(common_name))
        .issuer_name(_name(common_name))
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .add_extension(x509.BasicConstraints(ca=True, path_length=1), critical=True)
        .add_extension(_key_usage(ca=True), critical=True)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(key.public_key()), critical=False
        )
    )
    cert = _validity(builder).sign(key, hashes.SHA256())
    return cert, key


def issue_leaf(ca_cert, ca_key, common_name: str = "localhost"):
    """Return a (certificate, key) end-entity pair signed by the given CA."""
    key = ec.generate_private_key(ec.SECP256R1())
    builder = (
        x509.CertificateBuilder()
        .subject_name(_name(common_name))
        .issuer_name(ca_cert.subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(_key_usage(ca=False), critical=True)
        .add_extension(
            x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH, ExtendedKeyUsageOID.CLIENT_AUTH]),
            critical=False,
        )
        .add_extension(x509.SubjectAlternativeName([x509.DNSName(common_name)]), critical=False)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_key.public_key()), critical=False
        )
    )
    cert = _validity(builder).sign(ca_key, hashes.SHA256())
    return cert, key


def cert_pem(*certs) -> bytes:
    return b"".join(c.public_bytes(serialization.Encoding.PEM) for c in certs)


def key_pem(key, passphrase: bytes = None) -> bytes:
    encryption = (
        serialization.BestAvailableEncryption(passphrase)
        if passphrase
        else serialization.NoEncryption()
    )
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        encryption,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def custom_ca():
    """Root CA that only ever appears in a CA bundle file."""
    return make_ca("tlsconfig test CA")


@pytest.fixture(scope="session")
def rsa_ca():
    return make_ca("tlsconfig test RSA CA", key=rsa.generate_private_key(65537, 2048))


@pytest.fixture(scope="session")
def system_root():
    """Root CA that plays the part of a platform-trusted root."""
    return make_ca("tlsconfig fake system root")


@pytest.fixture()
def system_store(system_root):
    return SystemTrustStore(loader=lambda: [system_root[0]])


@pytest.fixture()
def broken_system_store():
    def loader():
        raise OSError("no trust store on this host")

    return SystemTrustStore(loader=loader)


@pytest.fixture()
def leaf_factory():
    """Return a function issuing a leaf certificate from a (cert, key) CA."""

    def factory(ca, common_name: str = "localhost"):
        return issue_leaf(ca[0], ca[1], common_name)[0]

    return factory


@pytest.fixture()
def ca_bundle(tmp_path, custom_ca):
    path = tmp_path / "ca.pem"
    path.write_bytes(cert_pem(custom_ca[0]))
    return str(path)


@pytest.fixture()
def multi_ca_bundle(tmp_path, custom_ca, rsa_ca):
    """CA bundle holding one RSA and one ECDSA root."""
    path = tmp_path / "multi.pem"
    path.write_bytes(cert_pem(rsa_ca[0], custom_ca[0]))
    return str(path)


@pytest.fixture()
def empty_file(tmp_path):
    path = tmp_path / "empty.pem"
    path.write_bytes(b"")
    return str(path)


@pytest.fixture()
def malformed_pem(tmp_path):
    path = tmp_path / "broken.pem"
    path.write_bytes(b"-----BEGIN CERTIFICATE-----\nbm90IGEgY2VydA==\n-----END CERTIFICATE-----\n")
    return str(path)


@pytest.fixture()
def key_only_pem(tmp_path):
    """PEM file holding a private key and no certificate."""
    path = tmp_path / "key-only.pem"
    path.write_bytes(key_pem(ec.generate_private_key(ec.SECP256R1())))
    return str(path)


@pytest.fixture()
def cert_and_key_bundle(tmp_path, custom_ca):
    """CA bundle with a private key block ahead of the certificate."""
    path = tmp_path / "mixed.pem"
    path.write_bytes(key_pem(custom_ca[1]) + cert_pem(custom_ca[0]))
    return str(path)


@pytest.fixture()
def truncated_pem(tmp_path, custom_ca):
    path = tmp_path / "truncated.pem"
    path.write_bytes(cert_pem(custom_ca[0])[:-40])
    return str(path)


@pytest.fixture()
def cert_and_key(tmp_path, custom_ca):
    """Write a leaf plus its issuing CA as a chain; return (cert_path, key_path)."""
    leaf, key = issue_leaf(*custom_ca)
    cert_path = tmp_path / "cert.pem"
    key_path = tmp_path / "key.pem"
    cert_path.write_bytes(cert_pem(leaf, custom_ca[0]))
    key_path.write_bytes(key_pem(key))
    return str(cert_path), str(key_path)


@pytest.fixture()
def encrypted_cert_and_key(tmp_path, custom_ca):
    leaf, key = issue_leaf(*custom_ca)
    cert_path = tmp_path / "enc-cert.pem"
    key_path = tmp_path / "enc-key.pem"
    cert_path.write_bytes(cert_pem(leaf))
    key_path.write_bytes(key_pem(key, passphrase=b"s3cret"))
    return str(cert_path), str(key_path)


@pytest.fixture()
def mismatched_cert_and_key(tmp_path, custom_ca):
    leaf, _ = issue_leaf(*custom_ca)
    _, other_key = issue_leaf(*custom_ca)
    cert_path = tmp_path / "cert.pem"
    key_path = tmp_path / "other-key.pem"
    cert_path.write_bytes(cert_pem(leaf))
    key_path.write_bytes(key_pem(other_key))
    return str(cert_path), str(key_path)
