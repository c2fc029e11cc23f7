"""Shared test fixtures."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from trust_sync.core.certificate import certificate_pem
from trust_sync.core.config import HostEnvironment, InstallConfig


def make_certificate(
    serial: int = 1234567890, common_name: str = "Test Root CA"
) -> x509.Certificate:
    """Build a throwaway self-signed CA certificate."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(UTC)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(serial)
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )


@pytest.fixture
def cert() -> x509.Certificate:
    return make_certificate()


@pytest.fixture
def cert_factory():
    """Build extra certificates with chosen serial numbers."""
    return make_certificate


@pytest.fixture
def cert_file(tmp_path: Path, cert: x509.Certificate) -> Path:
    """PEM file holding the test certificate."""
    path = tmp_path / "rootCA.pem"
    path.write_bytes(certificate_pem(cert))
    return path


@pytest.fixture
def environment(tmp_path: Path) -> HostEnvironment:
    """Host environment rooted in a temporary home directory."""
    home = tmp_path / "home"
    home.mkdir()
    return HostEnvironment(home=home, system="Linux")


@pytest.fixture
def config(environment: HostEnvironment) -> InstallConfig:
    return InstallConfig(environment=environment)
