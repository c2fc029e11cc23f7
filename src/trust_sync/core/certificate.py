"""Certificate loading, serialization, naming and temporary staging."""

from __future__ import annotations

import contextlib
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization

from trust_sync.core.errors import InvalidCertificateError

PEM_MARKER = b"-----BEGIN "
PEM_CERTIFICATE_HEADER = b"-----BEGIN CERTIFICATE-----"


def read_certificate(path: str | os.PathLike[str]) -> x509.Certificate:
    """Read a PEM or DER encoded certificate file.

    PEM is detected by the ``-----BEGIN `` marker; anything else is parsed as
    DER. Raises InvalidCertificateError for undecodable content. I/O errors are
    left to the caller.
    """
    data = Path(path).read_bytes()
    source = str(path)

    if data.startswith(PEM_MARKER):
        if not data.startswith(PEM_CERTIFICATE_HEADER):
            raise InvalidCertificateError(source)
        try:
            return x509.load_pem_x509_certificate(data)
        except ValueError as e:
            raise InvalidCertificateError(source, str(e)) from e

    try:
        return x509.load_der_x509_certificate(data)
    except ValueError as e:
        raise InvalidCertificateError(source, str(e)) from e


def certificate_pem(cert: x509.Certificate) -> bytes:
    """Serialize certificate to a PEM ``CERTIFICATE`` block."""
    return cert.public_bytes(serialization.Encoding.PEM)


def certificate_der(cert: x509.Certificate) -> bytes:
    return cert.public_bytes(serialization.Encoding.DER)


def save_certificate(path: str | os.PathLike[str], cert: x509.Certificate) -> None:
    """Write the certificate as PEM, readable by the owner only."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with open(fd, "wb") as f:
        f.write(certificate_pem(cert))


def fingerprint_hex(cert: x509.Certificate, algorithm: hashes.HashAlgorithm) -> str:
    """Return the fingerprint as uppercase hex without separators."""
    return cert.fingerprint(algorithm).hex().upper()


def trust_alias(cert: x509.Certificate, prefix: str) -> str:
    """Deterministic store alias: prefix followed by the decimal serial number."""
    return f"{prefix}{cert.serial_number}"


def filesystem_name(alias: str) -> str:
    return alias.replace(" ", "_")


@contextlib.contextmanager
def staged_certificate(cert: x509.Certificate) -> Iterator[Path]:
    """Write the certificate to a temporary PEM file for tools that need a path.

    The file is removed when the block exits, whatever the outcome.
    """
    fd, tmp = tempfile.mkstemp(prefix="truststore.", suffix=".pem")
    path = Path(tmp)
    try:
        with open(fd, "wb") as f:
            f.write(certificate_pem(cert))
        yield path
    finally:
        with contextlib.suppress(FileNotFoundError):
            path.unlink()
