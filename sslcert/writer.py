"""Certificate export: PEM certificate, PEM private key and PKCS#12 bundles."""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Iterable, Union

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12

from config.settings import EXPORT_FILE_MODE
from sslcert.builder import CertificateArtifact
from sslcert.exceptions import UnsupportedEncodingError

logger = logging.getLogger(__name__)


class ExportFormat(Enum):
    """Supported output encodings."""

    PEM_CERTIFICATE = "pem-certificate"
    PEM_PRIVATE_KEY = "pem-private-key"
    PKCS12 = "pkcs12"


def encode(
    export_format: ExportFormat,
    certificate: x509.Certificate,
    private_key: rsa.RSAPrivateKey,
    password: str = "",
) -> bytes:
    """Serialize a certificate or key in the requested format.

    Args:
        export_format: Which encoding to produce.
        certificate: The signed certificate.
        private_key: The certificate's private key.
        password: PKCS#12 protection password; an empty password
            produces an unencrypted bundle.

    Returns:
        The encoded bytes.

    Raises:
        UnsupportedEncodingError: If the format is not an ExportFormat.
    """
    if export_format is ExportFormat.PEM_CERTIFICATE:
        return certificate.public_bytes(serialization.Encoding.PEM)
    if export_format is ExportFormat.PEM_PRIVATE_KEY:
        return private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,  # PKCS#1
            encryption_algorithm=serialization.NoEncryption(),
        )
    if export_format is ExportFormat.PKCS12:
        if password:
            encryption = serialization.BestAvailableEncryption(password.encode())
        else:
            encryption = serialization.NoEncryption()
        return pkcs12.serialize_key_and_certificates(
            name=None,
            key=private_key,
            cert=certificate,
            cas=None,
            encryption_algorithm=encryption,
        )
    raise UnsupportedEncodingError(f"unsupported encoding: {export_format!r}")


def write_file(
    destination: Union[str, Path],
    export_format: ExportFormat,
    certificate: x509.Certificate,
    private_key: rsa.RSAPrivateKey,
    password: str = "",
) -> Path:
    """Encode and write a certificate or key to disk.

    The file is created or overwritten with EXPORT_FILE_MODE permissions.
    Nothing is written when encoding fails.

    Returns:
        Path to the written file.
    """
    data = encode(export_format, certificate, private_key, password)
    path = Path(destination)
    path.write_bytes(data)
    os.chmod(path, EXPORT_FILE_MODE)
    logger.info("Wrote %s (%d bytes) to %s", export_format.value, len(data), path)
    return path


class CertificateStore:
    """Writes built certificates into a managed directory tree."""

    SUFFIXES = {
        ExportFormat.PEM_CERTIFICATE: ".crt",
        ExportFormat.PEM_PRIVATE_KEY: ".key",
        ExportFormat.PKCS12: ".pfx",
    }

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)
        self.certs_dir = self.base_dir / "certs"
        self.keys_dir = self.base_dir / "keys"
        self._ensure_dirs()

    def _ensure_dirs(self) -> None:
        """Create required directories if they don't exist."""
        for d in (self.certs_dir, self.keys_dir):
            d.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str, export_format: ExportFormat) -> Path:
        """Return where an artifact of the given format is stored."""
        if export_format not in self.SUFFIXES:
            raise UnsupportedEncodingError(f"unsupported encoding: {export_format!r}")
        directory = self.keys_dir if export_format is ExportFormat.PEM_PRIVATE_KEY else self.certs_dir
        return directory / f"{name}{self.SUFFIXES[export_format]}"

    def save(
        self,
        name: str,
        artifact: CertificateArtifact,
        password: str = "",
        formats: Iterable[ExportFormat] = tuple(ExportFormat),
    ) -> list[Path]:
        """Write the artifact in each requested format.

        Args:
            name: Base name for the files.
            artifact: Certificate and key to export.
            password: PKCS#12 password.
            formats: Encodings to write (default: all of them).

        Returns:
            Paths of the written files, in the order of ``formats``.
        """
        paths = []
        for export_format in formats:
            paths.append(
                write_file(
                    self.path_for(name, export_format),
                    export_format,
                    artifact.certificate,
                    artifact.private_key,
                    password,
                )
            )
        return paths
