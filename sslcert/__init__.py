"""
Self-Signed Certificate Module.

Provides a fluent builder for self-signed X.509 certificates and
writers for PEM and PKCS#12 output.
"""

from sslcert.builder import (
    CertificateArtifact,
    CertificateBuilder,
    CustomExtension,
    ExtendedKeyUsage,
    KeyUsage,
)
from sslcert.exceptions import (
    CertificateError,
    CertificateValidationError,
    UnsupportedEncodingError,
)
from sslcert.writer import CertificateStore, ExportFormat, write_file

__all__ = [
    "CertificateArtifact", "CertificateBuilder", "CustomExtension",
    "ExtendedKeyUsage", "KeyUsage", "CertificateError",
    "CertificateValidationError", "UnsupportedEncodingError",
    "CertificateStore", "ExportFormat", "write_file",
]
