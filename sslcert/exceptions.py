"""Errors raised while building and exporting certificates."""


class CertificateError(Exception):
    """Base class for certificate builder and exporter errors."""


class CertificateValidationError(CertificateError):
    """A builder setter rejected its value."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class UnsupportedEncodingError(CertificateError, ValueError):
    """The requested export format is not one the writer knows."""
