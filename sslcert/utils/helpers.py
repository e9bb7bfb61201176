"""Certificate helper utilities."""

from cryptography import x509
from cryptography.hazmat.primitives import hashes

_HASHES = {
    "sha256": hashes.SHA256,
    "sha1": hashes.SHA1,
}


def fingerprint(cert: x509.Certificate, algorithm: str = "sha256") -> str:
    """Compute the fingerprint of a certificate.

    Args:
        cert: The certificate.
        algorithm: Hash algorithm (sha256 or sha1).

    Returns:
        Colon-separated upper-case hex fingerprint.
    """
    digest = cert.fingerprint(_HASHES[algorithm]()).hex()
    # Format as colon-separated pairs
    return ":".join(digest[i:i+2].upper() for i in range(0, len(digest), 2))


def subject_summary(cert: x509.Certificate) -> str:
    """Render the subject as a comma-separated RFC 4514 string."""
    return cert.subject.rfc4514_string()
