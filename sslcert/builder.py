"""Fluent builder for self-signed X.509 certificates.

Configuration is accumulated on a ``BuilderState`` through chained
``with_*`` calls. The first rejected value is kept in a single error
slot; from then on every setter is a no-op and ``build`` raises that
error. ``build_template`` turns the state into a ``CertificateTemplate``
and ``build`` generates an RSA key and self-signs the template with it.
"""

import functools
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum, Flag, auto
from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from config.settings import (
    DEFAULT_CERT_VALIDITY_DAYS,
    DEFAULT_KEY_SIZE,
    MIN_KEY_SIZE,
    RSA_PUBLIC_EXPONENT,
    SERIAL_NUMBER_LIMIT,
)
from sslcert.exceptions import CertificateValidationError

logger = logging.getLogger(__name__)


class KeyUsage(Flag):
    """X.509 key usage bits."""

    DIGITAL_SIGNATURE = auto()
    CONTENT_COMMITMENT = auto()
    KEY_ENCIPHERMENT = auto()
    DATA_ENCIPHERMENT = auto()
    KEY_AGREEMENT = auto()
    KEY_CERT_SIGN = auto()
    CRL_SIGN = auto()
    ENCIPHER_ONLY = auto()
    DECIPHER_ONLY = auto()


DEFAULT_KEY_USAGE = (
    KeyUsage.KEY_ENCIPHERMENT
    | KeyUsage.DIGITAL_SIGNATURE
    | KeyUsage.DATA_ENCIPHERMENT
    | KeyUsage.CONTENT_COMMITMENT
)


class ExtendedKeyUsage(Enum):
    """Extended key usage purposes."""

    SERVER_AUTH = ExtendedKeyUsageOID.SERVER_AUTH
    CLIENT_AUTH = ExtendedKeyUsageOID.CLIENT_AUTH
    CODE_SIGNING = ExtendedKeyUsageOID.CODE_SIGNING
    EMAIL_PROTECTION = ExtendedKeyUsageOID.EMAIL_PROTECTION
    TIME_STAMPING = ExtendedKeyUsageOID.TIME_STAMPING
    OCSP_SIGNING = ExtendedKeyUsageOID.OCSP_SIGNING
    ANY = ExtendedKeyUsageOID.ANY_EXTENDED_KEY_USAGE


@dataclass(frozen=True)
class CustomExtension:
    """An extension added verbatim: dotted OID, criticality and DER value."""

    oid: str
    critical: bool
    value: bytes


@dataclass
class BuilderState:
    """Accumulated certificate parameters."""

    bit_size: int = DEFAULT_KEY_SIZE
    is_certificate_authority: bool = False
    common_name: str = ""
    organization: str = ""
    organizational_unit: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    dns_names: list[str] = field(default_factory=list)
    key_usage: Optional[KeyUsage] = None
    extended_key_usages: list[ExtendedKeyUsage] = field(default_factory=list)
    extensions: list[CustomExtension] = field(default_factory=list)
    not_before: Optional[datetime] = None
    not_after: Optional[datetime] = None
    serial_number: Optional[int] = None
    include_basic_constraints: bool = False
    include_subject_key_identifier: bool = False
    subject_key_identifier_critical: bool = False
    include_authority_key_identifier: bool = False


@dataclass(frozen=True)
class CertificateTemplate:
    """Everything needed to sign a certificate, fully resolved."""

    serial_number: int
    subject: x509.Name
    not_before: datetime
    not_after: datetime
    basic_constraints: bool
    is_ca: bool
    key_usage: KeyUsage
    extended_key_usages: tuple[ExtendedKeyUsage, ...] = ()
    dns_names: tuple[str, ...] = ()
    extensions: tuple[CustomExtension, ...] = ()
    subject_key_identifier: bool = False
    subject_key_identifier_critical: bool = False
    authority_key_identifier: bool = False


@dataclass(frozen=True)
class CertificateArtifact:
    """A signed certificate and its private key."""

    certificate: x509.Certificate
    private_key: rsa.RSAPrivateKey


def _unless_failed(method):
    """Skip the setter once an error is recorded; always return the builder."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if self._error is not None:
            return self
        method(self, *args, **kwargs)
        return self

    return wrapper


class CertificateBuilder:
    """Configure and build a self-signed X.509 certificate.

    A builder mints one certificate. ``build`` stores the serial number
    and validity window it resolved, so a second ``build`` reuses them;
    call ``reset`` (or create a new builder) for another certificate.
    """

    def __init__(self):
        self.state = BuilderState()
        self._error: Optional[CertificateValidationError] = None

    @property
    def error(self) -> Optional[CertificateValidationError]:
        """The first validation failure, or None."""
        return self._error

    def reset(self) -> "CertificateBuilder":
        """Restore defaults and clear the error slot."""
        self.state = BuilderState()
        self._error = None
        return self

    def _fail(self, field_name: str, message: str) -> None:
        logger.debug("Rejected %s: %s", field_name, message)
        self._error = CertificateValidationError(field_name, message)

    @_unless_failed
    def with_bit_size(self, value: int):
        if value < MIN_KEY_SIZE:
            self._fail("bit_size", f"bit size cannot be less than {MIN_KEY_SIZE}")
            return
        self.state.bit_size = value

    @_unless_failed
    def with_is_certificate_authority(self, value: bool):
        self.state.is_certificate_authority = value

    @_unless_failed
    def with_common_name(self, value: str):
        if not value:
            self._fail("common_name", "common name cannot be empty")
            return
        self.state.common_name = value

    @_unless_failed
    def with_organization(self, value: str):
        self.state.organization = value

    @_unless_failed
    def with_organizational_unit(self, value: str):
        self.state.organizational_unit = value

    @_unless_failed
    def with_city(self, value: str):
        self.state.city = value

    @_unless_failed
    def with_state(self, value: str):
        self.state.state = value

    @_unless_failed
    def with_country(self, value: str):
        self.state.country = value

    @_unless_failed
    def with_dns_names(self, *values: str):
        self.state.dns_names.extend(values)

    @_unless_failed
    def with_key_usage(self, usage: KeyUsage):
        if self.state.key_usage is None:
            self.state.key_usage = usage
        else:
            self.state.key_usage |= usage

    @_unless_failed
    def with_extended_key_usage(self, *values: ExtendedKeyUsage):
        self.state.extended_key_usages.extend(values)

    @_unless_failed
    def with_extensions(self, *values: CustomExtension):
        self.state.extensions.extend(values)

    @_unless_failed
    def with_not_before(self, value: datetime):
        self.state.not_before = value

    @_unless_failed
    def with_not_after(self, value: datetime):
        self.state.not_after = value

    @_unless_failed
    def with_serial_number(self, value: int):
        self.state.serial_number = value

    @_unless_failed
    def with_basic_constraints(self):
        self.state.include_basic_constraints = True

    @_unless_failed
    def with_subject_key_identifier(self):
        self.state.include_subject_key_identifier = True

    @_unless_failed
    def with_subject_key_identifier_critical(self, value: bool):
        self.state.subject_key_identifier_critical = value

    @_unless_failed
    def with_authority_key_identifier(self):
        self.state.include_authority_key_identifier = True

    def build_template(self, now: Optional[datetime] = None) -> CertificateTemplate:
        """Resolve serial number and validity window, then assemble the template.

        Args:
            now: Reference time for a default not-before (defaults to the
                current UTC time, truncated to whole seconds).

        Returns:
            The resolved certificate template.

        Raises:
            CertificateValidationError: If a setter recorded an error
                or no common name was set.
        """
        if self._error is not None:
            raise self._error
        if not self.state.common_name:
            raise CertificateValidationError("common_name", "common name is required")

        state = self.state
        if state.serial_number is None:
            state.serial_number = secrets.randbelow(SERIAL_NUMBER_LIMIT - 1) + 1

        if state.not_before is None:
            if now is None:
                now = datetime.now(timezone.utc).replace(microsecond=0)
            state.not_before = now
        if state.not_after is None:
            state.not_after = state.not_before + timedelta(days=DEFAULT_CERT_VALIDITY_DAYS)
        elif (state.not_after.tzinfo is None) == (state.not_before.tzinfo is None) and (
            state.not_after < state.not_before
        ):
            logger.warning(
                "not_after %s precedes not_before %s", state.not_after, state.not_before
            )

        is_ca = state.is_certificate_authority
        return CertificateTemplate(
            serial_number=state.serial_number,
            subject=assemble_subject(state),
            not_before=state.not_before,
            not_after=state.not_after,
            basic_constraints=state.include_basic_constraints or is_ca,
            is_ca=is_ca,
            key_usage=state.key_usage if state.key_usage is not None else DEFAULT_KEY_USAGE,
            extended_key_usages=tuple(state.extended_key_usages),
            dns_names=tuple(state.dns_names),
            extensions=tuple(state.extensions),
            subject_key_identifier=state.include_subject_key_identifier,
            subject_key_identifier_critical=state.subject_key_identifier_critical,
            authority_key_identifier=state.include_authority_key_identifier,
        )

    def build(self) -> CertificateArtifact:
        """Build and self-sign the certificate.

        Returns:
            The signed certificate and its freshly generated private key.

        Raises:
            CertificateValidationError: If a setter recorded an error.
        """
        template = self.build_template()
        private_key = rsa.generate_private_key(
            public_exponent=RSA_PUBLIC_EXPONENT,
            key_size=self.state.bit_size,
        )
        certificate = sign_template(template, private_key)
        logger.info(
            "Built self-signed certificate for %s (serial %d, expires %s)",
            self.state.common_name, template.serial_number, template.not_after,
        )
        return CertificateArtifact(certificate=certificate, private_key=private_key)


def assemble_subject(state: BuilderState) -> x509.Name:
    """Build the subject name; empty optional fields are left out entirely."""
    attrs = [x509.NameAttribute(NameOID.COMMON_NAME, state.common_name)]
    if state.organization:
        attrs.append(x509.NameAttribute(NameOID.ORGANIZATION_NAME, state.organization))
    if state.organizational_unit:
        attrs.append(
            x509.NameAttribute(NameOID.ORGANIZATIONAL_UNIT_NAME, state.organizational_unit)
        )
    if state.city:
        attrs.append(x509.NameAttribute(NameOID.LOCALITY_NAME, state.city))
    if state.state:
        attrs.append(x509.NameAttribute(NameOID.STATE_OR_PROVINCE_NAME, state.state))
    if state.country:
        # Country is free text here, not only ISO 3166 two-letter codes.
        attrs.append(
            x509.NameAttribute(NameOID.COUNTRY_NAME, state.country, _validate=False)
        )
    return x509.Name(attrs)


def _key_usage_extension(usage: KeyUsage) -> x509.KeyUsage:
    return x509.KeyUsage(
        digital_signature=KeyUsage.DIGITAL_SIGNATURE in usage,
        content_commitment=KeyUsage.CONTENT_COMMITMENT in usage,
        key_encipherment=KeyUsage.KEY_ENCIPHERMENT in usage,
        data_encipherment=KeyUsage.DATA_ENCIPHERMENT in usage,
        key_agreement=KeyUsage.KEY_AGREEMENT in usage,
        key_cert_sign=KeyUsage.KEY_CERT_SIGN in usage,
        crl_sign=KeyUsage.CRL_SIGN in usage,
        encipher_only=KeyUsage.ENCIPHER_ONLY in usage,
        decipher_only=KeyUsage.DECIPHER_ONLY in usage,
    )


def sign_template(
    template: CertificateTemplate, private_key: rsa.RSAPrivateKey
) -> x509.Certificate:
    """Sign the template with its own key; issuer and subject are the same name."""
    public_key = private_key.public_key()
    builder = (
        x509.CertificateBuilder()
        .subject_name(template.subject)
        .issuer_name(template.subject)
        .public_key(public_key)
        .serial_number(template.serial_number)
        .not_valid_before(template.not_before)
        .not_valid_after(template.not_after)
    )

    if template.basic_constraints:
        builder = builder.add_extension(
            x509.BasicConstraints(ca=template.is_ca, path_length=None),
            critical=True,
        )
    builder = builder.add_extension(_key_usage_extension(template.key_usage), critical=True)
    if template.extended_key_usages:
        builder = builder.add_extension(
            x509.ExtendedKeyUsage([purpose.value for purpose in template.extended_key_usages]),
            critical=False,
        )
    if template.dns_names:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(name) for name in template.dns_names]),
            critical=False,
        )
    if template.subject_key_identifier:
        builder = builder.add_extension(
            x509.SubjectKeyIdentifier.from_public_key(public_key),
            critical=template.subject_key_identifier_critical,
        )
    if template.authority_key_identifier:
        builder = builder.add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(public_key),
            critical=False,
        )
    for ext in template.extensions:
        builder = builder.add_extension(
            x509.UnrecognizedExtension(x509.ObjectIdentifier(ext.oid), ext.value),
            critical=ext.critical,
        )

    return builder.sign(private_key, hashes.SHA256())
