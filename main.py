#!/usr/bin/env python3
"""
Self-Signed Certificate Tool - Main Entry Point.

Usage:
    python main.py generate <name> --cn <domain> [options]

Example:
    python main.py generate localhost --cn localhost --org "Acme." \\
        --country CA --san localhost --basic-constraints --ski --ski-critical
"""

import argparse
import logging
import sys
from datetime import datetime, timedelta, timezone

from config.settings import (
    CERT_OUTPUT_DIR,
    DEFAULT_CERT_VALIDITY_DAYS,
    DEFAULT_KEY_SIZE,
    DEFAULT_PFX_PASSWORD,
    LOG_FORMAT,
    LOG_LEVEL,
)
from sslcert.builder import CertificateBuilder, ExtendedKeyUsage
from sslcert.exceptions import CertificateError
from sslcert.utils.helpers import fingerprint, subject_summary
from sslcert.writer import CertificateStore, ExportFormat

FORMAT_CHOICES = {
    "pem": (ExportFormat.PEM_CERTIFICATE, ExportFormat.PEM_PRIVATE_KEY),
    "pfx": (ExportFormat.PKCS12,),
    "all": tuple(ExportFormat),
}


# ============================================================
# Commands
# ============================================================

def configure_builder(args) -> CertificateBuilder:
    """Translate parsed arguments into a configured builder."""
    builder = (
        CertificateBuilder()
        .with_bit_size(args.key_size)
        .with_common_name(args.cn)
        .with_organization(args.org)
        .with_organizational_unit(args.ou)
        .with_city(args.city)
        .with_state(args.state)
        .with_country(args.country)
        .with_dns_names(*(args.san or []))
        .with_is_certificate_authority(args.ca)
    )

    if args.days != DEFAULT_CERT_VALIDITY_DAYS:
        not_before = datetime.now(timezone.utc).replace(microsecond=0)
        builder.with_not_before(not_before).with_not_after(
            not_before + timedelta(days=args.days)
        )
    if args.serial is not None:
        builder.with_serial_number(args.serial)
    if args.basic_constraints:
        builder.with_basic_constraints()
    if args.ski:
        builder.with_subject_key_identifier()
    if args.ski_critical:
        builder.with_subject_key_identifier_critical(True)
    if args.aki:
        builder.with_authority_key_identifier()
    if args.server_auth:
        builder.with_extended_key_usage(ExtendedKeyUsage.SERVER_AUTH)
    if args.client_auth:
        builder.with_extended_key_usage(ExtendedKeyUsage.CLIENT_AUTH)
    return builder


def cmd_generate(args):
    """Generate a self-signed certificate and write it out."""
    builder = configure_builder(args)
    artifact = builder.build()

    store = CertificateStore(args.out)
    paths = store.save(
        args.name, artifact,
        password=args.password,
        formats=FORMAT_CHOICES[args.format],
    )

    cert = artifact.certificate
    print(f"Subject:     {subject_summary(cert)}")
    print(f"Serial:      {cert.serial_number}")
    print(f"Expires:     {cert.not_valid_after_utc.isoformat()}")
    print(f"Fingerprint: {fingerprint(cert)}")
    for path in paths:
        print(f"  {path}")


# ============================================================
# Parser
# ============================================================

def build_parser():
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="Self-signed X.509 certificate generator"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command")

    gen = subparsers.add_parser("generate", help="Generate self-signed certificate")
    gen.add_argument("name", help="Certificate name (used for filenames)")
    gen.add_argument("--cn", required=True, help="Common Name (domain)")
    gen.add_argument("--org", default="", help="Organization")
    gen.add_argument("--ou", default="", help="Organizational unit")
    gen.add_argument("--city", default="", help="City / locality")
    gen.add_argument("--state", default="", help="State / province")
    gen.add_argument("--country", default="", help="Country")
    gen.add_argument("--san", nargs="*", help="DNS Subject Alternative Names")
    gen.add_argument("--key-size", type=int, default=DEFAULT_KEY_SIZE, help="RSA key size")
    gen.add_argument("--days", type=int, default=DEFAULT_CERT_VALIDITY_DAYS, help="Validity days")
    gen.add_argument("--serial", type=int, help="Serial number (random if omitted)")
    gen.add_argument("--ca", action="store_true", help="Mark as certificate authority")
    gen.add_argument("--basic-constraints", action="store_true", help="Include basic constraints")
    gen.add_argument("--ski", action="store_true", help="Include subject key identifier")
    gen.add_argument("--ski-critical", action="store_true", help="Mark subject key identifier critical")
    gen.add_argument("--aki", action="store_true", help="Include authority key identifier")
    gen.add_argument("--server-auth", action="store_true", help="Add serverAuth extended key usage")
    gen.add_argument("--client-auth", action="store_true", help="Add clientAuth extended key usage")
    gen.add_argument("--format", choices=sorted(FORMAT_CHOICES), default="all", help="Output format")
    gen.add_argument("--password", default=DEFAULT_PFX_PASSWORD, help="PKCS#12 password")
    gen.add_argument("--out", default=str(CERT_OUTPUT_DIR), help="Output directory")
    gen.set_defaults(func=cmd_generate)

    return parser


def main(argv=None):
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except (CertificateError, OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
