"""Tests for the command-line entry point."""

import io
import shutil
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

from cryptography import x509
from cryptography.x509.oid import NameOID

import main
from sslcert.utils.helpers import fingerprint


class TestGenerateCommand(unittest.TestCase):
    """Test `main.py generate`."""

    def setUp(self):
        self.tmpdir = Path(tempfile.mkdtemp(prefix="sslcert_cli_"))

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _run(self, *argv):
        out = io.StringIO()
        with redirect_stdout(out):
            main.main(list(argv))
        return out.getvalue()

    def test_generate_pem(self):
        output = self._run(
            "generate", "web",
            "--cn", "localhost", "--org", "Acme.", "--country", "CA",
            "--san", "localhost", "www.localhost",
            "--key-size", "2048", "--days", "30", "--serial", "77",
            "--format", "pem", "--out", str(self.tmpdir),
        )
        cert_path = self.tmpdir / "certs" / "web.crt"
        self.assertTrue(cert_path.exists())
        self.assertTrue((self.tmpdir / "keys" / "web.key").exists())
        self.assertFalse((self.tmpdir / "certs" / "web.pfx").exists())

        cert = x509.load_pem_x509_certificate(cert_path.read_bytes())
        self.assertEqual(cert.serial_number, 77)
        self.assertEqual(
            cert.subject.get_attributes_for_oid(NameOID.ORGANIZATION_NAME)[0].value, "Acme."
        )
        self.assertEqual((cert.not_valid_after_utc - cert.not_valid_before_utc).days, 30)
        self.assertIn("Serial:      77", output)
        self.assertIn(fingerprint(cert), output)

    def test_generate_pfx(self):
        self._run(
            "generate", "web", "--cn", "localhost", "--key-size", "2048",
            "--format", "pfx", "--password", "secret", "--out", str(self.tmpdir),
        )
        self.assertGreater((self.tmpdir / "certs" / "web.pfx").stat().st_size, 0)

    def test_invalid_key_size_exits(self):
        err = io.StringIO()
        with redirect_stderr(err), self.assertRaises(SystemExit) as ctx:
            main.main([
                "generate", "web", "--cn", "localhost",
                "--key-size", "1024", "--out", str(self.tmpdir),
            ])
        self.assertEqual(ctx.exception.code, 1)
        self.assertIn("bit size cannot be less than 2048", err.getvalue())
        self.assertFalse((self.tmpdir / "certs" / "web.crt").exists())

    def test_no_command_exits(self):
        with redirect_stdout(io.StringIO()), self.assertRaises(SystemExit):
            main.main([])


class TestFingerprint(unittest.TestCase):
    """Test fingerprint formatting."""

    def test_format(self):
        from sslcert.builder import CertificateBuilder

        cert = CertificateBuilder().with_bit_size(2048).with_common_name("host").build().certificate
        value = fingerprint(cert)
        self.assertEqual(len(value.split(":")), 32)
        self.assertEqual(value, value.upper())
        self.assertEqual(len(fingerprint(cert, "sha1").split(":")), 20)


if __name__ == "__main__":
    unittest.main()
