"""Project-wide settings and defaults."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()  # Load .env file if present

# Base paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent
CERT_OUTPUT_DIR = Path(os.environ.get("CERT_OUTPUT_DIR", str(PROJECT_ROOT / "data" / "certs")))

# Key defaults
DEFAULT_KEY_SIZE = 4096
MIN_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537

# Certificate defaults
DEFAULT_CERT_VALIDITY_DAYS = 365
SERIAL_NUMBER_LIMIT = 200_000_000

# Export
EXPORT_FILE_MODE = 0o640
DEFAULT_PFX_PASSWORD = os.environ.get("CERT_PFX_PASSWORD", "changeit")

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
