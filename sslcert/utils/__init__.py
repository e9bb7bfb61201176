"""Certificate utility functions."""

from sslcert.utils.helpers import fingerprint, subject_summary

__all__ = ["fingerprint", "subject_summary"]
