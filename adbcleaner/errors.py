from __future__ import annotations

class AdbCleanerError(Exception):
    pass

class ParseError(AdbCleanerError):
    """Malformed configuration file."""

class DeviceError(AdbCleanerError):
    """adb is missing, no authorized device is attached, or an adb call failed."""

class OperationError(AdbCleanerError):
    """A single uninstall could not be carried out."""
