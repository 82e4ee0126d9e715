"""
Monitor Errors

Core modüllerin fırlattığı hata tipleri.
"""


class MonitorError(Exception):
    """Base class for vital-sign monitor errors."""


class InvalidInput(MonitorError, ValueError):
    """Raised for an absent patient reference or a malformed record tuple."""


class StorageUnavailable(MonitorError):
    """Raised by a record store backend that cannot serve a read or write."""
