"""Exception types raised by the scan pipeline and inventory store."""

from __future__ import annotations


class PantryScanError(Exception):
    """Base class for all pantryscan errors."""


class DecodeError(PantryScanError):
    """Image bytes could not be decoded."""


class ParseError(PantryScanError):
    """Vision backend text could not be turned into detections."""


class EmptyResponseError(ParseError):
    def __init__(self, message: str = "Empty response from vision backend") -> None:
        super().__init__(message)


class InvalidFormatError(ParseError):
    def __init__(
        self, message: str = "Invalid JSON response from vision backend"
    ) -> None:
        super().__init__(message)


class BackendError(PantryScanError):
    """The vision backend request failed."""


class StoreError(PantryScanError):
    """The inventory store rejected an operation."""
