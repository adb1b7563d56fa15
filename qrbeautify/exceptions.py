"""
Exception types raised by the QR encoder.

Argument problems derive from ValueError so callers that already catch
ValueError (as with the plain generator) keep working. UnsolvableError and
InterleavingError signal a bug in block sizing or bit mapping and are never
caught inside the package.
"""


class QRCodeError(Exception):
    """Base class for every error raised by qrbeautify."""


class InvalidArgumentError(QRCodeError, ValueError):
    """Bad content, level, version, mask, length or grid supplied by the caller."""


class CapacityExceededError(QRCodeError):
    """Content does not fit any version 1-40 at the requested level."""


class FieldDomainError(QRCodeError, ValueError):
    """A GF(256) operation was asked for a value outside its domain (log of 0)."""


class UnsolvableError(QRCodeError):
    """Erasure-fill elimination hit an all-zero pivot column."""


class InterleavingError(QRCodeError):
    """Block or byte accounting does not add up, or a bit mapping is not a permutation."""
