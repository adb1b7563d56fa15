"""
QR code encoder with an aesthetic mode.

QRCodeGenerator.generate produces standard symbols. QRCodeGenerator.beautify
steers the padding and error correction modules toward a target picture
while keeping the symbol decodable.
"""

from .exceptions import (CapacityExceededError, FieldDomainError, InterleavingError,
                         InvalidArgumentError, QRCodeError, UnsolvableError)
from .galois import GF256
from .generator import QRCode, QRCodeGenerator
from .reed_solomon import ReedSolomonEncoder
from .render import save_image, to_image, to_string

__all__ = [
    'CapacityExceededError', 'FieldDomainError', 'InterleavingError',
    'InvalidArgumentError', 'QRCodeError', 'UnsolvableError',
    'GF256', 'QRCode', 'QRCodeGenerator', 'ReedSolomonEncoder',
    'save_image', 'to_image', 'to_string',
]

__version__ = '1.0.0'
