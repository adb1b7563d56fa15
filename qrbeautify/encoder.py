"""
Symbol planning: turns text into the QR data bitstream and block layout.

One call walks SelectMode -> BuildHeader -> BuildData -> SelectVersion ->
Terminate/Pad -> SplitBlocks -> Interleave. Only single-segment symbols
are produced.

References:
- https://www.thonky.com/qr-code-tutorial/data-encoding
- JISX0510:2004 sections 8.4 - 8.6
"""

import codecs
import logging
from typing import List, Optional, Sequence

from .exceptions import CapacityExceededError, InterleavingError, InvalidArgumentError
from .reed_solomon import ReedSolomonEncoder
from .version import MAX_VERSION, MIN_VERSION, ECBlocks, Version, check_ec_level, get_version

logger = logging.getLogger(__name__)


#==============================================================================
# DATA ENCODING MODES
#==============================================================================

# Mode indicators (4-bit values)
MODE_NUMERIC = 0b0001
MODE_ALPHANUMERIC = 0b0010
MODE_ECI = 0b0111
MODE_BYTE = 0b0100
MODE_KANJI = 0b1000
MODE_TERMINATOR = 0b0000

MODE_NAMES = {
    MODE_NUMERIC: 'NUMERIC',
    MODE_ALPHANUMERIC: 'ALPHANUMERIC',
    MODE_BYTE: 'BYTE',
    MODE_KANJI: 'KANJI',
}

DEFAULT_BYTE_MODE_ENCODING = 'ISO-8859-1'
FALLBACK_BYTE_MODE_ENCODING = 'UTF-8'

# Alphanumeric character mapping
ALPHANUMERIC_TABLE = {
    '0': 0, '1': 1, '2': 2, '3': 3, '4': 4,
    '5': 5, '6': 6, '7': 7, '8': 8, '9': 9,
    'A': 10, 'B': 11, 'C': 12, 'D': 13, 'E': 14,
    'F': 15, 'G': 16, 'H': 17, 'I': 18, 'J': 19,
    'K': 20, 'L': 21, 'M': 22, 'N': 23, 'O': 24,
    'P': 25, 'Q': 26, 'R': 27, 'S': 28, 'T': 29,
    'U': 30, 'V': 31, 'W': 32, 'X': 33, 'Y': 34,
    'Z': 35, ' ': 36, '$': 37, '%': 38, '*': 39,
    '+': 40, '-': 41, '.': 42, '/': 43, ':': 44
}

# ECI assignment numbers keyed by Python codec name
CHARACTER_SET_ECI = {
    'cp437': 2,
    'iso8859-1': 3,
    'iso8859-2': 4,
    'iso8859-3': 5,
    'iso8859-4': 6,
    'iso8859-5': 7,
    'iso8859-6': 8,
    'iso8859-7': 9,
    'iso8859-8': 10,
    'iso8859-9': 11,
    'iso8859-10': 12,
    'iso8859-11': 13,
    'iso8859-13': 15,
    'iso8859-14': 16,
    'iso8859-15': 17,
    'iso8859-16': 18,
    'shift_jis': 20,
    'cp1250': 21,
    'cp1251': 22,
    'cp1252': 23,
    'cp1256': 24,
    'utf-16-be': 25,
    'utf-8': 26,
    'ascii': 27,
    'big5': 28,
    'gb18030': 29,
    'gb2312': 29,
    'gbk': 29,
    'euc_kr': 30,
}

PAD_BYTES = (0xEC, 0x11)


def get_character_count_bits(version: int, mode: int) -> int:
    """Get the number of bits for the character count indicator."""
    if version <= 9:
        table = {MODE_NUMERIC: 10, MODE_ALPHANUMERIC: 9,
                 MODE_BYTE: 8, MODE_KANJI: 8}
    elif version <= 26:
        table = {MODE_NUMERIC: 12, MODE_ALPHANUMERIC: 11,
                 MODE_BYTE: 16, MODE_KANJI: 10}
    else:
        table = {MODE_NUMERIC: 14, MODE_ALPHANUMERIC: 13,
                 MODE_BYTE: 16, MODE_KANJI: 12}
    if mode not in table:
        raise InvalidArgumentError(f"Mode {mode:04b} has no character count")
    return table[mode]


def codec_name(encoding: str) -> str:
    """Canonical Python codec name, or InvalidArgumentError for unknown encodings."""
    try:
        return codecs.lookup(encoding).name
    except LookupError as e:
        raise InvalidArgumentError(f"Unknown character encoding: {encoding}") from e


def int_to_bits(value: int, length: int) -> List[int]:
    """Convert integer to list of bits with specified length."""
    return [(value >> (length - 1 - i)) & 1 for i in range(length)]


def bits_to_bytes(bits: Sequence[int]) -> List[int]:
    """Convert list of bits to list of bytes, zero-filling the last byte."""
    bits = list(bits)
    while len(bits) % 8 != 0:
        bits.append(0)

    bytes_list = []
    for i in range(0, len(bits), 8):
        byte = 0
        for j in range(8):
            byte = (byte << 1) | bits[i + j]
        bytes_list.append(byte)

    return bytes_list


def bytes_to_bits(byte_list: Sequence[int]) -> List[int]:
    bits = []
    for byte in byte_list:
        bits.extend(int_to_bits(byte, 8))
    return bits


def is_only_double_byte_kanji(content: str) -> bool:
    try:
        data = content.encode('shift_jis')
    except UnicodeEncodeError:
        return False
    if len(data) % 2 != 0:
        return False
    for i in range(0, len(data), 2):
        byte1 = data[i]
        if not (0x81 <= byte1 <= 0x9F or 0xE0 <= byte1 <= 0xEB):
            return False
    return True


def detect_mode(data: str, encoding: Optional[str] = None) -> int:
    """
    Detect the most efficient encoding mode for the data.

    Kanji mode is only considered when the caller asked for Shift_JIS.
    """
    if encoding is not None and codec_name(encoding) == 'shift_jis':
        return MODE_KANJI if is_only_double_byte_kanji(data) else MODE_BYTE

    has_numeric = False
    has_alphanumeric = False
    for c in data:
        if '0' <= c <= '9':
            has_numeric = True
        elif c in ALPHANUMERIC_TABLE:
            has_alphanumeric = True
        else:
            return MODE_BYTE
    if has_alphanumeric:
        return MODE_ALPHANUMERIC
    if has_numeric:
        return MODE_NUMERIC
    return MODE_BYTE


def encode_numeric(data: str) -> List[int]:
    """Encode numeric data. Returns list of bits."""
    bits = []
    i = 0
    while i < len(data):
        if i + 3 <= len(data):
            value = int(data[i:i+3])
            bits.extend(int_to_bits(value, 10))
            i += 3
        elif i + 2 <= len(data):
            value = int(data[i:i+2])
            bits.extend(int_to_bits(value, 7))
            i += 2
        else:
            value = int(data[i])
            bits.extend(int_to_bits(value, 4))
            i += 1
    return bits


def _alphanumeric_code(c: str) -> int:
    if c not in ALPHANUMERIC_TABLE:
        raise InvalidArgumentError(f"Character {c!r} is not in the alphanumeric table")
    return ALPHANUMERIC_TABLE[c]


def encode_alphanumeric(data: str) -> List[int]:
    """Encode alphanumeric data. Returns list of bits."""
    bits = []
    i = 0
    while i < len(data):
        if i + 2 <= len(data):
            v1 = _alphanumeric_code(data[i])
            v2 = _alphanumeric_code(data[i + 1])
            value = 45 * v1 + v2
            bits.extend(int_to_bits(value, 11))
            i += 2
        else:
            value = _alphanumeric_code(data[i])
            bits.extend(int_to_bits(value, 6))
            i += 1
    return bits


def encode_byte(data: bytes) -> List[int]:
    """Encode byte data. Returns list of bits."""
    bits = []
    for byte in data:
        bits.extend(int_to_bits(byte, 8))
    return bits


def encode_kanji(data: str) -> List[int]:
    """Encode Shift_JIS double-byte characters in 13 bits each."""
    try:
        raw = data.encode('shift_jis')
    except UnicodeEncodeError as e:
        raise InvalidArgumentError("Content is not representable in Shift_JIS") from e
    if len(raw) % 2 != 0:
        raise InvalidArgumentError("Kanji content must be double-byte only")
    bits = []
    for i in range(0, len(raw), 2):
        code = (raw[i] << 8) | raw[i + 1]
        if 0x8140 <= code <= 0x9FFC:
            subtracted = code - 0x8140
        elif 0xE040 <= code <= 0xEBBF:
            subtracted = code - 0xC140
        else:
            raise InvalidArgumentError(f"Invalid Kanji byte sequence 0x{code:04x}")
        bits.extend(int_to_bits((subtracted >> 8) * 0xC0 + (subtracted & 0xFF), 13))
    return bits


def encode_content(data: str, mode: int, encoding: str) -> List[int]:
    """Data bits for the content in the given mode, without any header."""
    if mode == MODE_NUMERIC:
        for c in data:
            if not '0' <= c <= '9':
                raise InvalidArgumentError(f"Character {c!r} is not numeric")
        return encode_numeric(data)
    if mode == MODE_ALPHANUMERIC:
        return encode_alphanumeric(data)
    if mode == MODE_BYTE:
        return encode_byte(encode_text(data, encoding))
    if mode == MODE_KANJI:
        return encode_kanji(data)
    raise InvalidArgumentError(f"Invalid mode: {mode:04b}")


def encode_text(data: str, encoding: str) -> bytes:
    try:
        return data.encode(codec_name(encoding))
    except UnicodeEncodeError as e:
        raise InvalidArgumentError(f"Content is not representable in {encoding}") from e


def choose_byte_encoding(data: str, encoding: Optional[str]) -> str:
    """
    Caller's encoding if given, otherwise ISO-8859-1 when it can represent
    the content and UTF-8 when it cannot.
    """
    if encoding is not None:
        codec_name(encoding)
        return encoding
    try:
        data.encode(codec_name(DEFAULT_BYTE_MODE_ENCODING))
    except UnicodeEncodeError:
        return FALLBACK_BYTE_MODE_ENCODING
    return DEFAULT_BYTE_MODE_ENCODING


#==============================================================================
# VERSION SELECTION, TERMINATION AND PADDING
#==============================================================================

def choose_version(num_input_bits: int, ec_level: str) -> Version:
    """Smallest version whose data capacity at ec_level holds num_input_bits."""
    total_input_bytes = (num_input_bits + 7) // 8
    for number in range(MIN_VERSION, MAX_VERSION + 1):
        version = get_version(number)
        if version.num_data_codewords(ec_level) >= total_input_bytes:
            return version
    raise CapacityExceededError(f"Data too big: {num_input_bits} bits at level {ec_level}")


def terminate_bits(num_data_bytes: int, bits: List[int]):
    """
    Append up to four terminator bits and zero-fill to a byte boundary.
    See 8.4.8 of JISX0510:2004 (p.24).
    """
    capacity = num_data_bytes * 8
    if len(bits) > capacity:
        raise CapacityExceededError(f"Data bits cannot fit in the QR Code: {len(bits)} > {capacity}")
    terminator_length = min(4, capacity - len(bits))
    bits.extend(int_to_bits(MODE_TERMINATOR, 4)[:terminator_length])
    num_bits_in_last_byte = len(bits) % 8
    if num_bits_in_last_byte > 0:
        bits.extend([0] * (8 - num_bits_in_last_byte))


def append_pad_bytes(num_data_bytes: int, bits: List[int]):
    """Add pad codewords (alternating 236, 17) until capacity is reached."""
    if len(bits) % 8 != 0:
        raise InvalidArgumentError("Bits must be terminated before padding")
    i = 0
    while len(bits) < num_data_bytes * 8:
        bits.extend(int_to_bits(PAD_BYTES[i % 2], 8))
        i += 1
    if len(bits) != num_data_bytes * 8:
        raise CapacityExceededError("Bits size does not equal capacity")


#==============================================================================
# SYMBOL PLAN
#==============================================================================

class SymbolPlan:
    """
    Everything decided before codewords are computed: mode, version, level,
    the terminated header+data bits and the block layout.
    """

    def __init__(self, content: str, mode: int, version: Version, ec_level: str,
                 encoding: Optional[str], header_and_data_bits: List[int]):
        self.content = content
        self.mode = mode
        self.version = version
        self.ec_level = ec_level
        self.encoding = encoding
        self.header_and_data_bits = header_and_data_bits

    @property
    def ec_blocks(self) -> ECBlocks:
        return self.version.get_ec_blocks(self.ec_level)

    @property
    def num_total_bytes(self) -> int:
        return self.version.total_codewords

    @property
    def num_data_bytes(self) -> int:
        return self.version.num_data_codewords(self.ec_level)

    @property
    def header_and_data_length(self) -> int:
        """Bits that must survive verbatim (header, data, terminator)."""
        return len(self.header_and_data_bits)

    def data_codewords(self) -> List[int]:
        """Header and data bits padded out to the full data capacity."""
        bits = list(self.header_and_data_bits)
        append_pad_bytes(self.num_data_bytes, bits)
        return bits_to_bytes(bits)

    def __repr__(self) -> str:
        return (f"SymbolPlan(mode={MODE_NAMES[self.mode]}, version={self.version.number}, "
                f"ec_level={self.ec_level}, bits={self.header_and_data_length})")


def plan_symbol(content: str, ec_level: str, version: Optional[int] = None,
                encoding: Optional[str] = None) -> SymbolPlan:
    """
    Choose mode and version and build the terminated header+data bits.

    Args:
        content: text to encode
        ec_level: 'L', 'M', 'Q' or 'H'
        version: explicit version (1-40), or None to pick the smallest fit
        encoding: character encoding hint for byte (and Kanji) mode
    """
    if not content:
        raise InvalidArgumentError("Found empty contents")
    check_ec_level(ec_level)

    mode = detect_mode(content, encoding)
    header_bits = []
    byte_encoding = None
    if mode == MODE_BYTE:
        byte_encoding = choose_byte_encoding(content, encoding)
        name = codec_name(byte_encoding)
        if name != codec_name(DEFAULT_BYTE_MODE_ENCODING) and name in CHARACTER_SET_ECI:
            header_bits.extend(int_to_bits(MODE_ECI, 4))
            header_bits.extend(int_to_bits(CHARACTER_SET_ECI[name], 8))
    header_bits.extend(int_to_bits(mode, 4))

    data_bits = encode_content(content, mode, byte_encoding)

    # The count field width depends on the version, which depends on the
    # total size: guess with version 1, then settle on the real one.
    provisional_bits = (len(header_bits) + get_character_count_bits(1, mode)
                        + len(data_bits))
    provisional_version = choose_version(provisional_bits, ec_level)
    bits_needed = (len(header_bits)
                   + get_character_count_bits(provisional_version.number, mode)
                   + len(data_bits))
    if version is None:
        chosen = choose_version(bits_needed, ec_level)
    else:
        chosen = get_version(version)

    if mode == MODE_BYTE:
        num_letters = len(data_bits) // 8
    else:
        num_letters = len(content)
    count_bits = get_character_count_bits(chosen.number, mode)
    if num_letters >= (1 << count_bits):
        raise CapacityExceededError(f"{num_letters} is bigger than {(1 << count_bits) - 1}")

    bits = header_bits + int_to_bits(num_letters, count_bits) + data_bits
    terminate_bits(chosen.num_data_codewords(ec_level), bits)

    plan = SymbolPlan(content, mode, chosen, ec_level, byte_encoding, bits)
    logger.debug("Planned %r", plan)
    return plan


#==============================================================================
# BLOCKS AND INTERLEAVING
#==============================================================================

class BlockPair:
    """Data bytes of one RS block with their error correction bytes."""

    def __init__(self, data_bytes: List[int], ec_bytes: List[int]):
        self.data_bytes = data_bytes
        self.ec_bytes = ec_bytes

    def __repr__(self) -> str:
        return f"BlockPair(data={len(self.data_bytes)}, ec={len(self.ec_bytes)})"


def block_sizes(num_total_bytes: int, num_data_bytes: int, ec_blocks: ECBlocks):
    """(data_len, ec_len) per block, checked against the symbol totals."""
    sizes = ec_blocks.block_sizes()
    if sum(d for d, _ in sizes) != num_data_bytes:
        raise InterleavingError("Data bytes does not match offset")
    if sum(d + e for d, e in sizes) != num_total_bytes:
        raise InterleavingError("Total bytes does not match block sizes")
    return sizes


def interleave_blocks(blocks: Sequence[BlockPair], num_total_bytes: int) -> List[int]:
    """
    Interleave the blocks: byte 0 of every block's data, then byte 1, and so
    on, followed by the EC bytes in the same column-major order.
    See 8.6 of JISX0510:2004 (p.37).
    """
    max_data = max(len(b.data_bytes) for b in blocks)
    max_ec = max(len(b.ec_bytes) for b in blocks)

    result = []
    for i in range(max_data):
        for block in blocks:
            if i < len(block.data_bytes):
                result.append(block.data_bytes[i])
    for i in range(max_ec):
        for block in blocks:
            if i < len(block.ec_bytes):
                result.append(block.ec_bytes[i])

    if len(result) != num_total_bytes:
        raise InterleavingError(f"Interleaving error: {num_total_bytes} and {len(result)} differ.")
    return result


def interleave_with_ec_bytes(rs: ReedSolomonEncoder, data_codewords: Sequence[int],
                             version: Version, ec_level: str) -> List[int]:
    """Split padded data codewords into blocks, add RS codewords, interleave."""
    num_data_bytes = version.num_data_codewords(ec_level)
    if len(data_codewords) != num_data_bytes:
        raise InterleavingError("Number of bits and data bytes does not match")

    blocks = []
    offset = 0
    for data_len, ec_len in block_sizes(version.total_codewords, num_data_bytes,
                                        version.get_ec_blocks(ec_level)):
        data_bytes = list(data_codewords[offset:offset + data_len])
        blocks.append(BlockPair(data_bytes, rs.generate_ec_bytes(data_bytes, ec_len)))
        offset += data_len

    return interleave_blocks(blocks, version.total_codewords)


def build_final_to_data_mapping(version: Version, ec_level: str) -> List[int]:
    """
    For every bit of the interleaved stream, the index of the same bit in
    block order (all data bytes block by block, then all EC bytes block by
    block).
    """
    num_total_bytes = version.total_codewords
    num_data_bytes = version.num_data_codewords(ec_level)
    sizes = block_sizes(num_total_bytes, num_data_bytes, version.get_ec_blocks(ec_level))

    data_offsets, ec_offsets = [], []
    data_offset = ec_offset = 0
    for data_len, ec_len in sizes:
        data_offsets.append(data_offset)
        ec_offsets.append(ec_offset)
        data_offset += data_len
        ec_offset += ec_len

    mapping = []
    for i in range(max(d for d, _ in sizes)):
        for j, (data_len, _) in enumerate(sizes):
            if i < data_len:
                byte_index = data_offsets[j] + i
                mapping.extend(byte_index * 8 + k for k in range(8))
    for i in range(max(e for _, e in sizes)):
        for j, (_, ec_len) in enumerate(sizes):
            if i < ec_len:
                byte_index = num_data_bytes + ec_offsets[j] + i
                mapping.extend(byte_index * 8 + k for k in range(8))

    if len(mapping) != num_total_bytes * 8:
        raise InterleavingError(f"Interleaving error: {num_total_bytes * 8} and {len(mapping)} differ.")
    return mapping


def invert_mapping(mapping: Sequence[int]) -> List[int]:
    """Inverse of a permutation; InterleavingError if mapping is not one."""
    inverse = [-1] * len(mapping)
    for index, target in enumerate(mapping):
        if not 0 <= target < len(mapping) or inverse[target] != -1:
            raise InterleavingError("Mapping is not a permutation")
        inverse[target] = index
    return inverse
