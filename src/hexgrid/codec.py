"""
Cell index codec: the 64-bit layout of a cell identifier.

Layout (most significant bit first):

    bit  63      always 0
    bits 59-62   mode (1 = cell, 4 = vertex)
    bits 56-58   reserved (vertex number for vertex indexes)
    bits 52-55   resolution, 0..15
    bits 45-51   base cell, 0..121
    bits 0-44    fifteen 3-bit digits; digit r sits at bit offset 3 * (15 - r)

Digits above the resolution hold the unset value 7. Construction never
validates: call is_valid() before trusting an index from outside.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple

from . import metrics
from .errors import InvalidResolution, OutOfRange, ParseError

MAX_RES = 15
NUM_BASE_CELLS = 122

CELL_MODE = 1
VERTEX_MODE = 4

UNSET_DIGIT = 7

# Base cells whose resolution 0 cell is a pentagon
PENTAGON_BASE_CELLS = frozenset({4, 14, 24, 38, 49, 58, 63, 72, 83, 97, 107, 117})

_HIGH_BIT_OFFSET = 63
_MODE_OFFSET = 59
_RESERVED_OFFSET = 56
_RES_OFFSET = 52
_BASE_CELL_OFFSET = 45
_DIGIT_BITS = 3

_MODE_MASK = 0xF
_RESERVED_MASK = 0x7
_RES_MASK = 0xF
_BASE_CELL_MASK = 0x7F
_DIGIT_MASK = 0x7

_UINT64_LIMIT = 1 << 64
STRING_WIDTH = 16
_HEX_RE = re.compile(r"^[0-9a-fA-F]{1,16}$")


def _digit_offset(level: int) -> int:
    return (MAX_RES - level) * _DIGIT_BITS


class CellShape(Enum):
    HEXAGON = "hexagon"
    PENTAGON = "pentagon"


@dataclass(frozen=True)
class IndexFields:
    """Unpacked view of an index: explicit fields instead of bit shifts."""
    mode: int
    resolution: int
    base_cell: int
    digits: Tuple[int, ...]  # levels 1..15, unset levels hold UNSET_DIGIT
    reserved: int = 0
    high_bit: int = 0

    @classmethod
    def decode(cls, value: int) -> "IndexFields":
        return cls(
            mode=(value >> _MODE_OFFSET) & _MODE_MASK,
            resolution=(value >> _RES_OFFSET) & _RES_MASK,
            base_cell=(value >> _BASE_CELL_OFFSET) & _BASE_CELL_MASK,
            digits=tuple((value >> _digit_offset(level)) & _DIGIT_MASK for level in range(1, MAX_RES + 1)),
            reserved=(value >> _RESERVED_OFFSET) & _RESERVED_MASK,
            high_bit=(value >> _HIGH_BIT_OFFSET) & 1,
        )

    def encode(self) -> int:
        value = (
            (self.high_bit << _HIGH_BIT_OFFSET)
            | (self.mode << _MODE_OFFSET)
            | (self.reserved << _RESERVED_OFFSET)
            | (self.resolution << _RES_OFFSET)
            | (self.base_cell << _BASE_CELL_OFFSET)
        )
        for level, digit in enumerate(self.digits, start=1):
            value |= digit << _digit_offset(level)
        return value


def encode_cell(base_cell: int, digits: Sequence[int], mode: int = CELL_MODE, reserved: int = 0) -> int:
    """Pack a base cell and the set digits (levels 1..len(digits)) into an integer."""
    padded = tuple(digits) + (UNSET_DIGIT,) * (MAX_RES - len(digits))
    return IndexFields(
        mode=mode,
        resolution=len(digits),
        base_cell=base_cell,
        digits=padded,
        reserved=reserved,
    ).encode()


@dataclass(frozen=True, order=True)
class CellIndex:
    """A cell identifier. Immutable; compares and hashes by its integer value."""
    value: int

    @classmethod
    def from_int(cls, value: int) -> "CellIndex":
        """Wrap a raw 64-bit value without validating it."""
        if not 0 <= value < _UINT64_LIMIT:
            raise OutOfRange(f"{value} does not fit in 64 bits")
        return cls(value)

    @classmethod
    def from_digits(cls, base_cell: int, digits: Sequence[int] = ()) -> "CellIndex":
        """
        Encode a cell from its base cell and hierarchical position.

        Args:
            base_cell: Base cell number (0..121)
            digits: Child position (0..6) chosen at each level, coarsest first.
                    The resolution is the number of digits.

        Returns:
            The encoded CellIndex (not checked against the pentagon rule;
            use is_valid() for that)
        """
        if len(digits) > MAX_RES:
            raise InvalidResolution(f"{len(digits)} digits exceeds max resolution {MAX_RES}")
        if not 0 <= base_cell < NUM_BASE_CELLS:
            raise OutOfRange(f"base cell {base_cell} not in [0, {NUM_BASE_CELLS - 1}]")
        for digit in digits:
            if not 0 <= digit <= 6:
                raise OutOfRange(f"digit {digit} not in [0, 6]")
        return cls(encode_cell(base_cell, digits))

    @classmethod
    def from_string(cls, text: str) -> "CellIndex":
        """
        Parse the hexadecimal form of an index.

        Accepts up to 16 hex characters, so both the canonical zero-padded
        form ("085283473fffffff") and the unpadded form ("85283473fffffff")
        parse to the same index.

        Raises:
            ParseError: If the string is not hexadecimal or an unset digit
                        comes before a set one
        """
        if not isinstance(text, str) or not _HEX_RE.match(text):
            metrics.index_parse_total.labels(status="error").inc()
            raise ParseError(f"not a 1-16 character hex string: {text!r}")

        value = int(text, 16)
        digits = IndexFields.decode(value).digits
        first_unset = next((level for level, digit in enumerate(digits) if digit == UNSET_DIGIT), None)
        if first_unset is not None and any(digit != UNSET_DIGIT for digit in digits[first_unset:]):
            metrics.index_parse_total.labels(status="error").inc()
            raise ParseError(f"unset digit before a set digit in {text!r}")

        metrics.index_parse_total.labels(status="success").inc()
        return cls(value)

    def to_string(self) -> str:
        """Canonical form: 16 lowercase hex characters, zero padded."""
        return format(self.value, f"0{STRING_WIDTH}x")

    def __str__(self) -> str:
        return self.to_string()

    def fields(self) -> IndexFields:
        return IndexFields.decode(self.value)

    @property
    def mode(self) -> int:
        return (self.value >> _MODE_OFFSET) & _MODE_MASK

    @property
    def resolution(self) -> int:
        return (self.value >> _RES_OFFSET) & _RES_MASK

    @property
    def base_cell(self) -> int:
        return (self.value >> _BASE_CELL_OFFSET) & _BASE_CELL_MASK

    def digit(self, level: int) -> int:
        """
        Child position chosen at a level.

        Raises:
            OutOfRange: If level is not in [1, 15]
        """
        if not 1 <= level <= MAX_RES:
            raise OutOfRange(f"digit level {level} not in [1, {MAX_RES}]")
        return (self.value >> _digit_offset(level)) & _DIGIT_MASK

    @property
    def digits(self) -> Tuple[int, ...]:
        """The set digits, levels 1..resolution."""
        return tuple(self.digit(level) for level in range(1, self.resolution + 1))

    def leading_nonzero_digit(self) -> int:
        return next((digit for digit in self.digits if digit != 0), 0)

    def is_pentagon(self) -> bool:
        """Pentagon base cell with every set digit at the center position."""
        return self.base_cell in PENTAGON_BASE_CELLS and self.leading_nonzero_digit() == 0

    @property
    def shape(self) -> CellShape:
        return CellShape.PENTAGON if self.is_pentagon() else CellShape.HEXAGON

    def is_valid(self) -> bool:
        """Whether this is a structurally valid cell index."""
        fields = self.fields()
        if fields.high_bit != 0 or fields.mode != CELL_MODE or fields.reserved != 0:
            return False
        if fields.base_cell >= NUM_BASE_CELLS or fields.resolution > MAX_RES:
            return False

        set_digits = fields.digits[:fields.resolution]
        if any(digit == UNSET_DIGIT for digit in set_digits):
            return False
        if any(digit != UNSET_DIGIT for digit in fields.digits[fields.resolution:]):
            return False

        # Pentagons have no child in the deleted K wedge
        if fields.base_cell in PENTAGON_BASE_CELLS:
            leading = next((digit for digit in set_digits if digit != 0), 0)
            if leading == 1:
                return False
        return True
