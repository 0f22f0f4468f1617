from __future__ import annotations
import bisect
import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence


class ValueKind(Enum):
    RANGE = "range"      # integer in [min_val, max_val]
    ENUM = "enum"        # one of value_labels
    BITMASK = "bitmask"  # any combination of the bits in mask
    TEXT = "text"        # fixed-length printable ASCII


class ParamValueError(ValueError):
    """A value the parameter cannot hold. Never clamped."""


class OutOfRange(ParamValueError):
    pass


class InvalidEnum(ParamValueError):
    pass


def address_to_int(address: Sequence[int]) -> int:
    """Collapse a 7-bit-per-byte address (MSB first) into one integer."""
    n = 0
    for b in address:
        n = (n << 7) | (b & 0x7F)
    return n


def int_to_address(n: int, size: int) -> bytes:
    return bytes((n >> (7 * i)) & 0x7F for i in reversed(range(size)))


@dataclass(frozen=True)
class ParamDef:
    key: str
    name: str
    address: bytes
    size: int = 1
    kind: ValueKind = ValueKind.RANGE
    min_val: int = 0
    max_val: int = 127
    block: str = ""
    # not hashed; stored read-only
    value_labels: Mapping[int, str] | None = field(default=None, hash=False)
    mask: int | None = None
    bits_per_byte: int = 7            # 4 for nibble-packed values
    # Display metadata
    zero_offset: int = 0              # raw value that reads as zero
    unit_range: tuple[float, float] | None = None
    unit: str = ""
    default: int | str | None = None

    def __post_init__(self) -> None:
        if self.value_labels is not None and not isinstance(self.value_labels, MappingProxyType):
            object.__setattr__(self, "value_labels", MappingProxyType(dict(self.value_labels)))

    @property
    def start(self) -> int:
        return address_to_int(self.address)

    @property
    def end(self) -> int:
        """First address after this parameter's data field."""
        return self.start + self.size

    def contains(self, address: int) -> bool:
        return self.start <= address < self.end

    # -- values --

    def validate(self, value) -> None:
        """Raise OutOfRange / InvalidEnum if *value* cannot be stored."""
        if self.kind is ValueKind.TEXT:
            if not isinstance(value, str):
                raise OutOfRange(f"'{self.name}' expects text, got {value!r}")
            if len(value) > self.size:
                raise OutOfRange(
                    f"'{self.name}' holds at most {self.size} characters, got {len(value)}")
            if any(not 0x20 <= ord(c) <= 0x7E for c in value):
                raise OutOfRange(f"'{self.name}' only accepts printable ASCII")
            return
        if isinstance(value, bool) or not isinstance(value, int):
            raise OutOfRange(f"'{self.name}' expects an integer, got {value!r}")
        if self.kind is ValueKind.ENUM:
            if value not in (self.value_labels or {}):
                raise InvalidEnum(f"{value} is not a valid choice for '{self.name}'")
        elif self.kind is ValueKind.BITMASK:
            if value < 0 or value & ~(self.mask or 0):
                raise OutOfRange(
                    f"{value:#x} sets bits outside mask {self.mask or 0:#x} of '{self.name}'")
        elif not (self.min_val <= value <= self.max_val):
            raise OutOfRange(
                f"{value} outside {self.min_val}-{self.max_val} for '{self.name}'")

    def encode(self, value) -> bytes:
        """Pack an already validated value into the data field."""
        if self.kind is ValueKind.TEXT:
            return value.ljust(self.size).encode("ascii")
        bits = self.bits_per_byte
        low = (1 << bits) - 1
        return bytes((value >> (bits * i)) & low for i in reversed(range(self.size)))

    def decode(self, data: bytes) -> int | str:
        if len(data) != self.size:
            raise ValueError(f"'{self.name}' needs {self.size} data bytes, got {len(data)}")
        if self.kind is ValueKind.TEXT:
            return bytes(b & 0x7F for b in data).decode("ascii").rstrip(" ")
        bits = self.bits_per_byte
        low = (1 << bits) - 1
        value = 0
        for b in data:
            value = (value << bits) | (b & low)
        return value

    def fits_packing(self, data: bytes) -> bool:
        """False if any data byte carries bits the packing does not use."""
        return all(b >> self.bits_per_byte == 0 for b in data)

    def label(self, value) -> str | None:
        if self.value_labels is None:
            return None
        return self.value_labels.get(value)

    def describe(self, value) -> str:
        """Human-readable rendering, e.g. ``= 3 [Hall 1]`` or ``= +2 [≈ +0.4 Hz]``."""
        if self.kind is ValueKind.TEXT:
            return f'= "{value}"'
        if self.kind is ValueKind.BITMASK:
            width = max((self.mask or 0).bit_length(), 1)
            return f"= {value:0{width}b}b"

        shifted = value - self.zero_offset
        signed = self.min_val != self.zero_offset and self.max_val != self.zero_offset
        text = f"= {shifted:+d}" if signed else f"= {shifted}"

        name = self.label(value)
        if name is not None:
            return f"{text} [{name}]"
        if self.unit_range is None or self.max_val <= self.min_val:
            return text

        midi_span = self.max_val - self.min_val
        unit_min, unit_max = self.unit_range
        unit_span = unit_max - unit_min
        unit_value = shifted * (unit_span / midi_span)
        # Only show decimals needed to tell neighbouring steps apart.
        precision = max(0, math.ceil(math.log10(midi_span) - math.log10(unit_span)))
        approx = "=" if unit_span == midi_span else "≈"
        if unit_value == 0:
            shown = "0"
        elif unit_min < 0 < unit_max:
            shown = f"{unit_value:+.{precision}f}"
        else:
            shown = f"{unit_value:.{precision}f}"
        return f"{text} [{approx} {shown} {self.unit}]".rstrip()


def validate(param: ParamDef, value) -> None:
    param.validate(value)


def find_overlaps(params: Iterable[ParamDef]) -> list[tuple[ParamDef, ParamDef]]:
    """Return every pair of definitions whose address ranges intersect."""
    ordered = sorted(params, key=lambda p: p.start)
    overlaps = []
    for i, first in enumerate(ordered):
        for second in ordered[i + 1:]:
            if second.start >= first.end:
                break
            overlaps.append((first, second))
    return overlaps


def _check_definition(param: ParamDef, address_size: int) -> None:
    if len(param.address) != address_size:
        raise ValueError(f"'{param.key}': address must be {address_size} bytes")
    if any(b > 0x7F for b in param.address):
        raise ValueError(f"'{param.key}': address bytes must be <= 0x7F")
    if param.size < 1:
        raise ValueError(f"'{param.key}': size must be positive")
    if param.bits_per_byte not in (4, 7):
        raise ValueError(f"'{param.key}': unsupported packing {param.bits_per_byte}")
    if param.kind is ValueKind.ENUM and not param.value_labels:
        raise ValueError(f"'{param.key}': enum parameter without labels")
    if param.kind is ValueKind.BITMASK and not param.mask:
        raise ValueError(f"'{param.key}': bitmask parameter without mask")
    if param.kind is ValueKind.RANGE:
        if param.min_val > param.max_val:
            raise ValueError(f"'{param.key}': min > max")
        if param.max_val >= 1 << (param.size * param.bits_per_byte):
            raise ValueError(f"'{param.key}': max does not fit {param.size} data bytes")
    if param.default is not None:
        try:
            param.validate(param.default)
        except ParamValueError as exc:
            raise ValueError(f"'{param.key}': bad default: {exc}") from None


class ParamMap:
    """Address map for one device profile.

    Built once from a static table. Construction fails on duplicate keys or
    overlapping address ranges.

    *blocks* lists (address prefix, block name) pairs, as in the "Address
    Block Map" of the Roland manuals. It places an address in a block even
    where no parameter is defined, and every definition must then sit inside
    the block its ``block`` field names.
    """

    def __init__(self, params: Iterable[ParamDef], address_size: int = 3,
                 blocks: Iterable[tuple[bytes, str]] = ()) -> None:
        self._address_size = address_size
        self._block_prefixes: list[tuple[bytes, str]] = []
        for prefix, name in blocks:
            prefix = bytes(prefix)
            if not 0 < len(prefix) < address_size:
                raise ValueError(f"Block '{name}': prefix must be shorter than an address")
            if any(prefix == p for p, _ in self._block_prefixes):
                raise ValueError(f"Duplicate block prefix {prefix.hex(' ').upper()}")
            self._block_prefixes.append((prefix, name))
        self._params: dict[str, ParamDef] = {}
        for p in params:
            _check_definition(p, address_size)
            if p.key in self._params:
                raise ValueError(f"Duplicate parameter key '{p.key}'")
            if self._block_prefixes:
                found = self.find_block(p.address)
                if found is None or found[0] != p.block:
                    raise ValueError(f"'{p.key}': address is not in block '{p.block}'")
            self._params[p.key] = p
        overlaps = find_overlaps(self._params.values())
        if overlaps:
            pairs = ", ".join(f"{a.key}/{b.key}" for a, b in overlaps)
            raise ValueError(f"Overlapping parameter addresses: {pairs}")
        self._ordered = sorted(self._params.values(), key=lambda p: p.start)
        self._starts = [p.start for p in self._ordered]

    @property
    def address_size(self) -> int:
        return self._address_size

    def __len__(self) -> int:
        return len(self._params)

    def get(self, key: str) -> ParamDef | None:
        return self._params.get(key)

    def list_all(self) -> list[ParamDef]:
        return list(self._params.values())

    def names(self) -> list[str]:
        return list(self._params.keys())

    def blocks(self) -> list[str]:
        seen: dict[str, None] = {}
        for p in self._params.values():
            seen.setdefault(p.block, None)
        return list(seen)

    def by_block(self, block: str) -> list[ParamDef]:
        return [p for p in self._params.values() if p.block == block]

    def lookup(self, address: Sequence[int]) -> tuple[ParamDef, int] | None:
        """Find the definition whose data field contains *address*.

        Returns (definition, byte offset into its data field) or None.
        """
        if len(address) != self._address_size:
            return None
        n = address_to_int(address)
        i = bisect.bisect_right(self._starts, n) - 1
        if i < 0:
            return None
        param = self._ordered[i]
        if not param.contains(n):
            return None
        return param, n - param.start

    def find_block(self, address: Sequence[int]) -> tuple[str, int] | None:
        """Name of the block holding *address* and the length of its prefix.

        The longest matching prefix wins. None if no block claims the address.
        """
        if len(address) != self._address_size:
            return None
        address = bytes(address)
        best: tuple[str, int] | None = None
        for prefix, name in self._block_prefixes:
            if address.startswith(prefix) and (best is None or len(prefix) > best[1]):
                best = (name, len(prefix))
        return best
