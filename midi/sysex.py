from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Sequence

from midi.profiles import (
    BROADCAST_UNIT_ID, MANUFACTURER_IDS, DeviceProfile, find_profile,
)

SYSEX_START = 0xF0
SYSEX_END = 0xF7

MIN_FRAME_SIZE = 3  # F0 <manufacturer> F7
_ROLAND_HEADER_SIZE = 4  # manufacturer, device, model, command


class FrameError(ValueError):
    """Raw bytes that cannot be split into an exclusive frame."""


class TruncatedFrame(FrameError):
    pass


class BadFraming(FrameError):
    pass


class UnknownManufacturer(FrameError):
    """Manufacturer id not covered by any profile.

    The partially decoded frame is kept on ``frame`` so it can still be shown.
    """

    def __init__(self, frame: RawFrame) -> None:
        super().__init__(f"No device profile for manufacturer {frame.manufacturer_id:02X}h")
        self.frame = frame


def checksum(span: Iterable[int]) -> int:
    """Roland checksum: the value that brings the span's sum to 0 mod 128."""
    return (128 - sum(span) % 128) % 128


def format_bytes(data: Iterable[int]) -> str:
    return " ".join(f"{b:02X}" for b in data)


def parse_hex_sysex(text: str) -> bytes:
    """Parse pasted hex such as ``F0 41 10 42 12 40 00 7F 00 41 F7``.

    Each whitespace separated token is one byte; ``41h``, ``41H`` and ``0x41``
    spellings are accepted.
    """
    out = bytearray()
    for token in text.split():
        hex_byte = token
        if hex_byte[-1:] in ("h", "H"):
            hex_byte = hex_byte[:-1]
        elif hex_byte[:2] in ("0x", "0X"):
            hex_byte = hex_byte[2:]
        if len(hex_byte) != 2 or any(c not in "0123456789abcdefABCDEF" for c in hex_byte):
            raise ValueError(f"{token!r} is not recognised as a hex byte")
        out.append(int(hex_byte, 16))
    return bytes(out)


@dataclass(frozen=True)
class RawFrame:
    """An exclusive message split into its fields, before any parameter lookup."""
    raw: bytes
    manufacturer_id: int
    profile: DeviceProfile | None = None
    unit_id: int | None = None
    model_id: int | None = None
    command_id: int | None = None
    address: bytes = b""
    data: bytes = b""
    checksum: int | None = None
    checksum_valid: bool | None = None

    @property
    def recognized(self) -> bool:
        return self.profile is not None

    @property
    def body(self) -> bytes:
        """Everything between F0 and F7."""
        return self.raw[1:-1]

    @property
    def is_broadcast(self) -> bool:
        return self.unit_id == BROADCAST_UNIT_ID


def _checksum_span(profile: DeviceProfile, header: bytes, payload: bytes) -> bytes:
    return (header + payload)[_ROLAND_HEADER_SIZE + profile.checksum_start:]


def decode_frame(message: Sequence[int]) -> RawFrame:
    """Split raw bytes into a RawFrame.

    Raises TruncatedFrame when the message is cut short, BadFraming when the
    F0/F7 envelope is wrong, and UnknownManufacturer (carrying the frame) when
    no profile claims the manufacturer id. A wrong checksum is not an error;
    it is reported through ``checksum_valid``.
    """
    raw = bytes(message)
    if len(raw) < MIN_FRAME_SIZE:
        raise TruncatedFrame(f"Only {len(raw)} bytes, an exclusive message needs {MIN_FRAME_SIZE}")
    if raw[0] != SYSEX_START:
        raise BadFraming(f"Message starts with {raw[0]:02X}h, not F0h")
    if raw[-1] != SYSEX_END:
        if any(b & 0x80 for b in raw[1:]):
            raise BadFraming("Status byte inside exclusive message")
        raise TruncatedFrame("Message ends before F7h")
    body = raw[1:-1]
    if any(b & 0x80 for b in body):
        raise BadFraming("Status byte inside exclusive message")

    manufacturer_id = body[0]
    if manufacturer_id not in MANUFACTURER_IDS:
        raise UnknownManufacturer(RawFrame(raw=raw, manufacturer_id=manufacturer_id,
                                           data=body[1:]))
    if len(body) < _ROLAND_HEADER_SIZE:
        raise TruncatedFrame("Message ends inside the device/model/command header")

    unit_id, model_id, command_id = body[1], body[2], body[3]
    rest = body[_ROLAND_HEADER_SIZE:]
    profile = find_profile(manufacturer_id, model_id)
    if profile is None:
        # Unknown model: the address size is unknown, so keep address+data together.
        if not rest:
            return RawFrame(raw=raw, manufacturer_id=manufacturer_id, unit_id=unit_id,
                            model_id=model_id, command_id=command_id)
        return RawFrame(raw=raw, manufacturer_id=manufacturer_id, unit_id=unit_id,
                        model_id=model_id, command_id=command_id, data=rest[:-1],
                        checksum=rest[-1], checksum_valid=checksum(rest[:-1]) == rest[-1])

    if len(raw) < profile.min_frame_size:
        raise TruncatedFrame(
            f"{profile.name} messages need at least {profile.min_frame_size} bytes, got {len(raw)}")
    address = rest[:profile.address_size]
    data = rest[profile.address_size:-1]
    trailing = rest[-1]
    span = _checksum_span(profile, body[:_ROLAND_HEADER_SIZE], address + data)
    return RawFrame(raw=raw, manufacturer_id=manufacturer_id, profile=profile,
                    unit_id=unit_id, model_id=model_id, command_id=command_id,
                    address=address, data=data, checksum=trailing,
                    checksum_valid=checksum(span) == trailing)


def encode_frame(profile: DeviceProfile, unit_id: int, command: int,
                 address: Sequence[int], data: Sequence[int] = b"") -> bytes:
    """Build a complete, checksum-valid exclusive message for *profile*."""
    if not profile.accepts_unit(unit_id):
        raise ValueError(f"{profile.name} does not answer to unit id {unit_id:#04x}")
    if command not in profile.commands:
        raise ValueError(f"{profile.name} does not support command {command:#04x}")
    if len(address) != profile.address_size:
        raise ValueError(f"{profile.name} addresses are {profile.address_size} bytes, "
                         f"got {len(address)}")
    if any(not 0 <= b <= 0x7F for b in address):
        raise ValueError("Address bytes must be 0x00-0x7F")
    if any(not 0 <= b <= 0x7F for b in data):
        raise ValueError("SysEx data bytes must all be <= 0x7F")
    header = bytes([profile.manufacturer_id, unit_id, profile.model_id, command])
    payload = bytes(address) + bytes(data)
    span = _checksum_span(profile, header, payload)
    return bytes([SYSEX_START]) + header + payload + bytes([checksum(span), SYSEX_END])
