"""Universal System Exclusive messages (manufacturer ids 7Eh and 7Fh).

These are defined by the MIDI 1.0 Detailed Specification rather than by a
manufacturer, so they do not belong to any device profile. Only the header
(device id, sub-id#1, sub-id#2) is parsed; a few well-known messages get a
name.
"""
from __future__ import annotations
from dataclasses import dataclass

from midi.profiles import BROADCAST_UNIT_ID

UNIVERSAL_NON_REAL_TIME = 0x7E
UNIVERSAL_REAL_TIME = 0x7F

# (real_time, sub_id1, sub_id2) -> name
MESSAGE_NAMES: dict[tuple[bool, int, int], str] = {
    (False, 0x06, 0x01): "Identity Request",
    (False, 0x06, 0x02): "Identity Reply",
    (False, 0x09, 0x01): "GM System On",
    (False, 0x09, 0x02): "GM System Off",
    (False, 0x09, 0x03): "GM2 System On",
    (True, 0x04, 0x01): "Master Volume",
    (True, 0x04, 0x02): "Master Balance",
}


def is_universal(manufacturer_id: int) -> bool:
    return manufacturer_id in (UNIVERSAL_NON_REAL_TIME, UNIVERSAL_REAL_TIME)


@dataclass(frozen=True)
class UniversalMessage:
    real_time: bool
    device_id: int
    sub_id1: int
    sub_id2: int
    data: bytes

    @property
    def name(self) -> str | None:
        return MESSAGE_NAMES.get((self.real_time, self.sub_id1, self.sub_id2))

    def describe(self) -> str:
        kind = "Real Time" if self.real_time else "Non-Real Time"
        target = ("Broadcast" if self.device_id == BROADCAST_UNIT_ID
                  else f"Device {self.device_id:02X}h")
        text = (f"Universal {kind}, {target}, Sub-ID#1 {self.sub_id1:02X}h, "
                f"Sub-ID#2 {self.sub_id2:02X}h")
        if self.name:
            text += f" ({self.name})"
        if self.name == "Master Volume" and len(self.data) == 2:
            # 14-bit value, LSB first
            text += f" = {self.data[0] | (self.data[1] << 7)}"
        elif self.data:
            text += ": " + " ".join(f"{b:02X}" for b in self.data)
        return text


def parse_universal(body: bytes) -> UniversalMessage | None:
    """Parse the bytes between F0 and F7. None if the header is incomplete."""
    if len(body) < 4 or not is_universal(body[0]):
        return None
    return UniversalMessage(
        real_time=body[0] == UNIVERSAL_REAL_TIME,
        device_id=body[1],
        sub_id1=body[2],
        sub_id2=body[3],
        data=bytes(body[4:]),
    )


def build_gm_system_on(device_id: int = BROADCAST_UNIT_ID) -> bytes:
    """GM System On: ``F0 7E <dev> 09 01 F7``."""
    if not 0 <= device_id <= 0x7F:
        raise ValueError(f"Device id {device_id} outside 0-127")
    return bytes([0xF0, UNIVERSAL_NON_REAL_TIME, device_id, 0x09, 0x01, 0xF7])
