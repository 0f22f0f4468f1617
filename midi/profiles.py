"""Device profiles for the modeled Roland tone generators.

Every profile shares Roland's exclusive layout (manufacturer 41h, device id,
one model byte, one command byte, a fixed-size address, data, checksum) and
differs in model id, the set of unit ids it answers to and its parameter map.
Profiles are built once at import time and never mutated.
"""
from __future__ import annotations
from dataclasses import dataclass

from midi.params import ParamMap
from midi import gs_params, sc7_params, sc55_params

ROLAND_ID = 0x41

BROADCAST_UNIT_ID = 0x7F

CMD_RQ1 = 0x11  # Request data 1
CMD_DT1 = 0x12  # Data set 1

COMMAND_NAMES = {
    CMD_RQ1: "Request data 1",
    CMD_DT1: "Data set 1",
}


@dataclass(frozen=True)
class DeviceProfile:
    key: str
    name: str
    manufacturer_id: int
    model_id: int
    unit_ids: frozenset[int]
    default_unit_id: int
    registry: ParamMap
    address_size: int = 3
    # Start of the checksum span relative to the first address byte.
    # Negative values reach back into the device/model/command header.
    checksum_start: int = 0
    commands: tuple[int, ...] = (CMD_DT1, CMD_RQ1)

    @property
    def min_frame_size(self) -> int:
        # F0 mfr dev model cmd <address> sum F7
        return 7 + self.address_size

    def accepts_unit(self, unit_id: int) -> bool:
        return unit_id in self.unit_ids

    def command_name(self, command_id: int) -> str:
        return COMMAND_NAMES.get(command_id, f"Command {command_id:02X}h")


GS = DeviceProfile(
    key="gs",
    name="Roland GS",
    manufacturer_id=ROLAND_ID,
    model_id=0x42,
    unit_ids=frozenset([*range(0x00, 0x20), BROADCAST_UNIT_ID]),
    default_unit_id=0x10,
    registry=ParamMap(gs_params.PARAMS, address_size=3, blocks=gs_params.BLOCKS),
)

SC_7 = DeviceProfile(
    key="sc7",
    name="Roland SC-7",
    manufacturer_id=ROLAND_ID,
    model_id=0x56,
    unit_ids=frozenset([0x10, BROADCAST_UNIT_ID]),  # not configurable on the unit
    default_unit_id=0x10,
    registry=ParamMap(sc7_params.PARAMS, address_size=3, blocks=sc7_params.BLOCKS),
)

SC_55 = DeviceProfile(
    key="sc55",
    name="Roland SC-55/SC-155",
    manufacturer_id=ROLAND_ID,
    model_id=0x45,
    unit_ids=frozenset([*range(0x00, 0x20), BROADCAST_UNIT_ID]),
    default_unit_id=0x10,
    registry=ParamMap(sc55_params.PARAMS, address_size=3, blocks=sc55_params.BLOCKS),
)

PROFILES: tuple[DeviceProfile, ...] = (GS, SC_7, SC_55)

_BY_KEY = {p.key: p for p in PROFILES}
_BY_IDS = {(p.manufacturer_id, p.model_id): p for p in PROFILES}
MANUFACTURER_IDS = frozenset(p.manufacturer_id for p in PROFILES)


def get_profile(key: str) -> DeviceProfile:
    """Return the profile registered under *key* ("gs", "sc7", "sc55")."""
    try:
        return _BY_KEY[key]
    except KeyError:
        raise KeyError(f"Unknown device profile '{key}'") from None


def find_profile(manufacturer_id: int, model_id: int) -> DeviceProfile | None:
    return _BY_IDS.get((manufacturer_id, model_id))
