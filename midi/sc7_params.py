"""Roland SC-7 parameter address map (model 56h).

The SC-7 is not a full GS device; it only exposes the effect settings and a
handful of per-part controls. Source: Roland SC-7 owner's manual.
"""
from __future__ import annotations

from midi.params import ParamDef, ValueKind
from midi.gs_params import OFF_ON, PART_FOR_BLOCK, REVERB_TYPES, RX_CHANNEL

_SYSTEM = "System parameters, Effect Control"

BLOCKS: list[tuple[bytes, str]] = [
    (bytes([0x00, 0x00]), _SYSTEM),
    *[(bytes([0x01, block]), f"Patch parameters, Part {PART_FOR_BLOCK[block]}")
      for block in range(16)],
]


def _patch_params(block: int) -> list[ParamDef]:
    part = PART_FOR_BLOCK[block]
    blk = f"Patch parameters, Part {part}"

    def addr(offset: int) -> bytes:
        return bytes([0x01, block, offset])

    return [
        ParamDef(f"part{part}_rx_channel", "RX. CHANNEL", addr(0x00),
                 kind=ValueKind.ENUM, min_val=0, max_val=0x10, value_labels=RX_CHANNEL,
                 block=blk),
        ParamDef(f"part{part}_rx_nrpn", "RX. NRPN", addr(0x01),
                 kind=ValueKind.ENUM, min_val=0, max_val=1, value_labels=OFF_ON, block=blk),
        ParamDef(f"part{part}_mod_lfo_rate_control", "MOD LFO RATE CONTROL", addr(0x02),
                 zero_offset=0x40, unit_range=(-10.0, 10.0), unit="Hz", block=blk),
        ParamDef(f"part{part}_mod_lfo_pitch_depth", "MOD LFO PITCH DEPTH", addr(0x03),
                 unit_range=(0.0, 600.0), unit="cents", block=blk),
        # Unit is missing from the SC-7 manual; the SC-55 documents the same
        # control in cents.
        ParamDef(f"part{part}_caf_tvf_cutoff_control", "CAF TVF CUT OFF CONTROL", addr(0x04),
                 zero_offset=0x40, unit_range=(-9600.0, 9600.0), unit="cents", block=blk),
        ParamDef(f"part{part}_caf_amplitude_control", "CAF AMPLITUDE CONTROL", addr(0x05),
                 zero_offset=0x40, unit_range=(-100.0, 100.0), unit="%", block=blk),
        ParamDef(f"part{part}_caf_lfo_rate_control", "CAF LFO RATE CONTROL", addr(0x06),
                 zero_offset=0x40, unit_range=(-10.0, 10.0), unit="Hz", block=blk),
        ParamDef(f"part{part}_caf_lfo_pitch_depth", "CAF LFO PITCH DEPTH", addr(0x07),
                 unit_range=(0.0, 600.0), unit="cents", block=blk),
    ]


PARAMS: list[ParamDef] = [
    ParamDef("reverb_character", "REVERB CHARACTER", bytes([0x00, 0x00, 0x00]),
             kind=ValueKind.ENUM, min_val=0, max_val=7, value_labels=REVERB_TYPES,
             block=_SYSTEM),
    ParamDef("reverb_level", "REVERB LEVEL", bytes([0x00, 0x00, 0x01]), block=_SYSTEM),
    ParamDef("reverb_time", "REVERB (DELAY) TIME", bytes([0x00, 0x00, 0x02]), block=_SYSTEM),
    ParamDef("delay_time", "DELAY TIME", bytes([0x00, 0x00, 0x03]), block=_SYSTEM),
    ParamDef("delay_feedback", "DELAY FEEDBACK", bytes([0x00, 0x00, 0x04]), block=_SYSTEM),
    ParamDef("chorus_level", "CHORUS LEVEL", bytes([0x00, 0x00, 0x05]), block=_SYSTEM),
    ParamDef("chorus_feedback", "CHORUS FEEDBACK", bytes([0x00, 0x00, 0x06]), block=_SYSTEM),
    ParamDef("chorus_delay", "CHORUS DELAY", bytes([0x00, 0x00, 0x07]), block=_SYSTEM),
    ParamDef("chorus_rate", "CHORUS RATE", bytes([0x00, 0x00, 0x08]), block=_SYSTEM),
    ParamDef("chorus_depth", "CHORUS DEPTH", bytes([0x00, 0x00, 0x09]), block=_SYSTEM),
    *[p for block in range(16) for p in _patch_params(block)],
]
