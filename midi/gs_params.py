"""Roland GS parameter address map (model 42h).

Sourced from the SC-55 and SC-55mkII owner's manuals. Addresses are three
7-bit bytes: 40 00 xx system, 40 01 xx patch common, 40 1x xx parts.
"""
from __future__ import annotations
from types import MappingProxyType

from midi.params import ParamDef, ValueKind

# ---------------------------------------------------------------------------
# Value labels, shared read-only with the SC-7 map
# ---------------------------------------------------------------------------
OFF_ON = MappingProxyType({0: "OFF", 1: "ON"})
REVERB_TYPES = MappingProxyType({0: "Room 1", 1: "Room 2", 2: "Room 3", 3: "Hall 1",
                                 4: "Hall 2", 5: "Plate", 6: "Delay", 7: "Panning Delay"})
_CHORUS_TYPES = MappingProxyType({0: "Chorus 1", 1: "Chorus 2", 2: "Chorus 3", 3: "Chorus 4",
                                  4: "Feedback Chorus", 5: "Flanger", 6: "Short Delay",
                                  7: "Short Delay (FB)"})
RX_CHANNEL = MappingProxyType({**{i: f"Channel {i + 1}" for i in range(16)}, 0x10: "OFF"})
_NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Part blocks are numbered 0-F, but block 0 belongs to Part 10 (drums).
PART_FOR_BLOCK = {0: 10, **{b: b for b in range(1, 10)}, **{b: b + 1 for b in range(10, 16)}}

_SYSTEM = "System parameters"
_COMMON = "Patch parameters, Common"

BLOCKS: list[tuple[bytes, str]] = [
    (bytes([0x40, 0x00]), _SYSTEM),
    (bytes([0x40, 0x01]), _COMMON),
    *[(bytes([0x40, 0x10 | block]), f"Patch parameters, Part {PART_FOR_BLOCK[block]}")
      for block in range(16)],
]


def _rx_switch(block: int, part: int, offset: int, name: str, default: int = 1) -> ParamDef:
    slug = name.lower().replace(".", "").replace(" ", "_")
    return ParamDef(f"part{part}_{slug}", name, bytes([0x40, 0x10 | block, offset]),
                    kind=ValueKind.ENUM, min_val=0, max_val=1, value_labels=OFF_ON,
                    block=f"Patch parameters, Part {part}", default=default)


def _tone_modify(block: int, part: int, offset: int, key: str, name: str) -> ParamDef:
    return ParamDef(f"part{part}_{key}", name, bytes([0x40, 0x10 | block, offset]),
                    min_val=0x0E, max_val=0x72, zero_offset=0x40,
                    block=f"Patch parameters, Part {part}", default=0x40)


def _part_params(block: int) -> list[ParamDef]:
    part = PART_FOR_BLOCK[block]
    blk = f"Patch parameters, Part {part}"
    hi = 0x10 | block

    def addr(offset: int) -> bytes:
        return bytes([0x40, hi, offset])

    return [
        # CC#00 value then P.C. value, 7 bits each
        ParamDef(f"part{part}_tone_number", "TONE NUMBER", addr(0x00), size=2,
                 min_val=0, max_val=0x3FFF, block=blk, default=0),
        ParamDef(f"part{part}_rx_channel", "RX. CHANNEL", addr(0x02),
                 kind=ValueKind.ENUM, min_val=0, max_val=0x10, value_labels=RX_CHANNEL,
                 block=blk, default=part - 1),
        _rx_switch(block, part, 0x03, "RX. PITCH BEND"),
        _rx_switch(block, part, 0x04, "RX. CH PRESSURE"),
        _rx_switch(block, part, 0x05, "RX. PROGRAM CHANGE"),
        _rx_switch(block, part, 0x06, "RX. CONTROL CHANGE"),
        _rx_switch(block, part, 0x07, "RX. POLY PRESSURE"),
        _rx_switch(block, part, 0x08, "RX. NOTE MESSAGE"),
        _rx_switch(block, part, 0x09, "RX. RPN"),
        _rx_switch(block, part, 0x0A, "RX. NRPN", default=0),
        _rx_switch(block, part, 0x0B, "RX. MODULATION"),
        _rx_switch(block, part, 0x0C, "RX. VOLUME"),
        _rx_switch(block, part, 0x0D, "RX. PANPOT"),
        _rx_switch(block, part, 0x0E, "RX. EXPRESSION"),
        _rx_switch(block, part, 0x0F, "RX. HOLD1"),
        _rx_switch(block, part, 0x10, "RX. PORTAMENTO"),
        _rx_switch(block, part, 0x11, "RX. SOSTENUTO"),
        _rx_switch(block, part, 0x12, "RX. SOFT"),
        ParamDef(f"part{part}_mono_poly_mode", "MONO/POLY MODE", addr(0x13),
                 kind=ValueKind.ENUM, min_val=0, max_val=1,
                 value_labels={0: "Mono", 1: "Poly"}, block=blk, default=1),
        ParamDef(f"part{part}_assign_mode", "ASSIGN MODE", addr(0x14),
                 kind=ValueKind.ENUM, min_val=0, max_val=2,
                 value_labels={0: "Single", 1: "Limited-Multi", 2: "Full-Multi"},
                 block=blk, default=0 if part == 10 else 1),
        ParamDef(f"part{part}_use_for_rhythm_part", "USE FOR RHYTHM PART", addr(0x15),
                 kind=ValueKind.ENUM, min_val=0, max_val=2,
                 value_labels={0: "OFF", 1: "MAP1", 2: "MAP2"},
                 block=blk, default=1 if part == 10 else 0),
        ParamDef(f"part{part}_pitch_key_shift", "PITCH KEY SHIFT", addr(0x16),
                 min_val=0x28, max_val=0x58, zero_offset=0x40,
                 unit_range=(-24.0, 24.0), unit="semitones", block=blk, default=0x40),
        ParamDef(f"part{part}_pitch_offset_fine", "PITCH OFFSET FINE", addr(0x17), size=2,
                 bits_per_byte=4, min_val=0x08, max_val=0xF8, zero_offset=0x80,
                 unit_range=(-12.0, 12.0), unit="Hz", block=blk, default=0x80),
        ParamDef(f"part{part}_part_level", "PART LEVEL", addr(0x19), block=blk, default=100),
        ParamDef(f"part{part}_velocity_sense_depth", "VELOCITY SENSE DEPTH", addr(0x1A),
                 block=blk, default=64),
        ParamDef(f"part{part}_velocity_sense_offset", "VELOCITY SENSE OFFSET", addr(0x1B),
                 block=blk, default=64),
        # 0 = random
        ParamDef(f"part{part}_part_panpot", "PART PANPOT", addr(0x1C),
                 zero_offset=0x40, block=blk, default=0x40),
        ParamDef(f"part{part}_key_range_low", "KEY RANGE LOW", addr(0x1D), block=blk, default=0),
        ParamDef(f"part{part}_key_range_high", "KEY RANGE HIGH", addr(0x1E),
                 block=blk, default=127),
        ParamDef(f"part{part}_cc1_controller_number", "CC1 CONTROLLER NUMBER", addr(0x1F),
                 max_val=0x5F, block=blk, default=0x10),
        ParamDef(f"part{part}_cc2_controller_number", "CC2 CONTROLLER NUMBER", addr(0x20),
                 max_val=0x5F, block=blk, default=0x11),
        ParamDef(f"part{part}_chorus_send_level", "CHORUS SEND LEVEL", addr(0x21),
                 block=blk, default=0),
        ParamDef(f"part{part}_reverb_send_level", "REVERB SEND LEVEL", addr(0x22),
                 block=blk, default=40),
        _tone_modify(block, part, 0x30, "vibrato_rate", "VIBRATO RATE"),
        _tone_modify(block, part, 0x31, "vibrato_depth", "VIBRATO DEPTH"),
        _tone_modify(block, part, 0x32, "tvf_cutoff_freq", "TVF CUTOFF FREQ."),
        _tone_modify(block, part, 0x33, "tvf_resonance", "TVF RESONANCE"),
        _tone_modify(block, part, 0x34, "env_attack_time", "TVF&TVA ENV. ATTACK"),
        _tone_modify(block, part, 0x35, "env_decay_time", "TVF&TVA ENV. DECAY"),
        _tone_modify(block, part, 0x36, "env_release_time", "TVF&TVA ENV. RELEASE"),
        _tone_modify(block, part, 0x37, "vibrato_delay", "VIBRATO DELAY"),
        *[ParamDef(f"part{part}_scale_tuning_{note.lower().replace('#', 's')}",
                   f"SCALE TUNING {note}", addr(0x40 + i),
                   zero_offset=0x40, unit_range=(-64.0, 63.0), unit="cents",
                   block=blk, default=0x40)
          for i, note in enumerate(_NOTE_NAMES)],
    ]


PARAMS: list[ParamDef] = [
    # -----------------------------------------------------------------------
    # System (40 00 xx)
    # -----------------------------------------------------------------------
    ParamDef("master_tune", "MASTER TUNE", bytes([0x40, 0x00, 0x00]), size=4,
             bits_per_byte=4, min_val=0x0018, max_val=0x07E8, zero_offset=0x0400,
             unit_range=(-100.0, 100.0), unit="cents", block=_SYSTEM, default=0x0400),
    ParamDef("master_volume", "MASTER VOLUME", bytes([0x40, 0x00, 0x04]),
             block=_SYSTEM, default=127),
    ParamDef("master_key_shift", "MASTER KEY-SHIFT", bytes([0x40, 0x00, 0x05]),
             min_val=0x28, max_val=0x58, zero_offset=0x40,
             unit_range=(-24.0, 24.0), unit="semitones", block=_SYSTEM, default=0x40),
    ParamDef("master_pan", "MASTER PAN", bytes([0x40, 0x00, 0x06]),
             min_val=0x01, max_val=0x7F, zero_offset=0x40, block=_SYSTEM, default=0x40),
    ParamDef("mode_set", "MODE SET", bytes([0x40, 0x00, 0x7F]),
             kind=ValueKind.ENUM, min_val=0, max_val=0,
             value_labels={0x00: "GS Reset"}, block=_SYSTEM),

    # -----------------------------------------------------------------------
    # Patch common (40 01 xx)
    # -----------------------------------------------------------------------
    ParamDef("patch_name", "PATCH NAME", bytes([0x40, 0x01, 0x00]), size=16,
             kind=ValueKind.TEXT, block=_COMMON),
    ParamDef("reverb_macro", "REVERB MACRO", bytes([0x40, 0x01, 0x30]),
             kind=ValueKind.ENUM, min_val=0, max_val=7, value_labels=REVERB_TYPES,
             block=_COMMON, default=4),
    ParamDef("reverb_character", "REVERB CHARACTER", bytes([0x40, 0x01, 0x31]),
             kind=ValueKind.ENUM, min_val=0, max_val=7, value_labels=REVERB_TYPES,
             block=_COMMON, default=4),
    ParamDef("reverb_pre_lpf", "REVERB PRE-LPF", bytes([0x40, 0x01, 0x32]),
             max_val=7, block=_COMMON, default=0),
    ParamDef("reverb_level", "REVERB LEVEL", bytes([0x40, 0x01, 0x33]),
             block=_COMMON, default=64),
    ParamDef("reverb_time", "REVERB TIME", bytes([0x40, 0x01, 0x34]),
             block=_COMMON, default=64),
    ParamDef("reverb_delay_feedback", "REVERB DELAY FEEDBACK", bytes([0x40, 0x01, 0x35]),
             block=_COMMON, default=0),
    ParamDef("reverb_send_level_to_chorus", "REVERB SEND LEVEL TO CHORUS",
             bytes([0x40, 0x01, 0x36]), block=_COMMON, default=0),
    ParamDef("chorus_macro", "CHORUS MACRO", bytes([0x40, 0x01, 0x38]),
             kind=ValueKind.ENUM, min_val=0, max_val=7, value_labels=_CHORUS_TYPES,
             block=_COMMON, default=2),
    ParamDef("chorus_pre_lpf", "CHORUS PRE-LPF", bytes([0x40, 0x01, 0x39]),
             max_val=7, block=_COMMON, default=0),
    ParamDef("chorus_level", "CHORUS LEVEL", bytes([0x40, 0x01, 0x3A]),
             block=_COMMON, default=64),
    ParamDef("chorus_feedback", "CHORUS FEEDBACK", bytes([0x40, 0x01, 0x3B]),
             block=_COMMON, default=8),
    ParamDef("chorus_delay", "CHORUS DELAY", bytes([0x40, 0x01, 0x3C]),
             block=_COMMON, default=80),
    ParamDef("chorus_rate", "CHORUS RATE", bytes([0x40, 0x01, 0x3D]),
             block=_COMMON, default=3),
    ParamDef("chorus_depth", "CHORUS DEPTH", bytes([0x40, 0x01, 0x3E]),
             block=_COMMON, default=19),
    ParamDef("chorus_send_level_to_reverb", "CHORUS SEND LEVEL TO REVERB",
             bytes([0x40, 0x01, 0x3F]), block=_COMMON, default=0),

    # -----------------------------------------------------------------------
    # Parts (40 1x xx), listed in block order 0-F
    # -----------------------------------------------------------------------
    *[p for block in range(16) for p in _part_params(block)],
]
