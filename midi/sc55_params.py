"""Roland SC-55/SC-155 display address map (model 45h).

Sound settings on the SC-55 go through the GS model id; the SC-55's own id
only addresses the front panel display.
"""
from __future__ import annotations

from midi.params import ParamDef, ValueKind

DOT_ROWS = 64

BLOCKS: list[tuple[bytes, str]] = [
    (bytes([0x10, 0x00]), "Display letters"),
    (bytes([0x10, 0x01]), "Display dot data"),
]

PARAMS: list[ParamDef] = [
    ParamDef("display_letters", "DISPLAY LETTERS", bytes([0x10, 0x00, 0x00]), size=32,
             kind=ValueKind.TEXT, block="Display letters"),
    # Each byte lights five dots of one row segment.
    *[ParamDef(f"dot_data_{row + 1}", f"DISPLAY DOT DATA {row + 1}",
               bytes([0x10, 0x01, row]), kind=ValueKind.BITMASK, mask=0x1F,
               max_val=0x1F, block="Display dot data")
      for row in range(DOT_ROWS)],
]
