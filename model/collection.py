from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import mido

from core.logger import AppLogger
from midi.inspector import InspectionResult, decode
from midi.smf import RawChunk, SmfTiming, TrackEvent
from midi.sysex import SYSEX_END, SYSEX_START, format_bytes

_META_NAMES = {
    0x00: "Sequence Number", 0x01: "Text", 0x02: "Copyright", 0x03: "Track Name",
    0x04: "Instrument Name", 0x05: "Lyric", 0x06: "Marker", 0x07: "Cue Point",
    0x20: "Channel Prefix", 0x21: "Port", 0x51: "Set Tempo", 0x54: "SMPTE Offset",
    0x58: "Time Signature", 0x59: "Key Signature", 0x7F: "Sequencer Specific",
}


@dataclass
class CollectionEntry:
    message: bytes
    delta: int  # ticks after the previous entry


@dataclass(frozen=True)
class EventRow:
    time: int
    data: bytes
    kind: str
    detail: str


def _check_message(message: bytes) -> bytes:
    message = bytes(message)
    if len(message) < 2 or message[0] != SYSEX_START or message[-1] != SYSEX_END:
        raise ValueError("SysEx messages must start with F0h and end with F7h")
    return message


def _channel_detail(data: bytes) -> str:
    msg = mido.Message.from_bytes(list(data))
    fields = " ".join(f"{k}={v}" for k, v in msg.dict().items() if k not in ("type", "time"))
    return f"{msg.type} {fields}"


def _meta_detail(data: bytes) -> str:
    meta_type = data[1]
    name = _META_NAMES.get(meta_type, f"Meta event {meta_type:02X}h")
    if meta_type == 0x51 and len(data) == 5:
        us = int.from_bytes(data[2:5], "big")
        return f"{name}: {60_000_000 / us:.2f} BPM" if us else name
    if 0x01 <= meta_type <= 0x07:
        return f"{name}: {data[2:].decode('latin-1')}"
    return f"{name}: {format_bytes(data[2:])}".rstrip(": ")


class SysExCollection:
    """Ordered SysEx messages with per-entry timing.

    Entry order is playback and export order. Events other than complete
    exclusive messages picked up from an imported MIDI file are kept in
    ``other_events`` (absolute ticks) and written back on export.
    """

    def __init__(self, timing: SmfTiming | None = None,
                 logger: AppLogger | None = None) -> None:
        self.timing = timing or SmfTiming()
        self.entries: list[CollectionEntry] = []
        self.other_events: list[TrackEvent] = []
        self.extra_chunks: list[RawChunk] = []
        self._logger = logger

    def _log(self, msg: str) -> None:
        if self._logger:
            self._logger.sysex(msg)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[CollectionEntry]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> CollectionEntry:
        return self.entries[index]

    def _default_delta(self) -> int:
        return self.timing.spacing_ticks if self.entries else 0

    def append(self, message: bytes, delta: int | None = None) -> CollectionEntry:
        """Add *message* at the end.

        Without *delta* the message follows the previous one after the
        configured spacing, so resets have time to complete.
        """
        return self.insert(len(self.entries), message, delta)

    def insert(self, index: int, message: bytes, delta: int | None = None) -> CollectionEntry:
        message = _check_message(message)
        if delta is None:
            delta = self._default_delta()
        if delta < 0:
            raise ValueError(f"Delta time must not be negative, got {delta}")
        entry = CollectionEntry(message, delta)
        self.entries.insert(index, entry)
        self._log(f"Added {format_bytes(message)} (+{delta} ticks)")
        return entry

    def remove(self, index: int) -> CollectionEntry:
        entry = self.entries.pop(index)
        self._log(f"Removed {format_bytes(entry.message)}")
        return entry

    def move(self, index: int, new_index: int) -> None:
        """Move an entry; its delta time travels with it."""
        entry = self.entries.pop(index)
        self.entries.insert(new_index, entry)
        self._log(f"Moved entry {index} to {new_index}")

    def clear(self) -> None:
        self.entries.clear()
        self.other_events.clear()
        self.extra_chunks.clear()
        self._log("Cleared collection")

    def absolute_times(self) -> list[int]:
        times = []
        time = 0
        for entry in self.entries:
            time += entry.delta
            times.append(time)
        return times

    def messages(self) -> list[bytes]:
        return [e.message for e in self.entries]

    def inspect(self) -> list[InspectionResult]:
        return [decode(e.message) for e in self.entries]

    def event_rows(self) -> list[EventRow]:
        """Every event with its absolute time, in time order, ready for listing."""
        rows = [EventRow(time, message, "sysex", decode(message).describe())
                for time, message in zip(self.absolute_times(), self.messages())]
        for event in self.other_events:
            if event.kind == "channel":
                detail = _channel_detail(event.data)
            elif event.kind == "meta":
                detail = _meta_detail(event.data)
            elif event.kind == "sysex":
                detail = decode(event.data).describe()
            else:
                detail = f"SysEx escape: {format_bytes(event.data)}"
            rows.append(EventRow(event.time, event.data, event.kind, detail))
        rows.sort(key=lambda r: r.time)
        return rows

    # -- .syx files --

    def save_syx(self, path: Path) -> None:
        """Write the messages back to back, without timing."""
        mido.write_syx_file(str(path), [mido.Message("sysex", data=m[1:-1])
                                        for m in self.messages()])
        self._log(f"Saved {len(self.entries)} message(s) to {path}")

    @classmethod
    def load_syx(cls, path: Path, timing: SmfTiming | None = None,
                 logger: AppLogger | None = None) -> SysExCollection:
        """Read a binary or hex-text .syx file, spacing messages by the default gap."""
        collection = cls(timing=timing, logger=logger)
        for msg in mido.read_syx_file(str(path)):
            collection.append(bytes(msg.bytes()))
        return collection
