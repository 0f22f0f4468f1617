"""Standard MIDI File reading and writing for SysEx collections.

Reading accepts formats 0, 1 and 2 and is deliberately forgiving: only an
unreadable header is fatal (SmfError). Problems inside a chunk stop parsing of
that chunk only and are returned as SmfWarning records; the events read before
the problem are kept. Unknown chunk types are preserved and written back.

Writing always produces format 0 with a single track. Exclusive events are
stored the SMF 1.0 way: ``F0 <length> <bytes after F0, including F7>``.
"""
from __future__ import annotations
import math
import struct
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.config import AppConfig
    from core.logger import AppLogger
    from model.collection import SysExCollection

HEADER_ID = b"MThd"
TRACK_ID = b"MTrk"
HEADER_SIZE = 6

SYSEX = 0xF0
ESCAPE = 0xF7
META = 0xFF

META_SET_TEMPO = 0x51
META_END_OF_TRACK = 0x2F
END_OF_TRACK = bytes([0x00, META, META_END_OF_TRACK, 0x00])

DEFAULT_TEMPO_BPM = 120
VLQ_MAX = 0x0FFFFFFF  # four septets

# Data bytes following each channel status nibble
_CHANNEL_DATA_LENGTHS = {0x8: 2, 0x9: 2, 0xA: 2, 0xB: 2, 0xC: 1, 0xD: 1, 0xE: 2}


class SmfError(ValueError):
    """The data is not a Standard MIDI File at all."""


class ChunkError(ValueError):
    """Malformed content inside one chunk."""


def encode_vlq(value: int) -> bytes:
    """Variable-length quantity: 7 bits per byte, MSB first, bit 7 set on all but the last."""
    if not 0 <= value <= VLQ_MAX:
        raise ValueError(f"{value} cannot be stored as a variable-length quantity")
    out = [value & 0x7F]
    value >>= 7
    while value:
        out.append(0x80 | (value & 0x7F))
        value >>= 7
    return bytes(reversed(out))


def decode_vlq(data: bytes, pos: int = 0) -> tuple[int, int]:
    """Read a variable-length quantity at *pos*. Returns (value, next position)."""
    value = 0
    for _ in range(4):
        if pos >= len(data):
            raise ChunkError("Variable-length quantity runs past end of chunk")
        byte = data[pos]
        pos += 1
        value = (value << 7) | (byte & 0x7F)
        if not byte & 0x80:
            return value, pos
    raise ChunkError("Variable-length quantity longer than four bytes")


@dataclass(frozen=True)
class SmfWarning:
    offset: int
    message: str
    chunk_type: bytes | None = None

    def __str__(self) -> str:
        where = f" in {self.chunk_type.decode('latin-1')!r} chunk" if self.chunk_type else ""
        return f"{self.message}{where} (offset {self.offset})"


@dataclass(frozen=True)
class TrackEvent:
    """One event at an absolute tick.

    ``kind`` and ``data``:
      - "sysex": a complete exclusive message, ``F0 ... F7``
      - "escape": the bytes of an ``F7`` event that continues no packet
      - "meta": ``FF <type> <payload>`` without the length field
      - "channel": status byte followed by its data bytes
    """
    time: int
    kind: str
    data: bytes
    track: int = 0

    @property
    def meta_type(self) -> int | None:
        return self.data[1] if self.kind == "meta" else None


@dataclass(frozen=True)
class RawChunk:
    chunk_type: bytes
    data: bytes


@dataclass
class SmfData:
    format: int = 0
    division: int = 120
    events: list[TrackEvent] = field(default_factory=list)
    extra_chunks: list[RawChunk] = field(default_factory=list)
    track_count: int = 1
    warnings: list[SmfWarning] = field(default_factory=list)

    @property
    def uses_smpte(self) -> bool:
        return bool(self.division & 0x8000)

    @property
    def ticks_per_beat(self) -> int | None:
        return None if self.uses_smpte else self.division


@dataclass(frozen=True)
class SmfTiming:
    ticks_per_beat: int = 120
    tempo_bpm: float = DEFAULT_TEMPO_BPM
    spacing_ms: int = 50
    # Raw SMPTE header division of an imported file, written back unchanged.
    # Spacing still counts in ticks_per_beat.
    smpte_division: int | None = None

    @classmethod
    def from_config(cls, config: AppConfig) -> SmfTiming:
        return cls(ticks_per_beat=config.smf_ticks_per_beat,
                   tempo_bpm=config.smf_tempo_bpm,
                   spacing_ms=config.sysex_spacing_ms)

    def ms_to_ticks(self, ms: float) -> int:
        """Smallest tick count lasting at least *ms* milliseconds."""
        return math.ceil(self.ticks_per_beat * self.tempo_bpm * ms / 60000)

    @property
    def spacing_ticks(self) -> int:
        return self.ms_to_ticks(self.spacing_ms)

    @property
    def tempo_us_per_beat(self) -> int:
        return round(60_000_000 / self.tempo_bpm)

    @property
    def division(self) -> int:
        return self.smpte_division if self.smpte_division is not None else self.ticks_per_beat


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------

def _take(chunk: bytes, pos: int, length: int) -> bytes:
    if pos + length > len(chunk):
        raise ChunkError(f"Event needs {length} bytes, only {len(chunk) - pos} left in chunk")
    return chunk[pos:pos + length]


def _read_track(chunk: bytes, track: int, events: list[TrackEvent],
                warnings: list[SmfWarning], base: int) -> None:
    """Append the events of one MTrk body to *events*.

    Raises ChunkError at the first unreadable event; everything before it
    has already been appended.
    """
    pos = 0
    time = 0
    running: int | None = None
    pending: bytearray | None = None  # exclusive packet waiting for F7 continuation
    pending_time = 0

    while pos < len(chunk):
        delta, pos = decode_vlq(chunk, pos)
        time += delta
        status = _take(chunk, pos, 1)[0]
        pos += 1

        if status in (SYSEX, ESCAPE):
            running = None
            length, pos = decode_vlq(chunk, pos)
            payload = _take(chunk, pos, length)
            pos += length
            if status == SYSEX:
                if pending is not None:
                    warnings.append(SmfWarning(base + pos, "Exclusive packet never completed",
                                               TRACK_ID))
                    events.append(TrackEvent(pending_time, "sysex", bytes(pending), track))
                # Some writers repeat the F0 inside the payload
                if payload[:1] == bytes([SYSEX]):
                    payload = payload[1:]
                pending, pending_time = bytearray([SYSEX]) + payload, time
            elif pending is not None:
                pending += payload
            else:
                events.append(TrackEvent(time, "escape", payload, track))
                continue
            if pending[-1] == ESCAPE:
                events.append(TrackEvent(pending_time, "sysex", bytes(pending), track))
                pending = None

        elif status == META:
            running = None
            meta_type = _take(chunk, pos, 1)[0]
            length, pos = decode_vlq(chunk, pos + 1)
            payload = _take(chunk, pos, length)
            pos += length
            if meta_type & 0x80:
                raise ChunkError(f"Invalid meta event type {meta_type:02X}h")
            if meta_type != META_END_OF_TRACK:
                events.append(TrackEvent(time, "meta", bytes([META, meta_type]) + payload, track))

        else:
            if status & 0x80:
                if status >= 0xF0:
                    raise ChunkError(f"System message {status:02X}h where a channel message "
                                     "was expected")
                running = status
                data = _take(chunk, pos, _CHANNEL_DATA_LENGTHS[status >> 4])
            else:
                if running is None:
                    raise ChunkError("Data byte without a preceding status byte")
                data = bytes([status]) + _take(chunk, pos, _CHANNEL_DATA_LENGTHS[running >> 4] - 1)
                pos -= 1
            pos += len(data)
            if any(b & 0x80 for b in data):
                raise ChunkError("Status byte inside channel message data")
            events.append(TrackEvent(time, "channel", bytes([running]) + data, track))

    if pending is not None:
        warnings.append(SmfWarning(base + pos, "Exclusive packet never completed", TRACK_ID))
        events.append(TrackEvent(pending_time, "sysex", bytes(pending), track))


def read_smf(data: bytes, logger: AppLogger | None = None) -> SmfData:
    """Parse a Standard MIDI File. Tracks are merged into one time-ordered list."""
    data = bytes(data)
    if len(data) < 8 + HEADER_SIZE or data[:4] != HEADER_ID:
        raise SmfError("File is not in Standard MIDI File format")
    (header_len,) = struct.unpack(">I", data[4:8])
    if header_len < HEADER_SIZE:
        raise SmfError("Header chunk is too short")
    fmt, ntrks, division = struct.unpack(">HHH", data[8:14])
    if fmt > 2:
        raise SmfError(f"Unknown Standard MIDI File format {fmt}")

    smf = SmfData(format=fmt, division=division, track_count=ntrks)
    warnings = smf.warnings
    if logger:
        logger.smf(f"Reading Standard MIDI File format {fmt}, {ntrks} track(s), division {division}")
    if fmt == 2:
        warnings.append(SmfWarning(8, "Format 2 sequences are independent; they are merged into one"))
    elif fmt == 0 and ntrks > 1:
        warnings.append(SmfWarning(10, f"Format 0 file declares {ntrks} tracks"))

    events: list[TrackEvent] = []
    pos = 8 + header_len
    track = 0
    while pos < len(data):
        if len(data) - pos < 8:
            warnings.append(SmfWarning(pos, f"{len(data) - pos} trailing bytes after last chunk"))
            break
        chunk_type = data[pos:pos + 4]
        (length,) = struct.unpack(">I", data[pos + 4:pos + 8])
        start = pos + 8
        end = start + length
        if end > len(data):
            warnings.append(SmfWarning(pos, f"Chunk length {length} runs past end of file",
                                       chunk_type))
            end = len(data)
        body = data[start:end]

        if chunk_type == TRACK_ID:
            try:
                _read_track(body, track, events, warnings, start)
            except ChunkError as exc:
                warnings.append(SmfWarning(start, f"Track {track + 1}: {exc}", chunk_type))
            track += 1
        else:
            warnings.append(SmfWarning(pos, f"Unknown chunk type kept ({len(body)} bytes)",
                                       chunk_type))
            smf.extra_chunks.append(RawChunk(chunk_type, body))
        pos = end

    if track != ntrks:
        warnings.append(SmfWarning(10, f"Header declares {ntrks} track(s), found {track}"))

    # Stable sort keeps track order for events sharing a tick
    smf.events = sorted(events, key=lambda e: e.time)
    if logger:
        for w in warnings:
            logger.smf(f"Warning: {w}")
        logger.smf(f"Read {len(smf.events)} event(s)")
    return smf


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

def _write_track(events: list[TrackEvent]) -> bytes:
    # Exclusive and meta events go before channel events on the same tick
    ordered = sorted(events, key=lambda e: (e.time, e.kind == "channel"))
    track = bytearray()
    last = 0
    running: int | None = None
    for event in ordered:
        track += encode_vlq(event.time - last)
        last = event.time
        if event.kind == "sysex":
            running = None
            payload = event.data[1:]
            track.append(SYSEX)
            track += encode_vlq(len(payload)) + payload
        elif event.kind == "escape":
            running = None
            track.append(ESCAPE)
            track += encode_vlq(len(event.data)) + event.data
        elif event.kind == "meta":
            running = None
            payload = event.data[2:]
            track += bytes([META, event.data[1]]) + encode_vlq(len(payload)) + payload
        elif event.kind == "channel":
            status = event.data[0]
            if status != running:
                track.append(status)
                running = status
            track += event.data[1:]
        else:
            raise ValueError(f"Unknown event kind '{event.kind}'")
    track += END_OF_TRACK
    return bytes(track)


def write_smf(smf: SmfData) -> bytes:
    """Serialize as format 0: one MTrk holding every event, then any kept chunks."""
    track = _write_track(smf.events)
    out = bytearray(HEADER_ID)
    out += struct.pack(">IHHH", HEADER_SIZE, 0, 1, smf.division)
    out += TRACK_ID + struct.pack(">I", len(track)) + track
    for chunk in smf.extra_chunks:
        out += chunk.chunk_type + struct.pack(">I", len(chunk.data)) + chunk.data
    return bytes(out)


def tempo_event(us_per_beat: int, time: int = 0) -> TrackEvent:
    return TrackEvent(time, "meta",
                      bytes([META, META_SET_TEMPO]) + us_per_beat.to_bytes(3, "big"))


def export_smf(collection: SysExCollection, timing: SmfTiming | None = None) -> bytes:
    """Collection to SMF bytes, one exclusive event per entry at its absolute tick."""
    timing = timing or collection.timing
    events = [TrackEvent(time, "sysex", message)
              for time, message in zip(collection.absolute_times(), collection.messages())]
    events.extend(collection.other_events)
    has_tempo = any(e.meta_type == META_SET_TEMPO for e in collection.other_events)
    if timing.tempo_bpm != DEFAULT_TEMPO_BPM and timing.smpte_division is None and not has_tempo:
        events.append(tempo_event(timing.tempo_us_per_beat))
    smf = SmfData(format=0, division=timing.division, events=events,
                  extra_chunks=list(collection.extra_chunks))
    return write_smf(smf)


def import_smf(data: bytes, logger: AppLogger | None = None
               ) -> tuple[SysExCollection, list[SmfWarning]]:
    """SMF bytes to a collection plus the warnings raised while reading.

    Complete exclusive messages become collection entries; every other event
    is carried along untouched in ``other_events``.
    """
    from model.collection import SysExCollection

    smf = read_smf(data, logger)
    warnings = list(smf.warnings)
    ticks = smf.ticks_per_beat
    smpte = None
    if ticks is None:
        warnings.append(SmfWarning(12, "SMPTE time division kept as is; "
                                       "new entries are spaced at 120 ticks per beat"))
        ticks = 120
        smpte = smf.division
    tempo = next((e for e in smf.events if e.meta_type == META_SET_TEMPO
                  and len(e.data) == 5), None)
    bpm = DEFAULT_TEMPO_BPM
    if tempo is not None:
        us = int.from_bytes(tempo.data[2:5], "big")
        if us:
            bpm = 60_000_000 / us

    collection = SysExCollection(timing=SmfTiming(ticks_per_beat=ticks, tempo_bpm=bpm,
                                                  smpte_division=smpte))
    last = 0
    for event in smf.events:
        if event.kind == "sysex" and event.data[-1:] == bytes([ESCAPE]):
            collection.append(event.data, delta=event.time - last)
            last = event.time
        else:
            collection.other_events.append(event)
    collection.extra_chunks.extend(smf.extra_chunks)
    if logger:
        logger.smf(f"Imported {len(collection)} SysEx message(s), "
                   f"{len(collection.other_events)} other event(s)")
    return collection, warnings
