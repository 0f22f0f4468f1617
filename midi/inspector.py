"""Best-effort interpretation of raw exclusive messages.

``decode`` accepts any bytes (typically pasted by a user or read from a file)
and always returns an InspectionResult. Framing problems, unknown devices,
unknown addresses and bad checksums are all reported through the result's
status rather than raised.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from midi.params import ParamDef, ParamValueError, address_to_int
from midi.profiles import CMD_RQ1
from midi.sysex import (
    FrameError, RawFrame, TruncatedFrame, UnknownManufacturer,
    decode_frame, format_bytes,
)
from midi.universal import UniversalMessage, parse_universal


class InspectionStatus(Enum):
    VALID = "valid"
    CHECKSUM_INVALID = "checksum invalid"
    UNKNOWN_PROFILE = "unknown profile"
    UNKNOWN_COMMAND = "unknown command"
    UNKNOWN_ADDRESS = "unknown address"
    PARTIAL_MATCH = "partial match"
    TRUNCATED = "truncated"
    BAD_FRAMING = "bad framing"


@dataclass(frozen=True)
class ParameterValue:
    """A frame's data read against one parameter definition.

    ``complete`` is False when the data does not cover exactly the
    parameter's field; ``value`` is then None and ``data`` holds the part
    that was available. Requests carry no data and never have a value.
    """
    param: ParamDef
    offset: int = 0
    data: bytes = b""
    complete: bool = True
    value: int | str | None = None
    in_range: bool = True

    @property
    def label(self) -> str | None:
        if self.value is None or isinstance(self.value, str):
            return None
        return self.param.label(self.value)

    def describe(self) -> str:
        if self.value is None:
            return ""
        return self.param.describe(self.value)


def read_parameter(param: ParamDef, offset: int, data: bytes) -> ParameterValue:
    """Interpret *data* written at *offset* bytes into *param*'s field."""
    available = bytes(data[:max(param.size - offset, 0)])
    if offset != 0 or len(data) != param.size:
        return ParameterValue(param, offset, available, complete=False)
    value = param.decode(available)
    try:
        param.validate(value)
        in_range = param.fits_packing(available)
    except ParamValueError:
        in_range = False
    return ParameterValue(param, offset, available, value=value, in_range=in_range)


@dataclass(frozen=True)
class InspectionResult:
    status: InspectionStatus
    raw: bytes
    frame: RawFrame | None = None
    match: ParameterValue | None = None
    universal: UniversalMessage | None = None
    request_size: int | None = None
    error: str | None = None
    # Address block holding an address with no parameter defined, and the
    # length of its prefix
    block: str | None = None
    block_prefix_size: int = 0

    @property
    def is_valid(self) -> bool:
        return self.status is InspectionStatus.VALID

    def describe(self) -> str:
        """One line summary, e.g.
        ``Roland GS, Device 10h: Data set 1: Patch parameters, Common § REVERB MACRO => 03 = 3 [Hall 1]``.
        """
        if self.frame is None:
            return f"({self.status.value}) {format_bytes(self.raw)}: {self.error}"
        frame = self.frame
        if self.universal is not None:
            return self.universal.describe()
        if frame.unit_id is None:
            return f"Manufacturer {frame.manufacturer_id:02X}h: (unknown) {format_bytes(frame.data)}"
        if frame.profile is None:
            text = (f"Manufacturer {frame.manufacturer_id:02X}h, Device {frame.unit_id:02X}h, "
                    f"Model {frame.model_id:02X}h, Command {frame.command_id:02X}h: "
                    f"(unknown) {format_bytes(frame.data)}")
            return self._flags(text)

        profile = frame.profile
        text = f"{profile.name}, Device {frame.unit_id:02X}h: {profile.command_name(frame.command_id)}: "
        if self.status is InspectionStatus.UNKNOWN_COMMAND:
            text += f"(unknown) {format_bytes(frame.address + frame.data)}"
            return self._flags(text)

        match = self.match
        if match is None and self.block is not None:
            suffix = frame.address[self.block_prefix_size:]
            text += f"{self.block} § (unknown) {format_bytes(suffix)}"
        elif match is None:
            text += f"(unknown) {format_bytes(frame.address)}"
        else:
            text += f"{match.param.block} § {match.param.name}"
            if match.offset:
                text += f" +{match.offset}"
            if not match.complete:
                text += " (WRONG SIZE)"

        if frame.command_id == CMD_RQ1:
            if self.request_size is not None:
                text += f", {self.request_size} bytes"
        else:
            text += f" => {format_bytes(frame.data)}"
            if match is not None and match.value is not None:
                text += f" {match.describe()}"
                if not match.in_range:
                    text += " (out of range)"
        return self._flags(text)

    def _flags(self, text: str) -> str:
        if self.frame is not None and self.frame.checksum_valid is False:
            text += " (WRONG CHECKSUM)"
        return text


def decode(message: Sequence[int]) -> InspectionResult:
    """Interpret raw bytes as richly as possible. Never raises."""
    raw = bytes(message)
    try:
        frame = decode_frame(raw)
    except UnknownManufacturer as exc:
        return InspectionResult(InspectionStatus.UNKNOWN_PROFILE, raw, frame=exc.frame,
                                universal=parse_universal(exc.frame.body), error=str(exc))
    except TruncatedFrame as exc:
        return InspectionResult(InspectionStatus.TRUNCATED, raw, error=str(exc))
    except FrameError as exc:
        return InspectionResult(InspectionStatus.BAD_FRAMING, raw, error=str(exc))

    if frame.profile is None:
        return InspectionResult(InspectionStatus.UNKNOWN_PROFILE, raw, frame=frame,
                                error=f"No device profile for model {frame.model_id:02X}h")

    profile = frame.profile
    checksum_status = (InspectionStatus.VALID if frame.checksum_valid
                       else InspectionStatus.CHECKSUM_INVALID)
    if frame.command_id not in profile.commands:
        status = (InspectionStatus.UNKNOWN_COMMAND if frame.checksum_valid
                  else InspectionStatus.CHECKSUM_INVALID)
        return InspectionResult(status, raw, frame=frame)

    size = None
    if frame.command_id == CMD_RQ1 and len(frame.data) == profile.address_size:
        size = address_to_int(frame.data)
    found = profile.registry.lookup(frame.address)
    block = profile.registry.find_block(frame.address) if found is None else None
    block_name, prefix_size = block or (None, 0)
    if found is None:
        match = None
    elif frame.command_id == CMD_RQ1:
        param, offset = found
        match = ParameterValue(param, offset, complete=offset == 0 and size == param.size)
    else:
        match = read_parameter(found[0], found[1], frame.data)

    status = checksum_status
    if status is InspectionStatus.VALID:
        if match is None:
            status = InspectionStatus.UNKNOWN_ADDRESS
        elif not match.complete:
            status = InspectionStatus.PARTIAL_MATCH
    return InspectionResult(status, raw, frame=frame, match=match, request_size=size,
                            block=block_name, block_prefix_size=prefix_size)
