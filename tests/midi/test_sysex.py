import pytest
from midi.profiles import CMD_DT1, CMD_RQ1, GS, SC_7
from midi.sysex import (
    BadFraming, FrameError, TruncatedFrame, UnknownManufacturer,
    checksum, decode_frame, encode_frame, format_bytes, parse_hex_sysex,
)

REVERB_MACRO_HALL_1 = bytes.fromhex("F0 41 10 42 12 40 01 30 03 0C F7")
GS_RESET = bytes.fromhex("F0 41 10 42 12 40 00 7F 00 41 F7")


def test_checksum_examples():
    assert checksum([0x40, 0x01, 0x30, 0x03]) == 0x0C
    assert checksum([0x40, 0x00, 0x7F, 0x00]) == 0x41
    assert checksum([]) == 0
    assert checksum([0x00]) == 0


def test_checksum_law():
    spans = [[0x7F] * n for n in range(1, 20)] + [list(range(k)) for k in range(0, 128, 7)]
    for span in spans:
        c = checksum(span)
        assert 0 <= c <= 0x7F
        assert (sum(span) + c) % 128 == 0


def test_encode_frame_reverb_macro():
    msg = encode_frame(GS, 0x10, CMD_DT1, [0x40, 0x01, 0x30], [0x03])
    assert msg == REVERB_MACRO_HALL_1


def test_encode_frame_broadcast_unit():
    msg = encode_frame(GS, 0x7F, CMD_DT1, [0x40, 0x00, 0x7F], [0x00])
    assert msg[2] == 0x7F
    assert decode_frame(msg).is_broadcast


def test_encode_frame_request_without_data():
    msg = encode_frame(GS, 0x10, CMD_RQ1, [0x40, 0x00, 0x04])
    assert len(msg) == GS.min_frame_size
    assert decode_frame(msg).checksum_valid


def test_encode_frame_rejects_bad_input():
    with pytest.raises(ValueError):
        encode_frame(GS, 0x20, CMD_DT1, [0x40, 0x00, 0x04], [0])
    with pytest.raises(ValueError):
        encode_frame(SC_7, 0x11, CMD_DT1, [0x00, 0x00, 0x01], [0])
    with pytest.raises(ValueError):
        encode_frame(GS, 0x10, 0x13, [0x40, 0x00, 0x04], [0])
    with pytest.raises(ValueError):
        encode_frame(GS, 0x10, CMD_DT1, [0x40, 0x04], [0])
    with pytest.raises(ValueError):
        encode_frame(GS, 0x10, CMD_DT1, [0x40, 0x80, 0x04], [0])
    with pytest.raises(ValueError):
        encode_frame(GS, 0x10, CMD_DT1, [0x40, 0x00, 0x04], [0x80])


def test_decode_frame_fields():
    frame = decode_frame(REVERB_MACRO_HALL_1)
    assert frame.profile is GS
    assert frame.manufacturer_id == 0x41
    assert frame.unit_id == 0x10
    assert frame.model_id == 0x42
    assert frame.command_id == CMD_DT1
    assert frame.address == bytes([0x40, 0x01, 0x30])
    assert frame.data == bytes([0x03])
    assert frame.checksum == 0x0C
    assert frame.checksum_valid is True
    assert frame.recognized


def test_decode_frame_flags_bad_checksum():
    bad = REVERB_MACRO_HALL_1[:-2] + bytes([0x0D, 0xF7])
    frame = decode_frame(bad)
    assert frame.checksum_valid is False
    assert frame.data == bytes([0x03])


def test_encoded_frames_always_decode_valid():
    for unit in (0x00, 0x10, 0x1F, 0x7F):
        for data in ([], [0], [0x7F] * 4, list(range(16))):
            msg = encode_frame(GS, unit, CMD_DT1, [0x40, 0x1A, 0x7F], data)
            assert decode_frame(msg).checksum_valid


def test_decode_frame_truncated():
    with pytest.raises(TruncatedFrame):
        decode_frame(b"")
    with pytest.raises(TruncatedFrame):
        decode_frame(b"\xF0\x41")
    with pytest.raises(TruncatedFrame):
        decode_frame(bytes.fromhex("F0 41 10 42"))
    with pytest.raises(TruncatedFrame):
        decode_frame(bytes.fromhex("F0 41 10 42 12 40 F7"))
    with pytest.raises(TruncatedFrame):
        decode_frame(bytes.fromhex("F0 41 10 F7"))


def test_decode_frame_bad_framing():
    with pytest.raises(BadFraming):
        decode_frame(bytes.fromhex("90 40 7F"))
    with pytest.raises(BadFraming):
        decode_frame(bytes.fromhex("F0 41 10 90 42 12 40 00 7F 00 41 F7"))
    with pytest.raises(BadFraming):
        decode_frame(bytes.fromhex("F0 41 10 42 12 40 00 7F 00 41 90"))


def test_frame_errors_are_value_errors():
    assert issubclass(FrameError, ValueError)
    assert issubclass(TruncatedFrame, FrameError)


def test_decode_frame_unknown_manufacturer_keeps_frame():
    with pytest.raises(UnknownManufacturer) as info:
        decode_frame(bytes.fromhex("F0 43 10 4C 00 00 7E 00 F7"))
    frame = info.value.frame
    assert frame.manufacturer_id == 0x43
    assert frame.profile is None
    assert frame.data == bytes.fromhex("10 4C 00 00 7E 00")


def test_decode_frame_unknown_model():
    frame = decode_frame(bytes.fromhex("F0 41 10 99 12 01 02 03 7A F7"))
    assert frame.profile is None
    assert frame.model_id == 0x99
    assert frame.data == bytes([1, 2, 3])
    assert frame.checksum_valid is True


def test_parse_hex_sysex_accepts_suffixes_and_prefixes():
    assert parse_hex_sysex("F0 41h 0x10 42H f7") == bytes([0xF0, 0x41, 0x10, 0x42, 0xF7])
    assert parse_hex_sysex("  F0\n41\tF7  ") == bytes([0xF0, 0x41, 0xF7])
    assert parse_hex_sysex("") == b""


def test_parse_hex_sysex_rejects_garbage():
    with pytest.raises(ValueError):
        parse_hex_sysex("F0 G1 F7")
    with pytest.raises(ValueError):
        parse_hex_sysex("F041")
    with pytest.raises(ValueError):
        parse_hex_sysex("F0 4")


def test_format_bytes():
    assert format_bytes(GS_RESET) == "F0 41 10 42 12 40 00 7F 00 41 F7"
    assert format_bytes(b"") == ""
    assert parse_hex_sysex(format_bytes(GS_RESET)) == GS_RESET
