import pytest
from midi.universal import build_gm_system_on, is_universal, parse_universal


def test_build_gm_system_on():
    assert build_gm_system_on() == bytes([0xF0, 0x7E, 0x7F, 0x09, 0x01, 0xF7])
    assert build_gm_system_on(0x10)[2] == 0x10
    with pytest.raises(ValueError):
        build_gm_system_on(0x80)


def test_parse_universal_header():
    msg = parse_universal(bytes([0x7E, 0x7F, 0x09, 0x01]))
    assert msg is not None
    assert msg.real_time is False
    assert msg.device_id == 0x7F
    assert msg.name == "GM System On"
    assert msg.data == b""


def test_parse_universal_rejects_short_or_foreign():
    assert parse_universal(bytes([0x7E, 0x7F, 0x09])) is None
    assert parse_universal(bytes([0x41, 0x10, 0x42, 0x12])) is None
    assert is_universal(0x7F)
    assert not is_universal(0x41)


def test_describe_master_volume():
    msg = parse_universal(bytes([0x7F, 0x7F, 0x04, 0x01, 0x7F, 0x7F]))
    assert msg.real_time
    assert msg.describe() == ("Universal Real Time, Broadcast, Sub-ID#1 04h, "
                              "Sub-ID#2 01h (Master Volume) = 16383")


def test_describe_unnamed_message():
    msg = parse_universal(bytes([0x7E, 0x10, 0x0A, 0x05, 0x01, 0x02]))
    assert msg.name is None
    assert msg.describe() == ("Universal Non-Real Time, Device 10h, Sub-ID#1 0Ah, "
                              "Sub-ID#2 05h: 01 02")
