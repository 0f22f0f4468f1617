import pytest
from midi.params import (
    InvalidEnum, OutOfRange, ParamDef, ParamMap, ParamValueError, ValueKind,
    address_to_int, find_overlaps, int_to_address, validate,
)
from midi.profiles import GS, SC_7, SC_55


def test_address_arithmetic():
    n = address_to_int(bytes([0x40, 0x01, 0x30]))
    assert n == (0x40 << 14) | (0x01 << 7) | 0x30
    assert int_to_address(n, 3) == bytes([0x40, 0x01, 0x30])
    # carries into the next 7-bit byte, never into bit 7
    assert int_to_address(address_to_int(bytes([0x40, 0x00, 0x7F])) + 1, 3) == bytes([0x40, 0x01, 0x00])


def test_param_map_get_and_list():
    pm = GS.registry
    p = pm.get("reverb_macro")
    assert p is not None
    assert p.name == "REVERB MACRO"
    assert p.address == bytes([0x40, 0x01, 0x30])
    assert p.kind is ValueKind.ENUM
    assert pm.get("no_such_param") is None
    assert all(isinstance(p, ParamDef) for p in pm.list_all())
    assert len(pm) == len(pm.names())


def test_registries_have_expected_sizes():
    # 16 parts each, plus system/common entries
    assert len([k for k in GS.registry.names() if k.endswith("_tone_number")]) == 16
    assert len([k for k in SC_7.registry.names() if k.endswith("_rx_nrpn")]) == 16
    assert len(SC_55.registry) == 65


def test_lookup_exact_and_containing():
    pm = GS.registry
    param, offset = pm.lookup(bytes([0x40, 0x01, 0x30]))
    assert param.key == "reverb_macro" and offset == 0
    param, offset = pm.lookup(bytes([0x40, 0x11, 0x01]))
    assert param.key == "part1_tone_number" and offset == 1
    param, offset = pm.lookup(bytes([0x40, 0x00, 0x03]))
    assert param.key == "master_tune" and offset == 3
    param, offset = pm.lookup(bytes([0x40, 0x01, 0x0F]))
    assert param.key == "patch_name" and offset == 15


def test_lookup_misses():
    pm = GS.registry
    assert pm.lookup(bytes([0x40, 0x01, 0x37])) is None
    assert pm.lookup(bytes([0x00, 0x00, 0x00])) is None
    assert pm.lookup(bytes([0x7F, 0x7F, 0x7F])) is None
    assert pm.lookup(bytes([0x40, 0x01])) is None


def test_part_block_numbering():
    pm = GS.registry
    assert pm.lookup(bytes([0x40, 0x10, 0x19]))[0].key == "part10_part_level"
    assert pm.lookup(bytes([0x40, 0x11, 0x19]))[0].key == "part1_part_level"
    assert pm.lookup(bytes([0x40, 0x1A, 0x19]))[0].key == "part11_part_level"
    assert pm.lookup(bytes([0x40, 0x1F, 0x19]))[0].key == "part16_part_level"


def test_blocks_in_table_order():
    blocks = GS.registry.blocks()
    assert blocks[:3] == ["System parameters", "Patch parameters, Common",
                          "Patch parameters, Part 10"]
    assert len(blocks) == 18
    keys = [p.key for p in GS.registry.by_block("Patch parameters, Part 10")]
    assert "part10_tone_number" in keys
    assert "part1_tone_number" not in keys


def test_find_overlaps():
    a = ParamDef("a", "A", bytes([0, 0, 0]), size=2)
    b = ParamDef("b", "B", bytes([0, 0, 1]))
    c = ParamDef("c", "C", bytes([0, 0, 2]))
    overlaps = find_overlaps([c, b, a])
    assert len(overlaps) == 1
    assert {overlaps[0][0].key, overlaps[0][1].key} == {"a", "b"}
    assert find_overlaps([a, c]) == []


def test_param_map_rejects_overlaps_and_duplicates():
    with pytest.raises(ValueError, match="Overlapping"):
        ParamMap([ParamDef("a", "A", bytes([0, 0, 0]), size=2),
                  ParamDef("b", "B", bytes([0, 0, 1]))])
    with pytest.raises(ValueError, match="Duplicate"):
        ParamMap([ParamDef("a", "A", bytes([0, 0, 0])),
                  ParamDef("a", "A", bytes([0, 0, 1]))])


def test_param_map_rejects_malformed_definitions():
    with pytest.raises(ValueError):
        ParamMap([ParamDef("a", "A", bytes([0, 0]))])
    with pytest.raises(ValueError):
        ParamMap([ParamDef("a", "A", bytes([0, 0x80, 0]))])
    with pytest.raises(ValueError):
        ParamMap([ParamDef("a", "A", bytes([0, 0, 0]), kind=ValueKind.ENUM)])
    with pytest.raises(ValueError):
        ParamMap([ParamDef("a", "A", bytes([0, 0, 0]), kind=ValueKind.BITMASK)])
    with pytest.raises(ValueError):
        ParamMap([ParamDef("a", "A", bytes([0, 0, 0]), max_val=200)])
    with pytest.raises(ValueError):
        ParamMap([ParamDef("a", "A", bytes([0, 0, 0]), bits_per_byte=8)])
    with pytest.raises(ValueError, match="bad default"):
        ParamMap([ParamDef("a", "A", bytes([0, 0, 0]), max_val=10, default=11)])


def test_find_block_by_prefix():
    assert GS.registry.find_block(bytes([0x40, 0x01, 0x37])) == ("Patch parameters, Common", 2)
    assert GS.registry.find_block(bytes([0x40, 0x10, 0x7F])) == ("Patch parameters, Part 10", 2)
    assert SC_7.registry.find_block(bytes([0x01, 0x0A, 0x08])) == ("Patch parameters, Part 11", 2)
    assert SC_55.registry.find_block(bytes([0x10, 0x01, 0x50])) == ("Display dot data", 2)
    assert GS.registry.find_block(bytes([0x40, 0x05, 0x00])) is None
    assert GS.registry.find_block(bytes([0x40, 0x01])) is None


def test_find_block_prefers_longest_prefix():
    pm = ParamMap([], blocks=[(bytes([0x10]), "Wide"), (bytes([0x10, 0x02]), "Narrow")])
    assert pm.find_block(bytes([0x10, 0x02, 0x00])) == ("Narrow", 2)
    assert pm.find_block(bytes([0x10, 0x03, 0x00])) == ("Wide", 1)


def test_param_map_rejects_definitions_outside_their_block():
    blocks = [(bytes([0x00, 0x00]), "System")]
    ParamMap([ParamDef("a", "A", bytes([0, 0, 1]), block="System")], blocks=blocks)
    with pytest.raises(ValueError, match="not in block"):
        ParamMap([ParamDef("a", "A", bytes([0, 1, 0]), block="System")], blocks=blocks)
    with pytest.raises(ValueError, match="not in block"):
        ParamMap([ParamDef("a", "A", bytes([0, 0, 1]), block="Other")], blocks=blocks)
    with pytest.raises(ValueError, match="Duplicate block"):
        ParamMap([], blocks=blocks * 2)
    with pytest.raises(ValueError, match="prefix"):
        ParamMap([], blocks=[(bytes([0, 0, 0]), "Too long")])


def test_every_default_is_a_valid_value():
    for profile in (GS, SC_7, SC_55):
        for p in profile.registry.list_all():
            if p.default is not None:
                p.validate(p.default)
    assert GS.registry.get("master_volume").default == 127
    assert GS.registry.get("part10_assign_mode").default == 0


def test_definitions_are_hashable_and_labels_read_only():
    params = GS.registry.list_all()
    assert len(set(params)) == len(params)
    labels = GS.registry.get("reverb_macro").value_labels
    with pytest.raises(TypeError):
        labels[8] = "Cathedral"
    source = {0: "A", 1: "B"}
    p = ParamDef("a", "A", bytes([0, 0, 0]), kind=ValueKind.ENUM, max_val=1, value_labels=source)
    source[2] = "C"
    assert p.label(2) is None
    assert p == ParamDef("a", "A", bytes([0, 0, 0]), kind=ValueKind.ENUM, max_val=1,
                         value_labels={0: "A", 1: "B"})


def test_validate_range():
    p = GS.registry.get("master_volume")
    validate(p, 0)
    validate(p, 127)
    with pytest.raises(OutOfRange):
        validate(p, 128)
    with pytest.raises(OutOfRange):
        validate(p, -1)
    with pytest.raises(OutOfRange):
        validate(p, True)
    with pytest.raises(OutOfRange):
        validate(p, "64")


def test_validate_enum():
    p = GS.registry.get("reverb_macro")
    validate(p, 7)
    with pytest.raises(InvalidEnum):
        validate(p, 8)
    rx = GS.registry.get("part1_rx_channel")
    validate(rx, 0x10)
    with pytest.raises(InvalidEnum):
        validate(rx, 0x11)


def test_validate_bitmask():
    p = SC_55.registry.get("dot_data_1")
    validate(p, 0)
    validate(p, 0x1F)
    with pytest.raises(OutOfRange):
        validate(p, 0x20)
    with pytest.raises(OutOfRange):
        validate(p, -1)


def test_validate_text():
    p = GS.registry.get("patch_name")
    validate(p, "Grand Piano")
    validate(p, "x" * 16)
    with pytest.raises(OutOfRange):
        validate(p, "x" * 17)
    with pytest.raises(OutOfRange):
        validate(p, "Café")
    with pytest.raises(OutOfRange):
        validate(p, 12)


def test_value_errors_share_base():
    assert issubclass(OutOfRange, ParamValueError)
    assert issubclass(InvalidEnum, ParamValueError)
    assert issubclass(ParamValueError, ValueError)


def test_text_encoding_pads_and_strips():
    p = GS.registry.get("patch_name")
    data = p.encode("GS")
    assert data == b"GS" + b" " * 14
    assert p.decode(data) == "GS"


def test_multibyte_packing():
    tone = GS.registry.get("part1_tone_number")
    assert tone.encode(0x0105) == bytes([0x02, 0x05])
    assert tone.decode(bytes([0x02, 0x05])) == 0x0105
    tune = GS.registry.get("master_tune")
    assert tune.encode(0x0400) == bytes([0x00, 0x04, 0x00, 0x00])
    assert tune.decode(bytes([0x00, 0x07, 0x0E, 0x08])) == 0x07E8
    with pytest.raises(ValueError):
        tune.decode(bytes([0x00, 0x04]))


def test_fits_packing():
    tune = GS.registry.get("master_tune")
    assert tune.fits_packing(bytes([0x00, 0x04, 0x00, 0x00]))
    assert not tune.fits_packing(bytes([0x10, 0x04, 0x00, 0x00]))


def test_describe():
    assert GS.registry.get("reverb_macro").describe(3) == "= 3 [Hall 1]"
    assert GS.registry.get("part1_pitch_key_shift").describe(0x43) == "= +3 [= +3 semitones]"
    assert SC_7.registry.get("part1_mod_lfo_rate_control").describe(0x50) == "= +16 [≈ +2.5 Hz]"
    assert SC_7.registry.get("part1_mod_lfo_rate_control").describe(0x40) == "= +0 [≈ 0 Hz]"
    assert GS.registry.get("master_volume").describe(100) == "= 100"
    assert SC_55.registry.get("dot_data_1").describe(0b10101) == "= 10101b"
    assert GS.registry.get("patch_name").describe("GS") == '= "GS"'
