from __future__ import annotations

from midi.params import ParamDef, int_to_address
from midi.profiles import CMD_DT1, CMD_RQ1, GS, DeviceProfile, get_profile
from midi.sysex import encode_frame


def resolve_profile(profile: DeviceProfile | str) -> DeviceProfile:
    if isinstance(profile, DeviceProfile):
        return profile
    return get_profile(profile)


def resolve_parameter(profile: DeviceProfile, parameter: ParamDef | str) -> ParamDef:
    """Return the profile's definition for *parameter* (a key or a ParamDef)."""
    if isinstance(parameter, ParamDef):
        if profile.registry.get(parameter.key) != parameter:
            raise ValueError(f"'{parameter.key}' is not a {profile.name} parameter")
        return parameter
    param = profile.registry.get(parameter)
    if param is None:
        raise KeyError(f"{profile.name} has no parameter '{parameter}'")
    return param


def build(profile: DeviceProfile | str, unit_id: int,
          parameter: ParamDef | str, value: int | str) -> bytes:
    """Data set message writing *value* to *parameter*.

    The value is validated first; OutOfRange or InvalidEnum is raised and
    nothing is built if it does not fit the parameter.
    """
    profile = resolve_profile(profile)
    param = resolve_parameter(profile, parameter)
    param.validate(value)
    return encode_frame(profile, unit_id, CMD_DT1, param.address, param.encode(value))


def build_request(profile: DeviceProfile | str, unit_id: int,
                  parameter: ParamDef | str) -> bytes:
    """Request data message asking the device for *parameter*'s current value."""
    profile = resolve_profile(profile)
    param = resolve_parameter(profile, parameter)
    size = int_to_address(param.size, profile.address_size)
    return encode_frame(profile, unit_id, CMD_RQ1, param.address, size)


def build_gs_reset(unit_id: int = 0x10) -> bytes:
    """``F0 41 10 42 12 40 00 7F 00 41 F7`` for the default unit."""
    return build(GS, unit_id, "mode_set", 0)


def build_default(profile: DeviceProfile | str, unit_id: int,
                  parameter: ParamDef | str) -> bytes:
    """Data set message restoring *parameter* to its power-on value."""
    profile = resolve_profile(profile)
    param = resolve_parameter(profile, parameter)
    if param.default is None:
        raise ValueError(f"'{param.key}' has no documented default")
    return build(profile, unit_id, param, param.default)
