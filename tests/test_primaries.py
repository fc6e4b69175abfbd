import pytest

from dovimeta.primaries import (
    PREDEFINED_COLORSPACE_PRIMARIES,
    ColorPrimaries,
    MasteringDisplayPrimaries,
    f64_to_integer_primaries,
)


def test_from_array_int_field_order():
    p = ColorPrimaries.from_array_int([1, 2, 3, 4, 5, 6, 7, 8])
    assert (p.red_x, p.red_y) == (1, 2)
    assert (p.green_x, p.green_y) == (3, 4)
    assert (p.blue_x, p.blue_y) == (5, 6)
    assert (p.white_x, p.white_y) == (7, 8)


def test_from_array_int_wrong_length():
    with pytest.raises(ValueError):
        ColorPrimaries.from_array_int([1, 2, 3])


def test_conversion_wrong_length():
    with pytest.raises(ValueError):
        f64_to_integer_primaries([0.1] * 7)


@pytest.mark.parametrize("primaries", PREDEFINED_COLORSPACE_PRIMARIES)
def test_conversion_close_to_source(primaries):
    converted = f64_to_integer_primaries(primaries)
    assert len(converted) == 8
    for value, original in zip(converted, primaries):
        assert 0 <= value <= 0xFFFF
        if original >= 0:
            assert abs(value / 32767 - original) <= 0.5 / 32767 + 1e-12


def test_negative_values_saturate_to_zero():
    aces = PREDEFINED_COLORSPACE_PRIMARIES[MasteringDisplayPrimaries.ACES]
    converted = f64_to_integer_primaries(aces)
    assert converted[5] == 0
    assert converted[2] == 0


def test_unit_value_maps_to_scale():
    assert f64_to_integer_primaries([1.0] * 8) == (32767,) * 8


@pytest.mark.parametrize("primary", list(MasteringDisplayPrimaries))
def test_from_enum_matches_table(primary):
    expected = ColorPrimaries.from_array_float(PREDEFINED_COLORSPACE_PRIMARIES[primary])
    assert ColorPrimaries.from_enum(primary) == expected


def test_enum_indices_cover_table():
    assert len(MasteringDisplayPrimaries) == len(PREDEFINED_COLORSPACE_PRIMARIES)
    assert MasteringDisplayPrimaries.DCIP3D65 == 0
    assert MasteringDisplayPrimaries.SGAMUT3_CINE == 8
    last = ColorPrimaries.from_enum(MasteringDisplayPrimaries.SGAMUT3_CINE)
    assert last == ColorPrimaries.from_array_float(PREDEFINED_COLORSPACE_PRIMARIES[8])
    first = ColorPrimaries.from_enum(MasteringDisplayPrimaries.DCIP3D65)
    assert first == ColorPrimaries.from_array_float(PREDEFINED_COLORSPACE_PRIMARIES[0])


def test_d65_white_point_shared():
    a = ColorPrimaries.from_enum(MasteringDisplayPrimaries.BT709)
    b = ColorPrimaries.from_enum(MasteringDisplayPrimaries.BT2020)
    assert (a.white_x, a.white_y) == (b.white_x, b.white_y)