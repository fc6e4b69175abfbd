"""Colour primaries and their fixed-point representation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Sequence

PREDEFINED_COLORSPACE_PRIMARIES: tuple[tuple[float, ...], ...] = (
    (0.68, 0.32, 0.265, 0.69, 0.15, 0.06, 0.3127, 0.329),  # DCI-P3 D65
    (0.64, 0.33, 0.30, 0.60, 0.15, 0.06, 0.3127, 0.329),  # BT.709
    (0.708, 0.292, 0.170, 0.797, 0.131, 0.046, 0.3127, 0.329),  # BT.2020
    (0.63, 0.34, 0.31, 0.595, 0.155, 0.07, 0.3127, 0.329),  # BT.601 NTSC / SMPTE-C
    (0.64, 0.33, 0.29, 0.60, 0.15, 0.06, 0.3127, 0.329),  # BT.601 PAL / BT.470 BG
    (0.68, 0.32, 0.265, 0.69, 0.15, 0.06, 0.314, 0.351),  # DCI-P3
    (0.7347, 0.2653, 0.0, 1.0, 0.0001, -0.077, 0.32168, 0.33767),  # ACES
    (0.73, 0.28, 0.14, 0.855, 0.10, -0.05, 0.3127, 0.329),  # S-Gamut
    (0.766, 0.275, 0.225, 0.80, 0.089, -0.087, 0.3127, 0.329),  # S-Gamut-3.Cine
)

_SCALE = 1.0 / 32767.0
_U16_MAX = 0xFFFF


class MasteringDisplayPrimaries(IntEnum):
    """Predefined mastering display colour spaces."""

    DCIP3D65 = 0
    BT709 = 1
    BT2020 = 2
    SMPTEC = 3
    BT601 = 4
    DCIP3 = 5
    ACES = 6
    SGAMUT = 7
    SGAMUT3_CINE = 8


def _round_to_u16(value: float) -> int:
    rounded = math.copysign(math.floor(abs(value) + 0.5), value)
    return int(min(max(rounded, 0), _U16_MAX))


def f64_to_integer_primaries(primaries: Sequence[float]) -> tuple[int, ...]:
    """Convert eight chromaticity coordinates to 1/32767 fixed-point values."""
    if len(primaries) != 8:
        raise ValueError(f"Expected 8 primaries values, got {len(primaries)}")
    return tuple(_round_to_u16(v / _SCALE) for v in primaries)


@dataclass
class ColorPrimaries:
    """Red, green, blue and white chromaticities in fixed-point form."""

    red_x: int = 0
    red_y: int = 0
    green_x: int = 0
    green_y: int = 0
    blue_x: int = 0
    blue_y: int = 0
    white_x: int = 0
    white_y: int = 0

    @classmethod
    def from_array_int(cls, primaries: Sequence[int]) -> ColorPrimaries:
        """Build from eight integer values in red, green, blue, white order."""
        if len(primaries) != 8:
            raise ValueError(f"Expected 8 primaries values, got {len(primaries)}")
        return cls(*primaries)

    @classmethod
    def from_array_float(cls, primaries: Sequence[float]) -> ColorPrimaries:
        """Build from eight floating-point chromaticity coordinates."""
        return cls.from_array_int(f64_to_integer_primaries(primaries))

    @classmethod
    def from_enum(cls, primary: MasteringDisplayPrimaries) -> ColorPrimaries:
        """Build from one of the predefined colour spaces."""
        return cls.from_array_float(
            PREDEFINED_COLORSPACE_PRIMARIES[MasteringDisplayPrimaries(primary)]
        )