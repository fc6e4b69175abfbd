"""Extension metadata blocks of levels 9 and 10, and reserved blocks."""

from __future__ import annotations

from dataclasses import dataclass, field

from .bitstream import BitReader, BitWriter
from .block_base import ExtMetadataBlock, MetadataError
from .levels_stats import MAX_PQ_LUMINANCE
from .primaries import ColorPrimaries, MasteringDisplayPrimaries

PREDEFINED_REALDEVICE_PRIMARIES: tuple[tuple[float, ...], ...] = (
    (0.693, 0.304, 0.208, 0.761, 0.1467, 0.0527, 0.3127, 0.329),
    (0.6867, 0.3085, 0.231, 0.69, 0.1489, 0.0638, 0.3127, 0.329),
    (0.6781, 0.3189, 0.2365, 0.7048, 0.141, 0.0489, 0.3127, 0.329),
    (0.68, 0.32, 0.265, 0.69, 0.15, 0.06, 0.3127, 0.329),
    (0.7042, 0.294, 0.2271, 0.725, 0.1416, 0.0516, 0.3127, 0.329),
    (0.6745, 0.310, 0.2212, 0.7109, 0.152, 0.0619, 0.3127, 0.329),
    (0.6805, 0.3191, 0.2522, 0.6702, 0.1397, 0.0554, 0.3127, 0.329),
    (0.6838, 0.3085, 0.2709, 0.6378, 0.1478, 0.0589, 0.3127, 0.329),
    (0.6753, 0.3193, 0.2636, 0.6835, 0.1521, 0.0627, 0.3127, 0.329),
    (0.6981, 0.2898, 0.1814, 0.7189, 0.1517, 0.0567, 0.3127, 0.329),
)

PRESET_TARGET_DISPLAYS: tuple[int, ...] = (1, 16, 18, 21, 27, 28, 37, 38, 42, 48, 49)

CUSTOM_PRIMARY_INDEX = 255

_PRIMARY_SUFFIXES = (
    "red_x",
    "red_y",
    "green_x",
    "green_y",
    "blue_x",
    "blue_y",
    "white_x",
    "white_y",
)

_L9_REQUIRED_BITS = {1: 8, 17: 136}
_L10_REQUIRED_BITS = {5: 40, 21: 168}


def _ensure(condition: bool, block: ExtMetadataBlock, message: str) -> None:
    if not condition:
        raise MetadataError(f"Level {block.level}: {message}")


def _primary_fields(prefix: str) -> tuple[str, ...]:
    return tuple(f"{prefix}_{suffix}" for suffix in _PRIMARY_SUFFIXES)


def _set_primaries(block: ExtMetadataBlock, prefix: str, primaries: ColorPrimaries) -> None:
    for suffix in _PRIMARY_SUFFIXES:
        setattr(block, f"{prefix}_{suffix}", getattr(primaries, suffix))


@dataclass
class ExtMetadataBlockLevel9(ExtMetadataBlock):
    """Source (mastering display) colour primaries.

    A 1-byte block carries only a preset index; a 17-byte block also
    carries custom primaries, which stay zero otherwise.
    """

    length: int = 1
    source_primary_index: int = int(MasteringDisplayPrimaries.DCIP3D65)

    source_primary_red_x: int = 0
    source_primary_red_y: int = 0
    source_primary_green_x: int = 0
    source_primary_green_y: int = 0
    source_primary_blue_x: int = 0
    source_primary_blue_y: int = 0
    source_primary_white_x: int = 0
    source_primary_white_y: int = 0

    level = 9

    _PRIMARY_FIELDS = _primary_fields("source_primary")

    @classmethod
    def parse(cls, reader: BitReader, length: int) -> ExtMetadataBlockLevel9:
        """Read the fields present for a block of ``length`` bytes."""
        block = cls(length=length, source_primary_index=reader.read_bits(8))
        if length > 1:
            for name in cls._PRIMARY_FIELDS:
                setattr(block, name, reader.read_bits(16))
        return block

    def write(self, writer: BitWriter) -> None:
        self.validate()
        writer.write_bits(self.source_primary_index, 8)
        if self.length > 1:
            for name in self._PRIMARY_FIELDS:
                writer.write_bits(getattr(self, name), 16)

    def validate(self) -> None:
        if self.length > 1:
            _ensure(
                self.source_primary_index == CUSTOM_PRIMARY_INDEX,
                self,
                "custom primaries require source_primary_index 255",
            )
            for name in self._PRIMARY_FIELDS:
                _ensure(getattr(self, name) > 0, self, f"{name} must be positive")
        else:
            _ensure(
                self.source_primary_index != CUSTOM_PRIMARY_INDEX,
                self,
                "source_primary_index 255 requires custom primaries",
            )

    def set_from_primaries(self, primaries: ColorPrimaries) -> None:
        """Copy custom primaries into the block."""
        _set_primaries(self, "source_primary", primaries)

    @classmethod
    def default_dci_p3(cls) -> ExtMetadataBlockLevel9:
        """The DCI-P3 D65 preset block."""
        return cls(length=1, source_primary_index=int(MasteringDisplayPrimaries.DCIP3D65))

    def length_bytes(self) -> int:
        return self.length

    def required_bits(self) -> int:
        try:
            return _L9_REQUIRED_BITS[self.length]
        except KeyError:
            raise MetadataError(f"Level 9: invalid block length {self.length}") from None

    def sort_key(self) -> tuple[int, int]:
        return (self.level, self.source_primary_index)


@dataclass
class ExtMetadataBlockLevel10(ExtMetadataBlock):
    """Custom target display information.

    A 5-byte block carries a primaries preset index; a 21-byte block also
    carries custom primaries, which stay zero otherwise.
    """

    length: int = 5
    target_display_index: int = 20
    target_max_pq: int = 2081
    target_min_pq: int = 0
    target_primary_index: int = 2

    target_primary_red_x: int = 0
    target_primary_red_y: int = 0
    target_primary_green_x: int = 0
    target_primary_green_y: int = 0
    target_primary_blue_x: int = 0
    target_primary_blue_y: int = 0
    target_primary_white_x: int = 0
    target_primary_white_y: int = 0

    level = 10

    _PRIMARY_FIELDS = _primary_fields("target_primary")

    @classmethod
    def parse(cls, reader: BitReader, length: int) -> ExtMetadataBlockLevel10:
        """Read the fields present for a block of ``length`` bytes."""
        block = cls(
            length=length,
            target_display_index=reader.read_bits(8),
            target_max_pq=reader.read_bits(12),
            target_min_pq=reader.read_bits(12),
            target_primary_index=reader.read_bits(8),
        )
        if length > 5:
            for name in cls._PRIMARY_FIELDS:
                setattr(block, name, reader.read_bits(16))
        return block

    def write(self, writer: BitWriter) -> None:
        self.validate()
        writer.write_bits(self.target_display_index, 8)
        writer.write_bits(self.target_max_pq, 12)
        writer.write_bits(self.target_min_pq, 12)
        writer.write_bits(self.target_primary_index, 8)
        if self.length > 5:
            for name in self._PRIMARY_FIELDS:
                writer.write_bits(getattr(self, name), 16)

    def validate(self) -> None:
        _ensure(
            self.target_display_index not in PRESET_TARGET_DISPLAYS,
            self,
            f"target_display_index {self.target_display_index} is a preset display",
        )
        _ensure(
            0 <= self.target_max_pq <= MAX_PQ_LUMINANCE,
            self,
            f"target_max_pq = {self.target_max_pq} > {MAX_PQ_LUMINANCE}",
        )
        _ensure(
            0 <= self.target_min_pq <= MAX_PQ_LUMINANCE,
            self,
            f"target_min_pq = {self.target_min_pq} > {MAX_PQ_LUMINANCE}",
        )
        if self.length > 5:
            _ensure(
                self.target_primary_index == CUSTOM_PRIMARY_INDEX,
                self,
                "custom primaries require target_primary_index 255",
            )
            for name in self._PRIMARY_FIELDS:
                _ensure(getattr(self, name) > 0, self, f"{name} must be positive")
        else:
            _ensure(
                self.target_primary_index != CUSTOM_PRIMARY_INDEX,
                self,
                "target_primary_index 255 requires custom primaries",
            )

    def set_from_primaries(self, primaries: ColorPrimaries) -> None:
        """Copy custom primaries into the block."""
        _set_primaries(self, "target_primary", primaries)

    def length_bytes(self) -> int:
        return self.length

    def required_bits(self) -> int:
        try:
            return _L10_REQUIRED_BITS[self.length]
        except KeyError:
            raise MetadataError(f"Level 10: invalid block length {self.length}") from None

    def sort_key(self) -> tuple[int, int]:
        return (self.level, self.target_display_index)


@dataclass
class ReservedExtMetadataBlock(ExtMetadataBlock):
    """A block of unknown level, kept as raw bits."""

    ext_block_length: int = 0
    ext_block_level: int = 0
    data: list[bool] = field(default_factory=list)

    level = 0

    @classmethod
    def parse(
        cls, ext_block_length: int, ext_block_level: int, reader: BitReader
    ) -> ReservedExtMetadataBlock:
        """Read ``ext_block_length`` bytes of raw payload."""
        data = [reader.read_bit() for _ in range(8 * ext_block_length)]
        return cls(
            ext_block_length=ext_block_length,
            ext_block_level=ext_block_level,
            data=data,
        )

    def write(self, writer: BitWriter) -> None:
        raise MetadataError("Cannot write reserved block")

    def length_bytes(self) -> int:
        return self.ext_block_length

    def required_bits(self) -> int:
        return len(self.data)