"""Extension metadata blocks of levels 1 to 6: frame statistics, trims and areas."""

from __future__ import annotations

from dataclasses import dataclass

from .bitstream import BitReader, BitWriter
from .block_base import MAX_12_BIT_VALUE, CmVersion, ExtMetadataBlock, MetadataError

L1_MIN_PQ_MAX_VALUE = 12
L1_MAX_PQ_MIN_VALUE = 2081
L1_MAX_PQ_MAX_VALUE = 4095
L1_AVG_PQ_MIN_VALUE = 819
L1_AVG_PQ_MIN_VALUE_CMV40 = 1229

MAX_RESOLUTION_13_BITS = 8191
MAX_PQ_LUMINANCE = 10_000


def _ensure_range(block: ExtMetadataBlock, name: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise MetadataError(
            f"Level {block.level}: {name} = {value} is outside [{low}, {high}]"
        )


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


@dataclass
class ExtMetadataBlockLevel1(ExtMetadataBlock):
    """Statistical analysis of the frame: min, max and average brightness."""

    min_pq: int = 0
    max_pq: int = 0
    avg_pq: int = 0

    level = 1
    BYTES_SIZE = 5
    REQUIRED_BITS = 36

    @classmethod
    def parse(cls, reader: BitReader) -> ExtMetadataBlockLevel1:
        """Read the block fields from ``reader``."""
        return cls(
            min_pq=reader.read_bits(12),
            max_pq=reader.read_bits(12),
            avg_pq=reader.read_bits(12),
        )

    def write(self, writer: BitWriter) -> None:
        self.validate()
        writer.write_bits(self.min_pq, 12)
        writer.write_bits(self.max_pq, 12)
        writer.write_bits(self.avg_pq, 12)

    def validate(self) -> None:
        for name in ("min_pq", "max_pq", "avg_pq"):
            _ensure_range(self, name, getattr(self, name), 0, L1_MAX_PQ_MAX_VALUE)

    def _clamp_values_int(self, cm_version: CmVersion) -> None:
        avg_min_value = (
            L1_AVG_PQ_MIN_VALUE if cm_version is CmVersion.V29 else L1_AVG_PQ_MIN_VALUE_CMV40
        )
        self.min_pq = _clamp(self.min_pq, 0, L1_MIN_PQ_MAX_VALUE)
        self.max_pq = _clamp(self.max_pq, L1_MAX_PQ_MIN_VALUE, L1_MAX_PQ_MAX_VALUE)
        self.avg_pq = _clamp(self.avg_pq, avg_min_value, self.max_pq - 1)

    @classmethod
    def from_stats_cm_version(
        cls, min_pq: int, max_pq: int, avg_pq: int, cm_version: CmVersion
    ) -> ExtMetadataBlockLevel1:
        """Build a block clamped to the valid range for ``cm_version``."""
        block = cls(min_pq, max_pq, avg_pq)
        block._clamp_values_int(cm_version)
        return block

    def clamp_values_cm_version(self, cm_version: CmVersion) -> None:
        """Clamp the values in place to the valid range for ``cm_version``."""
        self._clamp_values_int(cm_version)

    @classmethod
    def from_stats(cls, min_pq: int, max_pq: int, avg_pq: int) -> ExtMetadataBlockLevel1:
        """Build a block clamped to the CM v2.9 range."""
        return cls.from_stats_cm_version(min_pq, max_pq, avg_pq, CmVersion.V29)

    def clamp_values(self) -> None:
        """Clamp the values in place to the CM v2.9 range."""
        self._clamp_values_int(CmVersion.V29)


@dataclass
class ExtMetadataBlockLevel2(ExtMetadataBlock):
    """Creative intent trim pass for one target display peak brightness."""

    target_max_pq: int = 2081
    trim_slope: int = 2048
    trim_offset: int = 2048
    trim_power: int = 2048
    trim_chroma_weight: int = 2048
    trim_saturation_gain: int = 2048
    ms_weight: int = 2048

    level = 2
    BYTES_SIZE = 11
    REQUIRED_BITS = 85

    _TWELVE_BIT_FIELDS = (
        "target_max_pq",
        "trim_slope",
        "trim_offset",
        "trim_power",
        "trim_chroma_weight",
        "trim_saturation_gain",
    )

    @classmethod
    def parse(cls, reader: BitReader) -> ExtMetadataBlockLevel2:
        """Read the block fields from ``reader``."""
        values = [reader.read_bits(12) for _ in cls._TWELVE_BIT_FIELDS]
        ms_weight = reader.read_bits(13)
        if ms_weight > MAX_12_BIT_VALUE:
            ms_weight -= 8192
        return cls(*values, ms_weight=ms_weight)

    def write(self, writer: BitWriter) -> None:
        self.validate()
        for name in self._TWELVE_BIT_FIELDS:
            writer.write_bits(getattr(self, name), 12)
        writer.write_bits(self.ms_weight, 13)

    def validate(self) -> None:
        for name in self._TWELVE_BIT_FIELDS:
            _ensure_range(self, name, getattr(self, name), 0, MAX_12_BIT_VALUE)
        _ensure_range(self, "ms_weight", self.ms_weight, -1, MAX_12_BIT_VALUE)

    def sort_key(self) -> tuple[int, int]:
        return (self.level, self.target_max_pq)


@dataclass
class ExtMetadataBlockLevel3(ExtMetadataBlock):
    """Offsets applied to the level 1 statistics."""

    min_pq_offset: int = 2048
    max_pq_offset: int = 2048
    avg_pq_offset: int = 2048

    level = 3
    BYTES_SIZE = 5
    REQUIRED_BITS = 36

    @classmethod
    def parse(cls, reader: BitReader) -> ExtMetadataBlockLevel3:
        """Read the block fields from ``reader``."""
        return cls(
            min_pq_offset=reader.read_bits(12),
            max_pq_offset=reader.read_bits(12),
            avg_pq_offset=reader.read_bits(12),
        )

    def write(self, writer: BitWriter) -> None:
        self.validate()
        writer.write_bits(self.min_pq_offset, 12)
        writer.write_bits(self.max_pq_offset, 12)
        writer.write_bits(self.avg_pq_offset, 12)

    def validate(self) -> None:
        for name in ("min_pq_offset", "max_pq_offset", "avg_pq_offset"):
            _ensure_range(self, name, getattr(self, name), 0, MAX_12_BIT_VALUE)


@dataclass
class ExtMetadataBlockLevel4(ExtMetadataBlock):
    """Temporal stability anchor values."""

    anchor_pq: int = 0
    anchor_power: int = 0

    level = 4
    BYTES_SIZE = 3
    REQUIRED_BITS = 24

    @classmethod
    def parse(cls, reader: BitReader) -> ExtMetadataBlockLevel4:
        """Read the block fields from ``reader``."""
        return cls(anchor_pq=reader.read_bits(12), anchor_power=reader.read_bits(12))

    def write(self, writer: BitWriter) -> None:
        self.validate()
        writer.write_bits(self.anchor_pq, 12)
        writer.write_bits(self.anchor_power, 12)

    def validate(self) -> None:
        _ensure_range(self, "anchor_pq", self.anchor_pq, 0, MAX_12_BIT_VALUE)
        _ensure_range(self, "anchor_power", self.anchor_power, 0, MAX_12_BIT_VALUE)


@dataclass
class ExtMetadataBlockLevel5(ExtMetadataBlock):
    """Active area of the picture (letterbox offsets)."""

    active_area_left_offset: int = 0
    active_area_right_offset: int = 0
    active_area_top_offset: int = 0
    active_area_bottom_offset: int = 0

    level = 5
    BYTES_SIZE = 7
    REQUIRED_BITS = 52

    @classmethod
    def parse(cls, reader: BitReader) -> ExtMetadataBlockLevel5:
        """Read the block fields from ``reader``."""
        return cls(*(reader.read_bits(13) for _ in range(4)))

    def write(self, writer: BitWriter) -> None:
        self.validate()
        for value in self.get_offsets():
            writer.write_bits(value, 13)

    def validate(self) -> None:
        names = (
            "active_area_left_offset",
            "active_area_right_offset",
            "active_area_top_offset",
            "active_area_bottom_offset",
        )
        for name in names:
            _ensure_range(self, name, getattr(self, name), 0, MAX_RESOLUTION_13_BITS)

    def get_offsets(self) -> tuple[int, int, int, int]:
        """The (left, right, top, bottom) offsets."""
        return (
            self.active_area_left_offset,
            self.active_area_right_offset,
            self.active_area_top_offset,
            self.active_area_bottom_offset,
        )

    def set_offsets(self, left: int, right: int, top: int, bottom: int) -> None:
        """Replace all four offsets."""
        self.active_area_left_offset = left
        self.active_area_right_offset = right
        self.active_area_top_offset = top
        self.active_area_bottom_offset = bottom

    def crop(self) -> None:
        """Set all offsets to zero."""
        self.set_offsets(0, 0, 0, 0)

    @classmethod
    def from_offsets(cls, left: int, right: int, top: int, bottom: int) -> ExtMetadataBlockLevel5:
        """Build a block from (left, right, top, bottom) offsets."""
        return cls(left, right, top, bottom)


@dataclass
class ExtMetadataBlockLevel6(ExtMetadataBlock):
    """ST 2086 / HDR10 fallback metadata."""

    max_display_mastering_luminance: int = 0
    min_display_mastering_luminance: int = 0
    max_content_light_level: int = 0
    max_frame_average_light_level: int = 0

    level = 6
    BYTES_SIZE = 8
    REQUIRED_BITS = 64

    _FIELDS = (
        "max_display_mastering_luminance",
        "min_display_mastering_luminance",
        "max_content_light_level",
        "max_frame_average_light_level",
    )

    @classmethod
    def parse(cls, reader: BitReader) -> ExtMetadataBlockLevel6:
        """Read the block fields from ``reader``."""
        return cls(*(reader.read_bits(16) for _ in cls._FIELDS))

    def write(self, writer: BitWriter) -> None:
        self.validate()
        for name in self._FIELDS:
            writer.write_bits(getattr(self, name), 16)

    def validate(self) -> None:
        for name in self._FIELDS:
            _ensure_range(self, name, getattr(self, name), 0, MAX_PQ_LUMINANCE)

    def source_meta_from_l6(self) -> tuple[int, int]:
        """Derive (source_min_pq, source_max_pq) from the mastering luminances."""
        mdl_min = self.min_display_mastering_luminance
        mdl_max = self.max_display_mastering_luminance

        if mdl_min <= 10:
            source_min_pq = 7
        elif mdl_min == 50:
            source_min_pq = 62
        else:
            source_min_pq = 0

        source_max_pq = {1000: 3079, 4000: 3696, 10000: 4095}.get(mdl_max, 3079)
        return (source_min_pq, source_max_pq)