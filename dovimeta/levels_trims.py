"""Extension metadata blocks of levels 8, 11, 254 and 255."""

from __future__ import annotations

from dataclasses import dataclass

from .bitstream import BitReader, BitWriter
from .block_base import MAX_12_BIT_VALUE, ExtMetadataBlock, MetadataError

MAX_WHITEPOINT_VALUE = 15

_TRIM_FIELDS = (
    "trim_slope",
    "trim_offset",
    "trim_power",
    "trim_chroma_weight",
    "trim_saturation_gain",
    "ms_weight",
)
_SATURATION_FIELDS = tuple(f"saturation_vector_field{i}" for i in range(6))
_HUE_FIELDS = tuple(f"hue_vector_field{i}" for i in range(6))

_L8_REQUIRED_BITS = {25: 200, 19: 152, 13: 104, 12: 92, 10: 80}


def _ensure(condition: bool, block: ExtMetadataBlock, message: str) -> None:
    if not condition:
        raise MetadataError(f"Level {block.level}: {message}")


@dataclass
class ExtMetadataBlockLevel8(ExtMetadataBlock):
    """Creative intent trim pass per target display, as used by CM v4.0.

    The block length (10, 12, 13, 19 or 25 bytes) decides which of the
    optional fields are present; absent ones keep their default values.
    """

    length: int = 10
    target_display_index: int = 1

    trim_slope: int = 2048
    trim_offset: int = 2048
    trim_power: int = 2048
    trim_chroma_weight: int = 2048
    trim_saturation_gain: int = 2048
    ms_weight: int = 2048

    target_mid_contrast: int = 2048
    clip_trim: int = 2048

    saturation_vector_field0: int = 128
    saturation_vector_field1: int = 128
    saturation_vector_field2: int = 128
    saturation_vector_field3: int = 128
    saturation_vector_field4: int = 128
    saturation_vector_field5: int = 128

    hue_vector_field0: int = 128
    hue_vector_field1: int = 128
    hue_vector_field2: int = 128
    hue_vector_field3: int = 128
    hue_vector_field4: int = 128
    hue_vector_field5: int = 128

    level = 8

    def _layout(self) -> list[tuple[str, int]]:
        fields = [("target_display_index", 8)]
        fields += [(name, 12) for name in _TRIM_FIELDS]
        if self.length > 10:
            fields.append(("target_mid_contrast", 12))
        if self.length > 12:
            fields.append(("clip_trim", 12))
        if self.length > 13:
            fields += [(name, 8) for name in _SATURATION_FIELDS]
        if self.length > 19:
            fields += [(name, 8) for name in _HUE_FIELDS]
        return fields

    @classmethod
    def parse(cls, reader: BitReader, length: int) -> ExtMetadataBlockLevel8:
        """Read the fields present for a block of ``length`` bytes."""
        block = cls(length=length)
        for name, width in block._layout():
            setattr(block, name, reader.read_bits(width))
        return block

    def write(self, writer: BitWriter) -> None:
        self.validate()
        for name, width in self._layout():
            writer.write_bits(getattr(self, name), width)

    def validate(self) -> None:
        for name in (*_TRIM_FIELDS, "target_mid_contrast", "clip_trim"):
            value = getattr(self, name)
            _ensure(
                0 <= value <= MAX_12_BIT_VALUE,
                self,
                f"{name} = {value} is outside [0, {MAX_12_BIT_VALUE}]",
            )

    def length_bytes(self) -> int:
        return self.length

    def required_bits(self) -> int:
        try:
            return _L8_REQUIRED_BITS[self.length]
        except KeyError:
            raise MetadataError(f"Level 8: invalid block length {self.length}") from None

    def sort_key(self) -> tuple[int, int]:
        return (self.level, self.target_display_index)


@dataclass
class ExtMetadataBlockLevel11(ExtMetadataBlock):
    """Content type metadata."""

    content_type: int = 0
    whitepoint: int = 0
    reference_mode_flag: bool = False
    reserved_byte2: int = 0
    reserved_byte3: int = 0

    level = 11
    BYTES_SIZE = 4
    REQUIRED_BITS = 32

    @classmethod
    def parse(cls, reader: BitReader) -> ExtMetadataBlockLevel11:
        """Read the block fields from ``reader``."""
        block = cls(
            content_type=reader.read_bits(8),
            whitepoint=reader.read_bits(8),
            reserved_byte2=reader.read_bits(8),
            reserved_byte3=reader.read_bits(8),
        )
        if block.whitepoint > MAX_WHITEPOINT_VALUE:
            block.reference_mode_flag = True
            block.whitepoint -= MAX_WHITEPOINT_VALUE + 1
        return block

    def write(self, writer: BitWriter) -> None:
        self.validate()
        wp = self.whitepoint
        if self.reference_mode_flag:
            wp += MAX_WHITEPOINT_VALUE + 1
        writer.write_bits(self.content_type, 8)
        writer.write_bits(wp, 8)
        writer.write_bits(self.reserved_byte2, 8)
        writer.write_bits(self.reserved_byte3, 8)

    def validate(self) -> None:
        _ensure(0 <= self.content_type <= 15, self, f"content_type = {self.content_type} > 15")
        _ensure(
            0 <= self.whitepoint <= MAX_WHITEPOINT_VALUE,
            self,
            f"whitepoint = {self.whitepoint} > {MAX_WHITEPOINT_VALUE}",
        )
        _ensure(self.reserved_byte2 == 0, self, "reserved_byte2 must be zero")
        _ensure(self.reserved_byte3 == 0, self, "reserved_byte3 must be zero")

    @classmethod
    def default_reference_cinema(cls) -> ExtMetadataBlockLevel11:
        """Cinema content, reference mode, D65 whitepoint."""
        return cls(content_type=1, whitepoint=0, reference_mode_flag=True)


@dataclass
class ExtMetadataBlockLevel254(ExtMetadataBlock):
    """CM v4.0 display management mode and version."""

    dm_mode: int = 0
    dm_version_index: int = 0

    level = 254
    BYTES_SIZE = 2
    REQUIRED_BITS = 16

    @classmethod
    def parse(cls, reader: BitReader) -> ExtMetadataBlockLevel254:
        """Read the block fields from ``reader``."""
        return cls(dm_mode=reader.read_bits(8), dm_version_index=reader.read_bits(8))

    def write(self, writer: BitWriter) -> None:
        writer.write_bits(self.dm_mode, 8)
        writer.write_bits(self.dm_version_index, 8)

    @classmethod
    def cmv402_default(cls) -> ExtMetadataBlockLevel254:
        """The block identifying CM v4.0.2."""
        return cls(dm_mode=0, dm_version_index=2)


@dataclass
class ExtMetadataBlockLevel255(ExtMetadataBlock):
    """CM v2.9 display run mode and debugging values."""

    dm_run_mode: int = 0
    dm_run_version: int = 0
    dm_debug0: int = 0
    dm_debug1: int = 0
    dm_debug2: int = 0
    dm_debug3: int = 0

    level = 255
    BYTES_SIZE = 6
    REQUIRED_BITS = 48

    _FIELDS = (
        "dm_run_mode",
        "dm_run_version",
        "dm_debug0",
        "dm_debug1",
        "dm_debug2",
        "dm_debug3",
    )

    @classmethod
    def parse(cls, reader: BitReader) -> ExtMetadataBlockLevel255:
        """Read the block fields from ``reader``."""
        return cls(*(reader.read_bits(8) for _ in cls._FIELDS))

    def write(self, writer: BitWriter) -> None:
        for name in self._FIELDS:
            writer.write_bits(getattr(self, name), 8)