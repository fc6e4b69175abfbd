"""Containers of extension metadata blocks for CM v2.9 and CM v4.0."""

from __future__ import annotations

import dataclasses
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, ClassVar

from .bitstream import BitReader, BitWriter
from .block_base import CmVersion, ExtMetadataBlock, MetadataError
from .levels_display import ExtMetadataBlockLevel9, ExtMetadataBlockLevel10
from .levels_stats import (
    ExtMetadataBlockLevel1,
    ExtMetadataBlockLevel2,
    ExtMetadataBlockLevel3,
    ExtMetadataBlockLevel4,
    ExtMetadataBlockLevel5,
    ExtMetadataBlockLevel6,
)
from .levels_trims import (
    ExtMetadataBlockLevel8,
    ExtMetadataBlockLevel11,
    ExtMetadataBlockLevel254,
    ExtMetadataBlockLevel255,
)

_BlockParser = Callable[[BitReader, int], ExtMetadataBlock]

_BLOCK_PARSERS: dict[int, _BlockParser] = {
    1: lambda reader, _length: ExtMetadataBlockLevel1.parse(reader),
    2: lambda reader, _length: ExtMetadataBlockLevel2.parse(reader),
    3: lambda reader, _length: ExtMetadataBlockLevel3.parse(reader),
    4: lambda reader, _length: ExtMetadataBlockLevel4.parse(reader),
    5: lambda reader, _length: ExtMetadataBlockLevel5.parse(reader),
    6: lambda reader, _length: ExtMetadataBlockLevel6.parse(reader),
    8: ExtMetadataBlockLevel8.parse,
    9: ExtMetadataBlockLevel9.parse,
    10: ExtMetadataBlockLevel10.parse,
    11: lambda reader, _length: ExtMetadataBlockLevel11.parse(reader),
    254: lambda reader, _length: ExtMetadataBlockLevel254.parse(reader),
    255: lambda reader, _length: ExtMetadataBlockLevel255.parse(reader),
}


@dataclass
class ExtMetadataContainer:
    """A counted, ordered list of ext_metadata_block() entries."""

    num_ext_blocks: int = 0
    ext_metadata_blocks: list[ExtMetadataBlock] = field(default_factory=list)

    VERSION: ClassVar[str] = ""
    ALLOWED_BLOCK_LEVELS: ClassVar[tuple[int, ...]] = ()
    FOREIGN_BLOCK_LEVELS: ClassVar[tuple[int, ...]] = ()

    @classmethod
    def parse(cls, reader: BitReader) -> ExtMetadataContainer:
        """Read the block count, alignment bits and every block."""
        meta = cls()
        meta.num_ext_blocks = reader.read_ue()

        while not reader.is_aligned():
            if reader.read_bit():
                raise MetadataError(f"{cls.VERSION}: dm_alignment_zero_bit != 0")

        for _ in range(meta.num_ext_blocks):
            meta.parse_block(reader)

        return meta

    def parse_block(self, reader: BitReader) -> None:
        """Read one block and append it."""
        ext_block_length = reader.read_ue()
        ext_block_level = reader.read_bits(8)

        if ext_block_level in self.FOREIGN_BLOCK_LEVELS:
            raise MetadataError(
                f"Invalid block level {ext_block_level} for {self.VERSION} RPU"
            )
        if ext_block_level not in self.ALLOWED_BLOCK_LEVELS:
            raise MetadataError(
                f"{self.VERSION} - Unknown metadata block found: Level "
                f"{ext_block_level}, length {ext_block_length}, please open an issue."
            )

        block = _BLOCK_PARSERS[ext_block_level](reader, ext_block_length)
        block.validate_and_read_remaining(
            reader, ext_block_length, self.VERSION, self.ALLOWED_BLOCK_LEVELS
        )
        self.ext_metadata_blocks.append(block)

    def sort_blocks(self) -> None:
        """Order the blocks by their sort keys."""
        self.ext_metadata_blocks.sort(key=lambda block: block.sort_key())

    def update_extension_block_info(self) -> None:
        """Recount the blocks and restore their order."""
        self.num_ext_blocks = len(self.ext_metadata_blocks)
        self.sort_blocks()

    def add_block(self, block: ExtMetadataBlock) -> None:
        """Append a block whose level is allowed for this version."""
        if block.level not in self.ALLOWED_BLOCK_LEVELS:
            raise MetadataError(
                f"Metadata block level {block.level} is invalid for {self.VERSION}"
            )
        self.ext_metadata_blocks.append(block)
        self.update_extension_block_info()

    def remove_level(self, level: int) -> None:
        """Drop every block of the given level."""
        self.ext_metadata_blocks = [
            block for block in self.ext_metadata_blocks if block.level != level
        ]
        self.update_extension_block_info()

    def write(self, writer: BitWriter) -> None:
        """Write the block count, alignment bits and every block."""
        writer.write_ue(self.num_ext_blocks)

        while not writer.is_aligned():
            writer.write_bit(False)

        for block in self.ext_metadata_blocks:
            remaining_bits = block.length_bits() - block.required_bits()

            writer.write_ue(block.length_bytes())
            writer.write_bits(block.level, 8)
            block.write(writer)

            for _ in range(remaining_bits):
                writer.write_bit(False)

    def _replace_matching(self, block: ExtMetadataBlock, key: str) -> None:
        replacement = dataclasses.replace(block)
        for index, existing in enumerate(self.ext_metadata_blocks):
            if type(existing) is type(block) and getattr(existing, key) == getattr(
                block, key
            ):
                self.ext_metadata_blocks[index] = replacement
                break
        else:
            self.ext_metadata_blocks.append(replacement)
        self.update_extension_block_info()

    def _validate_counts(
        self, allowed_message: str, limits: tuple[tuple[int, int, bool], ...]
    ) -> None:
        counts = Counter(block.level for block in self.ext_metadata_blocks)

        if any(level not in self.ALLOWED_BLOCK_LEVELS for level in counts):
            raise MetadataError(f"{self.VERSION}: {allowed_message}")

        for level, limit, exact in limits:
            count = counts.get(level, 0)
            if exact:
                if count != limit:
                    raise MetadataError(
                        f"{self.VERSION}: There must be one L{level} metadata block"
                    )
            elif count > limit:
                if limit == 1:
                    text = f"at most one L{level} metadata block"
                else:
                    text = f"at most {limit} L{level} metadata blocks"
                raise MetadataError(f"{self.VERSION}: There must be {text}")


@dataclass
class CmV29DmData(ExtMetadataContainer):
    """Extension metadata of content mapping version 2.9."""

    VERSION: ClassVar[str] = CmVersion.V29.value
    ALLOWED_BLOCK_LEVELS: ClassVar[tuple[int, ...]] = (1, 2, 4, 5, 6, 255)
    FOREIGN_BLOCK_LEVELS: ClassVar[tuple[int, ...]] = (3, 8, 9, 10, 11, 254)

    def replace_level2_block(self, block: ExtMetadataBlockLevel2) -> None:
        """Replace the L2 block with the same target, or add it."""
        self._replace_matching(block, "target_max_pq")

    def validate(self) -> None:
        """Check that block levels and counts are permitted."""
        self._validate_counts(
            "Only allowed blocks level 1, 2, 4, 5, 6, and 255",
            (
                (1, 1, False),
                (2, 8, False),
                (255, 1, False),
                (4, 1, False),
                (5, 1, False),
                (6, 1, False),
            ),
        )


@dataclass
class CmV40DmData(ExtMetadataContainer):
    """Extension metadata of content mapping version 4.0."""

    VERSION: ClassVar[str] = CmVersion.V40.value
    ALLOWED_BLOCK_LEVELS: ClassVar[tuple[int, ...]] = (3, 8, 9, 10, 11, 254)
    FOREIGN_BLOCK_LEVELS: ClassVar[tuple[int, ...]] = (1, 2, 4, 5, 6, 255)

    def replace_level8_block(self, block: ExtMetadataBlockLevel8) -> None:
        """Replace the L8 block with the same target display, or add it."""
        self._replace_matching(block, "target_display_index")

    def replace_level10_block(self, block: ExtMetadataBlockLevel10) -> None:
        """Replace the L10 block with the same target display, or add it."""
        self._replace_matching(block, "target_display_index")

    def validate(self) -> None:
        """Check that block levels and counts are permitted."""
        self._validate_counts(
            "Only allowed blocks level 3, 8, 9, 10, 11 and 254",
            (
                (254, 1, True),
                (3, 1, False),
                (8, 5, False),
                (9, 1, False),
                (10, 4, False),
                (11, 1, False),
            ),
        )

    @classmethod
    def new_with_l254_402(cls) -> CmV40DmData:
        """A container holding only the CM v4.0.2 L254 block."""
        return cls(
            num_ext_blocks=1,
            ext_metadata_blocks=[ExtMetadataBlockLevel254.cmv402_default()],
        )

    @classmethod
    def new_with_custom_l254(cls, level254: ExtMetadataBlockLevel254) -> CmV40DmData:
        """A container holding only a copy of the given L254 block."""
        return cls(
            num_ext_blocks=1,
            ext_metadata_blocks=[dataclasses.replace(level254)],
        )