"""Common behaviour of extension metadata blocks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import ClassVar, Collection

from .bitstream import BitReader, BitWriter

MAX_12_BIT_VALUE = 4095


class MetadataError(ValueError):
    """Raised when extension metadata is invalid."""


class CmVersion(Enum):
    """Content mapping metadata version."""

    V29 = "CM v2.9"
    V40 = "CM v4.0"


class ExtMetadataBlock(ABC):
    """Base for ext_metadata_block() payloads.

    Fixed-size subclasses set ``level``, ``BYTES_SIZE`` and ``REQUIRED_BITS``;
    variable-size ones override :meth:`length_bytes` and :meth:`required_bits`.
    """

    level: ClassVar[int]
    BYTES_SIZE: ClassVar[int]
    REQUIRED_BITS: ClassVar[int]

    def length_bytes(self) -> int:
        """Size of the block payload in bytes."""
        return self.BYTES_SIZE

    def length_bits(self) -> int:
        """Size of the block payload in bits."""
        return self.length_bytes() * 8

    def required_bits(self) -> int:
        """Number of bits actually used by the block fields."""
        return self.REQUIRED_BITS

    def sort_key(self) -> tuple[int, int]:
        """Key used to order blocks inside a metadata container."""
        return (self.level, 0)

    @abstractmethod
    def write(self, writer: BitWriter) -> None:
        """Write the block fields."""

    def validate(self) -> None:
        """Check field ranges; blocks without constraints accept any values."""
        return None

    def validate_correct_dm_data(
        self, version: str, allowed_levels: Collection[int]
    ) -> None:
        """Ensure the block level is permitted for the given CM version."""
        if self.level not in allowed_levels:
            raise MetadataError(
                f"Metadata block level {self.level} is invalid for {version}"
            )

    def validate_and_read_remaining(
        self,
        reader: BitReader,
        block_length: int,
        version: str,
        allowed_levels: Collection[int],
    ) -> None:
        """Check the declared length and consume the zero alignment bits."""
        if block_length != self.length_bytes():
            raise MetadataError(
                f"{version}: Invalid metadata block. Block level {self.level} "
                f"should have length {self.length_bytes()}"
            )

        self.validate_correct_dm_data(version, allowed_levels)

        for _ in range(self.length_bits() - self.required_bits()):
            if reader.read_bit():
                raise MetadataError(f"{version}: ext_dm_alignment_zero_bit != 0")