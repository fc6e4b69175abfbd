# dovimeta

Read, validate, edit and write the extension metadata blocks carried in
Dolby Vision RPUs: the CM v2.9 set (levels 1, 2, 4, 5, 6, 255) and the
CM v4.0 set (levels 3, 8, 9, 10, 11, 254).

## Installation

```
pip install .
```

No dependencies beyond the standard library.

## Modules

| Module | Contents |
| --- | --- |
| `dovimeta.bitstream` | `BitReader`, `BitWriter`, `BitstreamError` |
| `dovimeta.block_base` | `ExtMetadataBlock` base class, `CmVersion`, `MetadataError` |
| `dovimeta.levels_stats` | Blocks of levels 1, 2, 3, 4, 5 and 6 |
| `dovimeta.levels_trims` | Blocks of levels 8, 11, 254 and 255 |
| `dovimeta.levels_display` | Blocks of levels 9 and 10, `ReservedExtMetadataBlock` |
| `dovimeta.dm_data` | `CmV29DmData` and `CmV40DmData` containers |
| `dovimeta.primaries` | `ColorPrimaries`, `MasteringDisplayPrimaries`, `f64_to_integer_primaries` |

## Bitstreams

`BitReader` and `BitWriter` handle the MSB-first bit fields and unsigned
Exp-Golomb codes used by the RPU syntax. Reading past the end, or an
Exp-Golomb code with too many leading zeros, raises `BitstreamError`.
`BitWriter.to_bytes` pads a partial last byte with zero bits.

```python
from dovimeta.bitstream import BitReader, BitWriter

writer = BitWriter()
writer.write_ue(3)
writer.write_bits(0xABC, 12)
while not writer.is_aligned():
    writer.write_bit(False)

reader = BitReader(writer.to_bytes())
assert reader.read_ue() == 3
assert reader.read_bits(12) == 0xABC
```

## Metadata blocks

Each level is a dataclass with a `parse` class method, `write` and
`validate`:

- `ExtMetadataBlockLevel1`: frame min/max/avg PQ, with
  `from_stats_cm_version` and `clamp_values_cm_version` to clamp to the
  valid range for a `CmVersion`.
- `ExtMetadataBlockLevel2`: trims per target display.
- `ExtMetadataBlockLevel3`: level 1 offsets.
- `ExtMetadataBlockLevel4`: temporal stability anchors.
- `ExtMetadataBlockLevel5`: active area offsets, with `get_offsets`,
  `set_offsets`, `crop` and `from_offsets`.
- `ExtMetadataBlockLevel6`: HDR10 fallback, with `source_meta_from_l6`.
- `ExtMetadataBlockLevel8`: CM v4.0 trims; its `length` (10, 12, 13, 19
  or 25) decides which optional fields are read and written.
- `ExtMetadataBlockLevel9`: source primaries (length 1 or 17).
- `ExtMetadataBlockLevel10`: custom target display (length 5 or 21).
- `ExtMetadataBlockLevel11`: content type and whitepoint.
- `ExtMetadataBlockLevel254` and `ExtMetadataBlockLevel255`.

Blocks of unknown level are held as `ReservedExtMetadataBlock`, which can
be read but not written. Invalid values raise `MetadataError`.

```python
from dovimeta.block_base import CmVersion
from dovimeta.levels_stats import ExtMetadataBlockLevel1

l1 = ExtMetadataBlockLevel1.from_stats_cm_version(0, 4095, 100, CmVersion.V40)
l1.validate()
assert l1.avg_pq == 1229
```

## Metadata containers

`CmV29DmData` and `CmV40DmData` are the lists of blocks for each
content-mapping version. They parse from a `BitReader` (rejecting levels
that belong to the other version), add and remove blocks while keeping
them sorted and counted, replace L2, L8 or L10 blocks by target, check
the per-level counts the specification allows with `validate`, and write
back out to a `BitWriter`.

```python
from dovimeta.dm_data import CmV40DmData
from dovimeta.levels_display import ExtMetadataBlockLevel9

cmv40 = CmV40DmData.new_with_l254_402()
cmv40.add_block(ExtMetadataBlockLevel9.default_dci_p3())
cmv40.validate()
```

## Colour primaries

`ColorPrimaries.from_enum` maps a `MasteringDisplayPrimaries` member to
the 1/32767 fixed-point form used in levels 9 and 10, and
`f64_to_integer_primaries` converts eight float chromaticity coordinates.

## What this package does not do

It works on extension metadata only. It does not parse or write whole
RPUs, their headers, mapping or NLQ data, CRC32 checksums, or HEVC NAL
units, and it has no command-line tool.

## Running the tests

```
pip install .[test]
pytest
```