import pytest

from dovimeta.bitstream import BitReader, BitWriter
from dovimeta.block_base import MetadataError
from dovimeta.dm_data import CmV29DmData, CmV40DmData
from dovimeta.levels_display import (
    ExtMetadataBlockLevel9,
    ExtMetadataBlockLevel10,
    ReservedExtMetadataBlock,
)
from dovimeta.levels_stats import (
    ExtMetadataBlockLevel1,
    ExtMetadataBlockLevel2,
    ExtMetadataBlockLevel3,
    ExtMetadataBlockLevel5,
    ExtMetadataBlockLevel6,
)
from dovimeta.levels_trims import (
    ExtMetadataBlockLevel8,
    ExtMetadataBlockLevel11,
    ExtMetadataBlockLevel254,
    ExtMetadataBlockLevel255,
)


def _encode(container):
    writer = BitWriter()
    container.write(writer)
    return writer.to_bytes()


def _header(num_blocks, length, level):
    writer = BitWriter()
    writer.write_ue(num_blocks)
    while not writer.is_aligned():
        writer.write_bit(False)
    writer.write_ue(length)
    writer.write_bits(level, 8)
    return writer


def _v29_sample():
    meta = CmV29DmData()
    meta.add_block(ExtMetadataBlockLevel1(min_pq=0, max_pq=2825, avg_pq=1500))
    meta.add_block(ExtMetadataBlockLevel2(target_max_pq=2851, ms_weight=-1))
    meta.add_block(ExtMetadataBlockLevel5.from_offsets(0, 0, 276, 276))
    meta.add_block(ExtMetadataBlockLevel6(1000, 1, 1000, 400))
    meta.add_block(ExtMetadataBlockLevel255(1, 2, 3, 4, 5, 6))
    return meta


def _v40_sample():
    meta = CmV40DmData.new_with_l254_402()
    meta.add_block(ExtMetadataBlockLevel3(2048, 2100, 2000))
    meta.add_block(ExtMetadataBlockLevel8(length=25, target_display_index=48))
    meta.add_block(ExtMetadataBlockLevel9.default_dci_p3())
    meta.add_block(ExtMetadataBlockLevel10(length=5, target_display_index=20))
    meta.add_block(ExtMetadataBlockLevel11.default_reference_cinema())
    return meta


def test_l254_only_wire_bytes():
    meta = CmV40DmData.new_with_l254_402()
    assert _encode(meta) == b"\x40\x7f\xc0\x00\x40"


def test_parse_l254_only_wire_bytes():
    meta = CmV40DmData.parse(BitReader(b"\x40\x7f\xc0\x00\x40"))
    assert meta == CmV40DmData.new_with_l254_402()


def test_v29_round_trip():
    meta = _v29_sample()
    meta.validate()
    parsed = CmV29DmData.parse(BitReader(_encode(meta)))
    assert parsed == meta
    assert parsed.num_ext_blocks == len(parsed.ext_metadata_blocks)


def test_v40_round_trip():
    meta = _v40_sample()
    meta.validate()
    parsed = CmV40DmData.parse(BitReader(_encode(meta)))
    assert parsed == meta
    assert _encode(parsed) == _encode(meta)


def test_parse_rejects_foreign_level():
    writer = _header(1, 5, 3)
    writer.write_bits(0, 40)
    with pytest.raises(MetadataError, match="Invalid block level 3"):
        CmV29DmData.parse(BitReader(writer.to_bytes()))


def test_parse_rejects_v29_level_in_v40():
    writer = _header(1, 5, 1)
    writer.write_bits(0, 40)
    with pytest.raises(MetadataError, match="Invalid block level 1"):
        CmV40DmData.parse(BitReader(writer.to_bytes()))


def test_parse_rejects_unknown_level():
    writer = _header(1, 2, 7)
    writer.write_bits(0, 16)
    with pytest.raises(MetadataError, match="Unknown metadata block"):
        CmV29DmData.parse(BitReader(writer.to_bytes()))


def test_parse_rejects_wrong_block_length():
    writer = _header(1, 6, 1)
    writer.write_bits(0, 48)
    with pytest.raises(MetadataError, match="should have length"):
        CmV29DmData.parse(BitReader(writer.to_bytes()))


def test_parse_rejects_nonzero_alignment_bit():
    writer = BitWriter()
    writer.write_ue(0)
    writer.write_bits(1, 7)
    with pytest.raises(MetadataError, match="dm_alignment_zero_bit"):
        CmV40DmData.parse(BitReader(writer.to_bytes()))


def test_parse_rejects_nonzero_ext_alignment_bits():
    writer = _header(1, 5, 1)
    writer.write_bits(0, 36)
    writer.write_bits(0b1000, 4)
    with pytest.raises(MetadataError, match="ext_dm_alignment_zero_bit"):
        CmV29DmData.parse(BitReader(writer.to_bytes()))


def test_parse_block_appends():
    meta = CmV40DmData()
    writer = BitWriter()
    writer.write_ue(2)
    writer.write_bits(254, 8)
    writer.write_bits(0, 8)
    writer.write_bits(2, 8)
    meta.parse_block(BitReader(writer.to_bytes()))
    assert meta.ext_metadata_blocks == [ExtMetadataBlockLevel254.cmv402_default()]


def test_add_block_rejects_invalid_level():
    meta = CmV29DmData()
    with pytest.raises(MetadataError, match="invalid for CM v2.9"):
        meta.add_block(ExtMetadataBlockLevel11())
    assert meta.ext_metadata_blocks == []


def test_add_block_sorts_and_counts():
    meta = CmV29DmData()
    meta.add_block(ExtMetadataBlockLevel6())
    meta.add_block(ExtMetadataBlockLevel2(target_max_pq=3000))
    meta.add_block(ExtMetadataBlockLevel1())
    meta.add_block(ExtMetadataBlockLevel2(target_max_pq=2000))
    keys = [block.sort_key() for block in meta.ext_metadata_blocks]
    assert keys == sorted(keys)
    assert meta.num_ext_blocks == 4


def test_sort_blocks_orders_by_key():
    meta = CmV40DmData(
        num_ext_blocks=3,
        ext_metadata_blocks=[
            ExtMetadataBlockLevel254(),
            ExtMetadataBlockLevel8(target_display_index=48),
            ExtMetadataBlockLevel8(target_display_index=1),
        ],
    )
    meta.sort_blocks()
    assert [b.sort_key() for b in meta.ext_metadata_blocks] == [(8, 1), (8, 48), (254, 0)]


def test_update_extension_block_info_recounts():
    meta = CmV29DmData(num_ext_blocks=9, ext_metadata_blocks=[ExtMetadataBlockLevel1()])
    meta.update_extension_block_info()
    assert meta.num_ext_blocks == 1


def test_remove_level():
    meta = _v29_sample()
    meta.remove_level(2)
    assert all(block.level != 2 for block in meta.ext_metadata_blocks)
    assert meta.num_ext_blocks == len(meta.ext_metadata_blocks) == 4


def test_replace_level2_block_replaces_same_target():
    meta = _v29_sample()
    meta.replace_level2_block(ExtMetadataBlockLevel2(target_max_pq=2851, trim_slope=100))
    level2 = [b for b in meta.ext_metadata_blocks if b.level == 2]
    assert level2 == [ExtMetadataBlockLevel2(target_max_pq=2851, trim_slope=100)]
    assert meta.num_ext_blocks == 5


def test_replace_level2_block_adds_new_target():
    meta = _v29_sample()
    meta.replace_level2_block(ExtMetadataBlockLevel2(target_max_pq=2081))
    level2 = [b.target_max_pq for b in meta.ext_metadata_blocks if b.level == 2]
    assert level2 == [2081, 2851]
    assert meta.num_ext_blocks == 6


def test_replace_level2_block_stores_copy():
    meta = CmV29DmData()
    block = ExtMetadataBlockLevel2()
    meta.replace_level2_block(block)
    block.trim_slope = 0
    assert meta.ext_metadata_blocks[0].trim_slope == ExtMetadataBlockLevel2().trim_slope


def test_replace_level8_block():
    meta = _v40_sample()
    meta.replace_level8_block(ExtMetadataBlockLevel8(length=10, target_display_index=48))
    meta.replace_level8_block(ExtMetadataBlockLevel8(length=10, target_display_index=1))
    level8 = [b for b in meta.ext_metadata_blocks if b.level == 8]
    assert [b.target_display_index for b in level8] == [1, 48]
    assert all(b.length == 10 for b in level8)


def test_replace_level10_block():
    meta = _v40_sample()
    meta.replace_level10_block(ExtMetadataBlockLevel10(target_display_index=20, target_max_pq=3000))
    level10 = [b for b in meta.ext_metadata_blocks if b.level == 10]
    assert level10 == [ExtMetadataBlockLevel10(target_display_index=20, target_max_pq=3000)]


def test_v29_validate_too_many_level1():
    meta = CmV29DmData()
    meta.add_block(ExtMetadataBlockLevel1())
    meta.add_block(ExtMetadataBlockLevel1())
    with pytest.raises(MetadataError, match="at most one L1"):
        meta.validate()


def test_v29_validate_too_many_level2():
    meta = CmV29DmData()
    for target in range(2000, 2009):
        meta.add_block(ExtMetadataBlockLevel2(target_max_pq=target))
    with pytest.raises(MetadataError, match="at most 8 L2"):
        meta.validate()


def test_v29_validate_rejects_foreign_block():
    meta = CmV29DmData(ext_metadata_blocks=[ExtMetadataBlockLevel3()])
    with pytest.raises(MetadataError, match="Only allowed blocks"):
        meta.validate()


def test_v40_validate_requires_l254():
    meta = CmV40DmData()
    meta.add_block(ExtMetadataBlockLevel3())
    with pytest.raises(MetadataError, match="There must be one L254"):
        meta.validate()


def test_v40_validate_too_many_level10():
    meta = CmV40DmData.new_with_l254_402()
    for index in (2, 3, 4, 5, 6):
        meta.add_block(ExtMetadataBlockLevel10(target_display_index=index))
    with pytest.raises(MetadataError, match="at most 4 L10"):
        meta.validate()


def test_v40_validate_rejects_reserved():
    meta = CmV40DmData.new_with_l254_402()
    meta.ext_metadata_blocks.append(ReservedExtMetadataBlock(2, 7, [False] * 16))
    with pytest.raises(MetadataError, match="Only allowed blocks"):
        meta.validate()


def test_new_with_custom_l254():
    custom = ExtMetadataBlockLevel254(dm_mode=1, dm_version_index=1)
    meta = CmV40DmData.new_with_custom_l254(custom)
    custom.dm_mode = 9
    assert meta.num_ext_blocks == 1
    assert meta.ext_metadata_blocks == [ExtMetadataBlockLevel254(dm_mode=1, dm_version_index=1)]


def test_write_reserved_block_fails():
    meta = CmV40DmData(
        num_ext_blocks=1,
        ext_metadata_blocks=[ReservedExtMetadataBlock(2, 7, [False] * 16)],
    )
    with pytest.raises(MetadataError, match="Cannot write reserved block"):
        _encode(meta)


def test_write_empty_container_is_aligned():
    data = _encode(CmV29DmData())
    assert CmV29DmData.parse(BitReader(data)) == CmV29DmData()
    assert len(data) == 1