import pytest

from kernmap.core.errors import ByteSourceUnderflowError
from kernmap.parsers.byte_source import ByteSource
from kernmap.parsers.dynamic import (
    EMPTY_STRING_TABLE,
    DynamicTableParser,
    DynamicTag,
    tag_name,
)

from tests.images import (
    DEFAULT_DYNAMIC,
    DYNAMIC_OFFSET,
    STRTAB,
    STRTAB_OFFSET,
    build_image,
    dynamic_table,
)

GNU_HASH = 0x6FFFFEF5


def _parse(entries, flat_size=0x1000, terminate=True, offset=0x100, extra=None):
    patches = {offset: dynamic_table(entries, terminate)}
    patches.update(extra or {})
    source = ByteSource(build_image(patches, size=0x3000))
    return DynamicTableParser(source).parse(offset, flat_size)


class TestEntries:

    def test_needed_keeps_every_value_in_order(self):
        table = _parse(DEFAULT_DYNAMIC, extra={STRTAB_OFFSET: STRTAB})
        assert table.entries[DynamicTag.DT_NEEDED] == [0x1, 0xB, 0x7]

    def test_later_singleton_replaces_earlier(self):
        table = _parse(DEFAULT_DYNAMIC, extra={STRTAB_OFFSET: STRTAB})
        assert table.entries[DynamicTag.DT_STRSZ] == [len(STRTAB)]

    def test_needed_is_present_even_when_absent(self):
        table = _parse([(DynamicTag.DT_STRSZ, 4)])
        assert table.entries[DynamicTag.DT_NEEDED] == []
        assert table.first(DynamicTag.DT_NEEDED) is None

    def test_unknown_tags_are_kept(self):
        table = _parse([(GNU_HASH, 0x1800)])
        assert table.entries[GNU_HASH] == [0x1800]

    def test_entries_after_null_are_ignored(self):
        entries = [(DynamicTag.DT_RELA, 0x10), (DynamicTag.DT_NULL, 0), (DynamicTag.DT_RELASZ, 0x30)]
        table = _parse(entries)
        assert DynamicTag.DT_RELASZ not in table.entries
        assert table.first(DynamicTag.DT_RELA) == 0x10


class TestBounds:

    def test_end_includes_null_terminator(self):
        table = _parse([(DynamicTag.DT_RELA, 0x10), (DynamicTag.DT_RELASZ, 0x30)])
        assert table.offset == 0x100
        assert table.end == 0x130
        assert table.size == 0x30

    def test_default_table_span(self):
        table = _parse(DEFAULT_DYNAMIC, flat_size=0x3000, offset=DYNAMIC_OFFSET)
        assert table.end == DYNAMIC_OFFSET + 0xF0

    def test_entry_count_limited_by_flat_size(self):
        entries = [(GNU_HASH + i, i) for i in range(6)]
        table = _parse(entries, flat_size=0x40, terminate=False, offset=0)
        assert table.end == 0x40
        assert len(table.entries) == 1 + 4

    def test_partial_entry_is_not_read(self):
        entries = [(GNU_HASH + i, i) for i in range(6)]
        table = _parse(entries, flat_size=0x3F, terminate=False, offset=0)
        assert table.end == 0x30
        assert GNU_HASH + 3 not in table.entries

    def test_table_past_flat_size_is_empty(self):
        table = _parse([(DynamicTag.DT_RELA, 0x10)], flat_size=0x80)
        assert table.end == table.offset
        assert table.entries == {int(DynamicTag.DT_NEEDED): []}

    def test_unterminated_table_past_image_end_raises(self):
        source = ByteSource(dynamic_table([(GNU_HASH, 1), (GNU_HASH, 2)], terminate=False))
        with pytest.raises(ByteSourceUnderflowError):
            DynamicTableParser(source).parse(0, 0x100)


class TestStringTable:

    def test_read_from_strtab_and_strsz(self):
        table = _parse(DEFAULT_DYNAMIC, extra={STRTAB_OFFSET: STRTAB})
        assert table.string_table == "\x00libkernel\x00libfs\x00"

    @pytest.mark.parametrize("entries", [
        [(DynamicTag.DT_STRTAB, STRTAB_OFFSET)],
        [(DynamicTag.DT_STRSZ, len(STRTAB))],
        [],
    ])
    def test_placeholder_when_a_tag_is_missing(self, entries):
        table = _parse(entries, extra={STRTAB_OFFSET: STRTAB})
        assert table.string_table == EMPTY_STRING_TABLE

    def test_string_table_past_image_end_raises(self):
        with pytest.raises(ByteSourceUnderflowError):
            _parse([(DynamicTag.DT_STRTAB, 0x2FF0), (DynamicTag.DT_STRSZ, 0x20)])


class TestTagName:

    def test_known(self):
        assert tag_name(DynamicTag.DT_JMPREL) == "DT_JMPREL"
        assert tag_name(10) == "DT_STRSZ"

    def test_unknown(self):
        assert tag_name(GNU_HASH) == "0x6ffffef5"
