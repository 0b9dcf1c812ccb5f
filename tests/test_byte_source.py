import struct

import pytest

from kernmap.core.errors import ByteSourceUnderflowError, KernelParseError
from kernmap.parsers.byte_source import ByteSource


@pytest.fixture
def source():
    return ByteSource(struct.pack("<IQ", 0x31494E49, 0x1122334455667788) + b"ab\xffz")


class TestByteSource:

    def test_size(self, source):
        assert source.size == 16
        assert len(source) == 16

    def test_little_endian_reads(self, source):
        assert source.read_u32(0) == 0x31494E49
        assert source.read_u64(4) == 0x1122334455667788

    def test_read_bytes(self, source):
        assert source.read_bytes(0, 4) == b"INI1"
        assert source.read_bytes(16, 0) == b""

    def test_read_ascii_replaces_non_ascii(self, source):
        assert source.read_ascii(12, 4) == "ab\ufffdz"

    def test_accepts_bytearray(self):
        assert ByteSource(bytearray(b"\x01\x00\x00\x00")).read_u32(0) == 1

    def test_from_path(self, tmp_path):
        path = tmp_path / "kernel.bin"
        path.write_bytes(b"\x00" * 8)
        assert ByteSource.from_path(path).read_u64(0) == 0

    @pytest.mark.parametrize("offset, length", [
        (13, 4),
        (16, 1),
        (-1, 4),
        (0, 17),
    ])
    def test_out_of_range_read_raises(self, source, offset, length):
        with pytest.raises(ByteSourceUnderflowError) as excinfo:
            source.read_bytes(offset, length)
        assert excinfo.value.available == 16

    def test_short_integer_read_raises(self, source):
        with pytest.raises(ByteSourceUnderflowError):
            source.read_u64(12)
        with pytest.raises(ByteSourceUnderflowError):
            source.read_u32(14)

    def test_underflow_is_a_parse_error(self, source):
        with pytest.raises(KernelParseError):
            source.read_u32(100)
