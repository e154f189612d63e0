"""Tests for encoding texture index files."""

import io
import os
import shutil
import struct
import tempfile
import unittest
from unittest import mock

from TexHeaders.core import File, MipMap, decode, encode, write, write_file
from TexHeaders.core.errors import (
    BoundsError, InvalidASCIIZError, InvalidMagicError, UnsupportedVersionError,
)

from conftest import make_entry, make_file


class _HugeList(list):
    """Empty list that reports a length past the u32 range."""

    def __len__(self):
        return 2 ** 32


class TestEncodeHeader(unittest.TestCase):
    def test_defaults_for_empty_magic_and_version(self):
        self.assertEqual(encode(File()), b"0DHT" + struct.pack("<II", 1, 0))

    def test_wrong_magic_rejected(self):
        with self.assertRaises(InvalidMagicError) as cm:
            encode(File(magic=b"ABCD"))
        self.assertEqual(cm.exception.stage, "encode")

    def test_wrong_version_rejected(self):
        with self.assertRaises(UnsupportedVersionError):
            encode(File(version=2))

    def test_texture_count_out_of_range(self):
        with self.assertRaises(BoundsError) as cm:
            encode(File(textures=_HugeList()))
        self.assertEqual(cm.exception.field, "texture_count")
        self.assertIsInstance(cm.exception, OverflowError)

    def test_deterministic(self):
        f = make_file(6)
        self.assertEqual(encode(f), encode(f))

    def test_entry_layout(self):
        entry = make_entry(mips=1)
        data = encode(File(textures=[entry]))
        path_bytes = b"data\\wall_co.paa\x00"
        # header + fixed entry prefix + path + suffix/copy + one mip + file_size
        self.assertEqual(len(data), 12 + 54 + len(path_bytes) + 8 + 12 + 4)
        self.assertEqual(struct.unpack_from("<I", data, len(data) - 4)[0], 4096)


class TestEncodeBounds(unittest.TestCase):
    def _encode_entry(self, entry):
        return encode(File(textures=[entry]))

    def test_u32_field_overflow_names_field(self):
        entry = make_entry()
        entry.palette_count = 2 ** 32
        with self.assertRaises(BoundsError) as cm:
            self._encode_entry(entry)
        self.assertEqual(cm.exception.field, "texture[0].palette_count")
        self.assertEqual(cm.exception.limit, 0xFFFFFFFF)

    def test_negative_rejected(self):
        entry = make_entry()
        entry.file_size = -1
        with self.assertRaises(BoundsError) as cm:
            self._encode_entry(entry)
        self.assertEqual(cm.exception.field, "texture[0].file_size")

    def test_u8_flag_overflow(self):
        entry = make_entry()
        entry.is_alpha = 256
        with self.assertRaises(BoundsError) as cm:
            self._encode_entry(entry)
        self.assertEqual(cm.exception.field, "texture[0].is_alpha")

    def test_u16_mip_width_overflow(self):
        entry = make_entry()
        entry.mipmaps[1].width = 70000
        with self.assertRaises(BoundsError) as cm:
            self._encode_entry(entry)
        self.assertEqual(cm.exception.field, "texture[0].mipmaps[1].width")

    def test_mip_list_length_out_of_range(self):
        entry = make_entry()
        entry.mipmaps = _HugeList()
        with self.assertRaises(BoundsError) as cm:
            self._encode_entry(entry)
        self.assertEqual(cm.exception.field, "texture[0].mip_count_copy")

    def test_color_must_have_four_components(self):
        entry = make_entry()
        entry.average_color = b"\x00\x00\x00"
        with self.assertRaises(BoundsError):
            self._encode_entry(entry)

        entry = make_entry()
        entry.average_color_f = (0.0, 0.0, 0.0)
        with self.assertRaises(BoundsError):
            self._encode_entry(entry)

    def test_embedded_nul_in_path(self):
        entry = make_entry()
        entry.path = "data\\bad\x00name.paa"
        with self.assertRaises(InvalidASCIIZError) as cm:
            self._encode_entry(entry)
        self.assertEqual(cm.exception.stage, "encode")

    def test_mip_count_copy_written_from_list(self):
        entry = make_entry(mips=2)
        entry.mip_count_copy = 9
        decoded = decode(self._encode_entry(entry)).textures[0]
        self.assertEqual(decoded.mip_count_copy, 2)
        self.assertEqual(len(decoded.mipmaps), 2)

    def test_stored_mip_count_written_as_is(self):
        entry = make_entry(mips=1)
        entry.mip_count = 4
        decoded = decode(self._encode_entry(entry)).textures[0]
        self.assertEqual(decoded.mip_count, 4)


class TestWriteTargets(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp_dir, ignore_errors=True)

    def test_write_stream_returns_size(self):
        buf = io.BytesIO()
        n = write(buf, make_file(2))
        self.assertEqual(n, len(buf.getvalue()))
        self.assertEqual(buf.getvalue(), encode(make_file(2)))

    def test_failed_encode_writes_nothing(self):
        f = make_file(2)
        f.textures[1].format = 2 ** 40
        buf = io.BytesIO()
        with self.assertRaises(BoundsError):
            write(buf, f)
        self.assertEqual(buf.getvalue(), b"")

    def test_write_file_round_trip(self):
        path = os.path.join(self.tmp_dir, "out", "texHeaders.bin")
        n = write_file(path, make_file(3))
        with open(path, "rb") as fh:
            data = fh.read()
        self.assertEqual(len(data), n)
        self.assertEqual(decode(data), make_file(3))
        self.assertEqual(os.listdir(os.path.dirname(path)), ["texHeaders.bin"])

    def test_write_file_failure_keeps_existing_target(self):
        path = os.path.join(self.tmp_dir, "texHeaders.bin")
        write_file(path, make_file(1))
        with open(path, "rb") as fh:
            before = fh.read()

        with mock.patch("os.replace", side_effect=OSError("disk full")):
            with self.assertRaises(OSError) as cm:
                write_file(path, make_file(4))
        self.assertIn(path, str(cm.exception))
        with open(path, "rb") as fh:
            self.assertEqual(fh.read(), before)
        self.assertEqual(os.listdir(self.tmp_dir), ["texHeaders.bin"])

    def test_write_file_bounds_error_creates_nothing(self):
        path = os.path.join(self.tmp_dir, "texHeaders.bin")
        f = File(textures=[make_entry()])
        f.textures[0].mipmaps.append(MipMap(width=1, height=1, format=300))
        with self.assertRaises(BoundsError):
            write_file(path, f)
        self.assertFalse(os.path.exists(path))


if __name__ == "__main__":
    unittest.main()
