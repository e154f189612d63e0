"""Tests for the .paa header scanner."""

import io
import struct
import unittest

from TexHeaders.config import PaxType
from TexHeaders.core import read_paa_metadata
from TexHeaders.core.errors import FormatError, PaaFormatError

from conftest import make_paa


class TestReadPaaMetadata(unittest.TestCase):
    def test_full_header(self):
        data = make_paa(
            type_tag=0xFF05,
            average=b"\x01\x02\x03\x04",
            maximum=b"\x05\x06\x07\x08",
            flags=3,
            palette=2,
            mips=((16, 8), (8, 4)),
        )
        meta = read_paa_metadata(io.BytesIO(data))
        self.assertEqual(meta.pax_type, PaxType.DXT5)
        self.assertEqual(meta.average_color, b"\x01\x02\x03\x04")
        self.assertEqual(meta.max_color, b"\x05\x06\x07\x08")
        self.assertEqual(meta.flags, 3)
        self.assertEqual([(m.width, m.height) for m in meta.mips], [(16, 8), (8, 4)])
        # type tag + 3 taggs of 16 bytes + palette count + 2 palette entries
        first = 2 + 48 + 2 + 6
        self.assertEqual([m.offset for m in meta.mips], [first, first + 7 + 8])

    def test_missing_taggs(self):
        meta = read_paa_metadata(io.BytesIO(make_paa(type_tag=0x8888)))
        self.assertEqual(meta.pax_type, PaxType.ARGB8)
        self.assertIsNone(meta.average_color)
        self.assertIsNone(meta.max_color)
        self.assertIsNone(meta.flags)
        self.assertEqual(len(meta.mips), 2)

    def test_type_tags(self):
        cases = {
            0xFF01: PaxType.DXT1,
            0xFF03: PaxType.DXT3,
            0x4444: PaxType.ARGB4,
            0x1555: PaxType.ARGBA5,
            0x8080: PaxType.GRAYA,
        }
        for tag, want in cases.items():
            with self.subTest(tag=hex(tag)):
                self.assertEqual(read_paa_metadata(io.BytesIO(make_paa(type_tag=tag))).pax_type, want)

    def test_unknown_taggs_skipped(self):
        data = make_paa(extra_taggs=[(b"SFFO", b"\x00" * 64)], average=b"\x09\x09\x09\x09")
        meta = read_paa_metadata(io.BytesIO(data))
        self.assertEqual(meta.average_color, b"\x09\x09\x09\x09")
        self.assertEqual(meta.mips[0].offset, 2 + 12 + 64 + 16 + 2)

    def test_lzo_flag_masked_for_dxt(self):
        meta = read_paa_metadata(io.BytesIO(make_paa(type_tag=0xFF01, mips=((0x8000 | 512, 512),))))
        self.assertEqual(meta.mips[0].width, 512)

    def test_lzo_flag_kept_for_uncompressed(self):
        meta = read_paa_metadata(io.BytesIO(make_paa(type_tag=0x8888, mips=((0x8000 | 4, 4),))))
        self.assertEqual(meta.mips[0].width, 0x8004)

    def test_no_mips(self):
        meta = read_paa_metadata(io.BytesIO(make_paa(mips=())))
        self.assertEqual(meta.mips, [])

    def test_missing_terminator_ends_at_eof(self):
        data = make_paa(mips=((4, 4),))[:-4]
        meta = read_paa_metadata(io.BytesIO(data))
        self.assertEqual(len(meta.mips), 1)

    def test_unknown_type_tag(self):
        with self.assertRaises(PaaFormatError) as cm:
            read_paa_metadata(io.BytesIO(struct.pack("<H", 0x1234) + b"\x00" * 8))
        self.assertIn("0x1234", str(cm.exception))
        self.assertEqual(cm.exception.stage, "scan")

    def test_tagg_past_end(self):
        data = struct.pack("<H", 0xFF01) + b"GGAT" + b"CGVA" + struct.pack("<I", 100) + b"\x00" * 4
        with self.assertRaises(PaaFormatError):
            read_paa_metadata(io.BytesIO(data))

    def test_truncated_mip_payload(self):
        data = make_paa(mips=((4, 4),), payload_size=32)[:-4 - 10]
        with self.assertRaises(PaaFormatError):
            read_paa_metadata(io.BytesIO(data))

    def test_empty_stream(self):
        with self.assertRaises(FormatError):
            read_paa_metadata(io.BytesIO(b""))


if __name__ == "__main__":
    unittest.main()
