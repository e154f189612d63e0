"""Tests for stored entry path normalization."""

import os
import shutil
import tempfile
import unittest

from TexHeaders.core import normalize_entry_path


class TestNormalizeEntryPath(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp_dir, ignore_errors=True)

    def test_defaults(self):
        self.assertEqual(normalize_entry_path("data/Wall_CO.paa"), "data\\wall_co.paa")

    def test_cleans_dot_segments(self):
        self.assertEqual(normalize_entry_path("./data/../data/x.paa"), "data\\x.paa")

    def test_relative_to_base_dir(self):
        path = os.path.join(self.tmp_dir, "Data", "Rock_NOHQ.paa")
        self.assertEqual(
            normalize_entry_path(path, base_dir=self.tmp_dir), "data\\rock_nohq.paa"
        )

    def test_base_dir_outside_input(self):
        self.assertEqual(
            normalize_entry_path("other/a.paa", base_dir="data"), "..\\other\\a.paa"
        )

    def test_mixed_absolute_and_relative_kept(self):
        self.assertEqual(
            normalize_entry_path("data/a.paa", base_dir=self.tmp_dir), "data\\a.paa"
        )

    def test_absolute_without_base_uses_cwd(self):
        path = os.path.join(os.getcwd(), "textures", "b.paa")
        self.assertEqual(normalize_entry_path(path), "textures\\b.paa")

    def test_blank_base_dir_ignored(self):
        self.assertEqual(normalize_entry_path("data/a.paa", base_dir="   "), "data\\a.paa")

    def test_options_disabled(self):
        self.assertEqual(
            normalize_entry_path("Data/X.paa", backslash=False, lowercase=False),
            "Data/X.paa",
        )

    @unittest.skipIf(os.name == "nt", "normpath already removes .\\ on Windows")
    def test_strip_windows_dot_prefix(self):
        self.assertEqual(normalize_entry_path(".\\Tex.paa"), "tex.paa")
        self.assertEqual(
            normalize_entry_path(".\\Tex.paa", strip_dot_prefix=False), ".\\tex.paa"
        )


if __name__ == "__main__":
    unittest.main()
