"""
Tests for extension extraction and extension-based classification.
"""

import pytest

from stackscout.extensions import (
    classify_by_extension,
    count_extensions,
    extract_extension,
    top_extensions,
)


class TestExtractExtension:
    """Test extension normalization."""

    @pytest.mark.parametrize("path,expected", [
        ("src/app.ts", ".ts"),
        ("src/App.TSX", ".tsx"),
        ("src/app.test.ts", ".ts"),
        ("src/app.spec.jsx", ".jsx"),
        ("types/index.d.ts", ".d.ts"),
        ("resources/views/home.blade.php", ".blade.php"),
        ("archive.tar.gz", ".gz"),
        ("Makefile", None),
        (".gitignore", None),
        ("dir.with.dots/README", None),
    ])
    def test_extract(self, path, expected):
        assert extract_extension(path) == expected

    def test_count_extensions_skips_extensionless(self):
        counts = count_extensions(["a.py", "b.py", "Dockerfile", "c.ts"])
        assert counts == {".py": 2, ".ts": 1}


class TestClassifyByExtension:
    """Test mapping extensions onto technologies."""

    def test_one_extension_can_map_to_several_technologies(self):
        assert classify_by_extension(["src/App.tsx"]) == {"typescript", "react"}

    def test_union_across_files(self):
        detected = classify_by_extension(["main.go", "web/index.vue", "schema.prisma"])
        assert detected == {"go", "vue", "prisma"}

    def test_unknown_extensions_contribute_nothing(self):
        assert classify_by_extension(["notes.xyz", "README"]) == set()

    def test_min_count_threshold(self):
        paths = ["a.py", "b.py", "c.rb"]
        assert classify_by_extension(paths, min_count=2) == {"python"}

    def test_test_files_count_as_script_files(self):
        assert "typescript" in classify_by_extension(["src/app.test.ts"])


class TestTopExtensions:
    """Test the extension histogram."""

    def test_sorted_descending(self):
        paths = ["a.ts", "b.ts", "c.ts", "d.js", "e.js", "f.md"]
        assert top_extensions(paths) == [(".ts", 3), (".js", 2), (".md", 1)]

    def test_limited_to_ten(self):
        paths = [f"file.e{i}" for i in range(15)]
        assert len(top_extensions(paths)) == 10

    def test_overly_long_suffix_ignored(self):
        assert top_extensions(["backup.verylongsuffix", "a.py"]) == [(".py", 1)]

    def test_raw_suffix_is_used(self):
        assert top_extensions(["src/app.test.ts", "types/index.d.ts"]) == [(".ts", 2)]

    def test_extensionless_files_ignored(self):
        assert top_extensions(["Makefile", "LICENSE"]) == []
