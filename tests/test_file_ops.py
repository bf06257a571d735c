"""Tests for project-confined file operations."""

import pytest

from devcrew.errors import FileOperationError
from devcrew.tools.file_ops import FileOps


class TestReadWrite:
    """read_file / write_file."""

    def test_write_then_read(self, tmp_dir):
        ops = FileOps(str(tmp_dir))
        assert ops.write_file("src/app.py", "a = 1\nb = 2\n") == "Created src/app.py (2 lines)"
        assert ops.write_file("src/app.py", "a = 3\n") == "Updated src/app.py (1 lines)"

        out = ops.read_file("src/app.py")
        assert out.startswith("-- src/app.py (1 lines) --")
        assert "   1 | a = 3" in out

    def test_line_range(self, tmp_dir):
        (tmp_dir / "f.txt").write_text("\n".join(f"line {i}" for i in range(1, 11)), encoding="utf-8")
        out = FileOps(str(tmp_dir)).read_file("f.txt", start_line=3, end_line=4)
        assert "   3 | line 3" in out
        assert "   4 | line 4" in out
        assert "line 5" not in out

    def test_missing_file(self, tmp_dir):
        with pytest.raises(FileOperationError, match="File not found"):
            FileOps(str(tmp_dir)).read_file("nope.txt")

    def test_binary_file(self, tmp_dir):
        (tmp_dir / "blob.bin").write_bytes(b"\xff\xfe\x00\x81")
        with pytest.raises(FileOperationError, match="binary"):
            FileOps(str(tmp_dir)).read_file("blob.bin")

    def test_write_onto_directory(self, tmp_dir):
        (tmp_dir / "pkg").mkdir()
        with pytest.raises(FileOperationError, match="Is a directory"):
            FileOps(str(tmp_dir)).write_file("pkg", "x")

    @pytest.mark.parametrize("path", ["../outside.txt", "/etc/passwd", "a/../../x"])
    def test_paths_outside_root_rejected(self, tmp_dir, path):
        ops = FileOps(str(tmp_dir))
        with pytest.raises(FileOperationError, match="outside project root"):
            ops.write_file(path, "x")


class TestListAndSearch:
    """list_directory / search_files."""

    def test_tree_skips_hidden_and_vendor_dirs(self, tmp_dir):
        (tmp_dir / "src").mkdir()
        (tmp_dir / "src" / "main.py").write_text("", encoding="utf-8")
        (tmp_dir / "node_modules").mkdir()
        (tmp_dir / ".git").mkdir()
        (tmp_dir / "README.md").write_text("", encoding="utf-8")

        out = FileOps(str(tmp_dir)).list_directory(".")
        assert "src/" in out
        assert "main.py" in out
        assert "README.md" in out
        assert "node_modules" not in out
        assert ".git" not in out
        assert "(2 files, 1 dirs)" in out.splitlines()[0]

    def test_list_missing_dir(self, tmp_dir):
        with pytest.raises(FileOperationError, match="Not found"):
            FileOps(str(tmp_dir)).list_directory("ghost")

    def test_search(self, tmp_dir):
        (tmp_dir / "a.py").write_text("def handler():\n    return 1\n", encoding="utf-8")
        (tmp_dir / "b.py").write_text("handler()\n", encoding="utf-8")

        out = FileOps(str(tmp_dir)).search_files(r"handler\(")
        assert out.splitlines() == ["a.py:1: def handler():", "b.py:1: handler()"]

    def test_search_limit(self, tmp_dir):
        (tmp_dir / "many.txt").write_text("hit\n" * 10, encoding="utf-8")
        out = FileOps(str(tmp_dir)).search_files("hit", max_results=3)
        assert out.splitlines()[-1] == "...(stopped at 3 matches)"

    def test_search_no_matches(self, tmp_dir):
        assert FileOps(str(tmp_dir)).search_files("zzz") == "No matches for 'zzz'"

    def test_search_bad_regex(self, tmp_dir):
        with pytest.raises(FileOperationError, match="Invalid pattern"):
            FileOps(str(tmp_dir)).search_files("(")
