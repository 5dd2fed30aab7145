"""Unit tests for file helpers."""

from unittest.mock import patch

import pytest

from posterflags.utils.files import copy_atomic


class TestCopyAtomic:
    """Test copy_atomic function."""

    def test_replaces_destination(self, tmp_path):
        """Test the destination ends up with the source bytes."""
        src = tmp_path / "src.png"
        dst = tmp_path / "dst.png"
        src.write_bytes(b"new")
        dst.write_bytes(b"old")

        copy_atomic(src, dst)

        assert dst.read_bytes() == b"new"
        assert not (tmp_path / ".dst.png.tmp").exists()

    def test_failed_copy_leaves_destination(self, tmp_path):
        """Test a copy error keeps the old bytes and removes the temp file."""
        src = tmp_path / "src.png"
        dst = tmp_path / "dst.png"
        src.write_bytes(b"new")
        dst.write_bytes(b"old")

        with patch("posterflags.utils.files.shutil.copyfile") as copyfile:

            def partial_copy(a, b):
                b.write_bytes(b"ne")
                raise OSError("disk full")

            copyfile.side_effect = partial_copy
            with pytest.raises(OSError):
                copy_atomic(src, dst)

        assert dst.read_bytes() == b"old"
        assert not (tmp_path / ".dst.png.tmp").exists()
