"""Tests for atomic writes and root discovery."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from reserve.storage.fs import (
    RESERVE_DIR,
    ReserveRootError,
    atomic_write,
    dump_json,
    ensure_reserve_dirs,
    find_root,
    read_json,
    write_json,
)


class TestAtomicWrite:
    """atomic_write() writes content safely via temp + fsync + rename."""

    def test_writes_expected_content(self, tmp_path: Path) -> None:
        target = tmp_path / "output.json"
        atomic_write(target, '{"key": "值"}\n')

        assert target.read_text(encoding="utf-8") == '{"key": "值"}\n'

    def test_writes_bytes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "output.bin"
        atomic_write(target, b"\x00\x01\x02")
        assert target.read_bytes() == b"\x00\x01\x02"

    def test_no_temp_file_left_after_success(self, tmp_path: Path) -> None:
        target = tmp_path / "output.json"
        atomic_write(target, "content\n")
        assert list(tmp_path.iterdir()) == [target]

    def test_missing_parent_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            atomic_write(tmp_path / "nope" / "x.json", "x")

    def test_failed_replace_leaves_old_content(self, tmp_path: Path) -> None:
        target = tmp_path / "output.json"
        target.write_text("old\n")

        with patch("reserve.storage.fs.os.replace", side_effect=OSError("boom")):
            with pytest.raises(OSError, match="boom"):
                atomic_write(target, "new\n")

        assert target.read_text() == "old\n"
        assert list(tmp_path.iterdir()) == [target]


class TestJsonFiles:
    def test_dump_is_sorted_and_readable(self) -> None:
        assert dump_json({"b": 1, "a": "宁波"}) == '{\n  "a": "宁波",\n  "b": 1\n}\n'

    def test_write_then_read(self, tmp_path: Path) -> None:
        target = tmp_path / "value.json"
        write_json(target, [{"id": "a"}])
        assert read_json(target) == [{"id": "a"}]

    def test_missing_file_gives_default(self, tmp_path: Path) -> None:
        assert read_json(tmp_path / "absent.json", []) == []

    def test_corrupt_file_gives_default(self, tmp_path: Path, caplog) -> None:
        target = tmp_path / "broken.json"
        target.write_text("{not json")
        assert read_json(target, "fallback") == "fallback"
        assert "broken.json" in caplog.text


class TestEnsureReserveDirs:
    def test_creates_layout(self, tmp_path: Path) -> None:
        reserve_dir = ensure_reserve_dirs(tmp_path)
        assert reserve_dir == tmp_path / RESERVE_DIR
        assert (reserve_dir / "data").is_dir()
        assert (reserve_dir / "locks").is_dir()

    def test_idempotent(self, tmp_path: Path) -> None:
        ensure_reserve_dirs(tmp_path)
        ensure_reserve_dirs(tmp_path)


class TestFindRoot:
    def test_walks_up(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RESERVE_ROOT", raising=False)
        ensure_reserve_dirs(tmp_path)
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        assert find_root(nested) == tmp_path.resolve()

    def test_none_when_absent(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RESERVE_ROOT", raising=False)
        with patch("reserve.storage.fs.Path.is_dir", return_value=False):
            assert find_root(tmp_path) is None

    def test_env_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        ensure_reserve_dirs(tmp_path)
        monkeypatch.setenv("RESERVE_ROOT", str(tmp_path))
        assert find_root(Path("/")) == tmp_path

    @pytest.mark.parametrize("value", ["", "/definitely/not/here"])
    def test_invalid_env(self, value: str, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESERVE_ROOT", value)
        with pytest.raises(ReserveRootError):
            find_root()

    def test_env_without_reserve_dir(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("RESERVE_ROOT", str(tmp_path))
        with pytest.raises(ReserveRootError, match="no .reserve"):
            find_root()
