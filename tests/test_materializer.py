"""
Tests for materializing an index into a content-addressed directory tree.
"""
import os
import pytest
from datetime import datetime, timezone

from dedupset.core.errors import MaterializeError, StaleIndexError
from dedupset.core.materializer import (
    TEMP_PREFIX, MaterializerImpl, copy_atomic, file_extension, shard_dir)
from dedupset.core.models import TxMode
from conftest import fill_index, make_entry, sha256


def materialize(store, index_name, root):
    with store.transaction(TxMode.READ) as tx:
        return MaterializerImpl().materialize(tx.namespace(index_name), str(root))


def expected_path(root, digest, ext=""):
    return os.path.join(shard_dir(str(root), digest), digest.hex() + ext)


def snapshot(root):
    """Relative path -> (content, mtime) for every file below root."""
    result = {}
    for dirpath, _, filenames in os.walk(root):
        for name in filenames:
            path = os.path.join(dirpath, name)
            with open(path, "rb") as f:
                result[os.path.relpath(path, root)] = (f.read(), os.stat(path).st_mtime_ns)
    return result


def temp_files(root):
    found = []
    for dirpath, _, filenames in os.walk(root):
        found.extend(os.path.join(dirpath, n) for n in filenames if n.startswith(TEMP_PREFIX))
    return found


class TestHelpers:

    @pytest.mark.parametrize("path,ext", [
        ("/a/b.jpg", ".jpg"),
        ("/a/b.tar.gz", ".gz"),
        ("/a/README", ""),
        ("/a/b.", ""),
        ("/a.d/file", ""),
        ("/a/.bashrc", ".bashrc"),
    ])
    def test_file_extension(self, path, ext):
        assert file_extension(path) == ext

    def test_shard_dir_uses_first_two_bytes(self):
        digest = bytes([0xab, 0x0c]) + b"\x00" * 30
        assert shard_dir("/out", digest) == os.path.join("/out", "ab", "0c")


class TestMaterialize:

    @pytest.fixture
    def sources(self, tmp_path):
        src = tmp_path / "src"
        src.mkdir()
        (src / "b.png").write_bytes(b"picture")
        (src / "a.jpg").write_bytes(b"picture")
        (src / "notes").write_bytes(b"plain notes")
        (src / "a.jpg.json").write_text('{"photoTakenTime": {"timestamp": "0"}}')
        return src

    @pytest.fixture
    def indexed(self, store, sources):
        fill_index(store, "photos", {
            sha256(b"picture"): make_entry(
                str(sources / "b.png"), str(sources / "a.jpg"),
                attachments={".json": str(sources / "a.jpg.json")},
                timestamp=datetime(2012, 3, 4, 5, 6, 7, tzinfo=timezone.utc)),
            sha256(b"plain notes"): make_entry(str(sources / "notes")),
        })
        return store

    def test_layout_and_representative_extension(self, indexed, tmp_path):
        out = tmp_path / "out"
        stats = materialize(indexed, "photos", out)

        picture = expected_path(out, sha256(b"picture"), ".jpg")
        notes = expected_path(out, sha256(b"plain notes"))
        assert open(picture, "rb").read() == b"picture"
        assert open(notes, "rb").read() == b"plain notes"
        assert stats.written == 2
        assert stats.skipped == 0

    def test_attachment_copied_next_to_content(self, indexed, sources, tmp_path):
        out = tmp_path / "out"
        stats = materialize(indexed, "photos", out)

        sidecar = expected_path(out, sha256(b"picture"), ".json")
        assert open(sidecar).read() == (sources / "a.jpg.json").read_text()
        assert stats.attachments == 1

    def test_modification_time_matches_entry(self, indexed, tmp_path):
        out = tmp_path / "out"
        materialize(indexed, "photos", out)
        picture = expected_path(out, sha256(b"picture"), ".jpg")
        expected = datetime(2012, 3, 4, 5, 6, 7, tzinfo=timezone.utc).timestamp()
        assert os.stat(picture).st_mtime == expected

    def test_file_mode(self, indexed, tmp_path):
        out = tmp_path / "out"
        materialize(indexed, "photos", out)
        picture = expected_path(out, sha256(b"picture"), ".jpg")
        assert os.stat(picture).st_mode & 0o777 == 0o644

    def test_rerun_skips_existing_files(self, indexed, tmp_path):
        out = tmp_path / "out"
        materialize(indexed, "photos", out)
        before = snapshot(out)
        stats = materialize(indexed, "photos", out)
        assert stats.written == 0
        assert stats.skipped == 2
        assert snapshot(out) == before

    def test_existing_destination_is_not_overwritten(self, indexed, tmp_path):
        out = tmp_path / "out"
        picture = expected_path(out, sha256(b"picture"), ".jpg")
        os.makedirs(os.path.dirname(picture))
        with open(picture, "wb") as f:
            f.write(b"already here")

        materialize(indexed, "photos", out)
        assert open(picture, "rb").read() == b"already here"

    def test_changed_source_raises_stale_index(self, indexed, sources, tmp_path):
        out = tmp_path / "out"
        (sources / "a.jpg").write_bytes(b"modified after indexing")

        with pytest.raises(StaleIndexError) as exc_info:
            materialize(indexed, "photos", out)

        assert exc_info.value.expected == sha256(b"picture").hex()
        assert not os.path.exists(expected_path(out, sha256(b"picture"), ".jpg"))
        assert temp_files(out) == []

    def test_missing_source_raises(self, indexed, sources, tmp_path):
        out = tmp_path / "out"
        (sources / "notes").unlink()
        with pytest.raises(MaterializeError):
            materialize(indexed, "photos", out)
        assert temp_files(out) == []

    def test_progress_callback(self, indexed, tmp_path):
        calls = []
        with indexed.transaction(TxMode.READ) as tx:
            MaterializerImpl().materialize(
                tx.namespace("photos"), str(tmp_path / "out"),
                progress_callback=lambda stage, current, total: calls.append((stage, current, total)))
        assert calls == [("materializing", 1, 2), ("materializing", 2, 2)]


    def test_attachment_never_replaces_content(self, store, tmp_path):
        """A sidecar whose extension equals the content extension is not copied."""
        src = tmp_path / "src"
        src.mkdir()
        (src / "album.json").write_bytes(b"album content")
        (src / "album.json.json").write_bytes(b"sidecar")
        digest = sha256(b"album content")
        fill_index(store, "albums", {
            digest: make_entry(str(src / "album.json"), attachments={".json": str(src / "album.json.json")}),
        })

        out = tmp_path / "out"
        stats = materialize(store, "albums", out)
        assert open(expected_path(out, digest, ".json"), "rb").read() == b"album content"
        assert stats.attachments == 0


class TestCopyAtomic:

    def test_copies_content(self, tmp_path):
        src = tmp_path / "src.bin"
        src.write_bytes(os.urandom(300 * 1024))
        dst = tmp_path / "dst.bin"
        copy_atomic(str(src), str(dst))
        assert dst.read_bytes() == src.read_bytes()

    def test_missing_source_leaves_nothing(self, tmp_path):
        with pytest.raises(MaterializeError):
            copy_atomic(str(tmp_path / "missing"), str(tmp_path / "dst"))
        assert os.listdir(tmp_path) == []
