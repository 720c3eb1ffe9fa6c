"""Tests for local peer storage and the upload index."""

import json

import pytest

from peer.exceptions import StorageError
from peer.file_index import FileIndex
from peer.storage import LocalFileStore, safe_filename


class TestSafeFilename:
    @pytest.mark.parametrize('name', ['notes.txt', 'my report.pdf', '.hidden'])
    def test_accepts_plain_names(self, name):
        assert safe_filename(name) == name

    @pytest.mark.parametrize('name', ['', '.', '..', '../x', 'a/b', 'a\\b', 'a\x00b', ' ', 'notes.txt ', ' notes.txt'])
    def test_rejects_paths(self, name):
        with pytest.raises(StorageError):
            safe_filename(name)


class TestUploads:
    def test_store_upload_uses_unique_local_name(self, store, sample_file):
        first = store.store_upload(sample_file)
        second = store.store_upload(sample_file)

        assert first.local_name != second.local_name
        assert first.local_name.endswith('_notes.txt')
        assert first.filename == 'notes.txt'
        assert (store.uploads_dir / first.local_name).read_text() == 'Sample content for testing'
        assert first.size == len('Sample content for testing')

    def test_store_missing_file(self, store, tmp_path):
        with pytest.raises(StorageError):
            store.store_upload(tmp_path / 'missing.txt')

    def test_store_directory(self, store, tmp_path):
        with pytest.raises(StorageError):
            store.store_upload(tmp_path)

    def test_store_rejects_padded_name(self, store, tmp_path):
        padded = tmp_path / 'notes.txt '
        padded.write_text('x')

        with pytest.raises(StorageError):
            store.store_upload(padded)
        assert store.index.count() == 0

    def test_remove_upload(self, store, sample_file):
        entry = store.store_upload(sample_file)

        assert store.remove_upload(entry.local_name) is True
        assert not (store.uploads_dir / entry.local_name).exists()
        assert store.index.get_entry(entry.local_name) is None
        assert store.remove_upload(entry.local_name) is False


class TestServing:
    def test_resolve_by_catalog_name(self, store, sample_file):
        entry = store.store_upload(sample_file)

        path = store.resolve_served_path('notes.txt')
        assert path is not None
        assert path.name == entry.local_name

    def test_resolve_by_local_name(self, store, sample_file):
        entry = store.store_upload(sample_file)

        assert store.resolve_served_path(entry.local_name).name == entry.local_name

    def test_newest_upload_wins(self, store, tmp_path):
        source = tmp_path / 'data.txt'
        source.write_text('old')
        store.store_upload(source)
        source.write_text('new')
        newest = store.store_upload(source)

        assert store.resolve_served_path('data.txt').name == newest.local_name

    def test_unindexed_file_not_served(self, store):
        (store.uploads_dir / 'stray.txt').write_text('x')

        assert store.resolve_served_path('stray.txt') is None

    def test_traversal_not_served(self, store):
        assert store.resolve_served_path('../index.json') is None

    def test_read_streaming(self, store, tmp_path):
        path = tmp_path / 'big.bin'
        path.write_bytes(b'x' * 10)

        assert list(store.read_streaming(path, piece_size=4)) == [b'xxxx', b'xxxx', b'xx']


class TestDownloads:
    def test_finalize_moves_partial(self, store):
        partial = store.create_partial('notes.txt')
        partial.write_text('done')

        target = store.finalize_download(partial, 'notes.txt')

        assert target == store.downloads_dir / 'notes.txt'
        assert target.read_text() == 'done'
        assert not partial.exists()

    def test_each_download_gets_its_own_partial(self, store):
        first = store.create_partial('notes.txt')
        second = store.create_partial('notes.txt')

        assert first != second
        assert first.parent == store.downloads_dir
        assert first.name.startswith('notes.txt.')
        assert first.name.endswith('.part')

    def test_discard_partial(self, store):
        partial = store.create_partial('notes.txt')
        partial.write_text('half')

        store.discard_partial(partial)
        store.discard_partial(partial)

        assert not partial.exists()

    def test_partial_rejects_traversal(self, store):
        with pytest.raises(StorageError):
            store.create_partial('../escape.txt')

    def test_initialize_removes_leftover_partials(self, tmp_path):
        local_store = LocalFileStore(tmp_path / 'storage')
        local_store.initialize()
        local_store.create_partial('notes.txt').write_text('interrupted')

        local_store.initialize()

        assert list(local_store.downloads_dir.iterdir()) == []


class TestFileIndex:
    def test_persistence_round_trip(self, tmp_path):
        index = FileIndex(tmp_path / 'index.json')
        index.add_entry('abc_notes.txt', 'notes.txt', 12)
        index.set_file_id('abc_notes.txt', 42)
        index.save_to_disk()

        reloaded = FileIndex(tmp_path / 'index.json')
        assert reloaded.load_from_disk() is True
        entry = reloaded.get_entry('abc_notes.txt')
        assert entry.file_id == 42
        assert entry.filename == 'notes.txt'

    def test_load_missing_file(self, tmp_path):
        assert FileIndex(tmp_path / 'none.json').load_from_disk() is False

    def test_load_corrupt_file(self, tmp_path):
        path = tmp_path / 'index.json'
        path.write_text('{not json')

        with pytest.raises(json.JSONDecodeError):
            FileIndex(path).load_from_disk()

    def test_prune_missing(self, tmp_path):
        index = FileIndex(tmp_path / 'index.json')
        (tmp_path / 'present.txt').write_text('x')
        index.add_entry('present.txt', 'present.txt', 1)
        index.add_entry('gone.txt', 'gone.txt', 1)

        assert index.prune_missing(tmp_path) == 1
        assert [e.local_name for e in index.entries()] == ['present.txt']

    def test_initialize_reloads_index(self, tmp_path, sample_file):
        first = LocalFileStore(tmp_path / 'storage')
        first.initialize()
        entry = first.store_upload(sample_file)
        first.save_index()

        second = LocalFileStore(tmp_path / 'storage')
        second.initialize()
        assert second.index.get_entry(entry.local_name) is not None

    def test_initialize_corrupt_index(self, tmp_path):
        root = tmp_path / 'storage'
        root.mkdir()
        (root / 'index.json').write_text('garbage')

        with pytest.raises(StorageError):
            LocalFileStore(root).initialize()
