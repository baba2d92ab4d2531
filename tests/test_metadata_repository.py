"""
Tests for JSON-file attachment metadata storage.
"""

from pathlib import Path

from app.repositories.metadata_repository import MetadataRepository


class TestGetAndUpdate:

    def test_unknown_attachment_is_none(self, repository):
        assert repository.get(7) is None
        assert repository.exists(7) is False

    def test_update_then_get(self, repository):
        metadata = {"file": "a.jpg", "width": 10, "height": 20, "sizes": {}}

        assert repository.update(7, metadata) is True
        assert repository.get(7) == metadata
        assert repository.exists(7) is True

    def test_update_replaces_previous_metadata(self, repository):
        repository.update(7, {"file": "a.jpg", "sizes": {}})
        repository.update(7, {"file": "b.jpg", "sizes": {"medium": {"file": "b-300x200.jpg"}}})

        assert repository.get(7)["file"] == "b.jpg"
        assert "medium" in repository.get(7)["sizes"]

    def test_update_leaves_no_temporary_files(self, repository):
        repository.update(7, {"file": "a.jpg"})

        leftovers = [p.name for p in repository.base_path.iterdir() if p.suffix == ".tmp"]
        assert leftovers == []

    def test_non_object_json_is_unknown(self, repository):
        (repository.base_path / "7.json").write_text("[1, 2, 3]", encoding="utf-8")
        assert repository.get(7) is None

    def test_corrupt_json_is_unknown(self, repository):
        (repository.base_path / "7.json").write_text("{not json", encoding="utf-8")
        assert repository.get(7) is None


class TestCreate:

    def test_ids_are_allocated_sequentially(self, repository):
        first = repository.create("2024/05/a.jpg", 1200, 800)
        second = repository.create("2024/05/b.jpg", 640, 480)

        assert (first, second) == (1, 2)
        assert repository.get(second) == {"file": "2024/05/b.jpg", "width": 640, "height": 480, "sizes": {}}

    def test_next_id_follows_highest_existing(self, repository):
        repository.update(41, {"file": "x.jpg"})
        assert repository.create("y.jpg", 1, 1) == 42

    def test_all_ids_ignores_lock_and_other_files(self, repository):
        repository.update(3, {"file": "x.jpg"})
        repository.update(12, {"file": "y.jpg"})
        (repository.base_path / "notes.json").write_text("{}", encoding="utf-8")

        assert repository.all_ids() == [3, 12]


class TestPathResolution:

    def test_attached_file_path_and_url(self, repository, settings):
        repository.update(7, {"file": "2024/05/image.jpg"})

        assert repository.attached_file_path(7) == settings.uploads_dir / "2024/05/image.jpg"
        assert repository.attachment_url(7) == "/static/uploads/2024/05/image.jpg"

    def test_unknown_attachment_has_no_path_or_url(self, repository):
        assert repository.attached_file_path(7) is None
        assert repository.attachment_url(7) is None

    def test_absolute_uploads_url(self, tmp_path):
        repository = MetadataRepository(
            tmp_path / "metadata",
            uploads_dir=tmp_path / "uploads",
            uploads_url="https://cdn.example.com/uploads/",
        )
        repository.update(1, {"file": "/photo.jpg"})

        assert repository.attachment_url(1) == "https://cdn.example.com/uploads/photo.jpg"
        assert isinstance(repository.attached_file_path(1), Path)

    def test_resize_lock_is_per_attachment(self, repository):
        assert repository.resize_lock(1).lock_file != repository.resize_lock(2).lock_file
