"""
Integration tests for the HTTP API.
Runs the full FastAPI app with services wired to tmp_path storage and real images.
"""

import pytest
from fastapi.testclient import TestClient

from app.api.deps import build_thumbnail_ensurer, get_image_service, get_size_registry
from app.services.image_service import ImageService

from conftest import write_image


@pytest.fixture()
def client(settings, repository, registry):
    """Return a TestClient whose services use the per-test repository."""
    from app.main import app

    service = ImageService(repository, build_thumbnail_ensurer(settings, repository, registry))
    app.dependency_overrides[get_image_service] = lambda: service
    app.dependency_overrides[get_size_registry] = lambda: registry
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestSizes:

    def test_lists_registered_sizes(self, client):
        response = client.get("/api/sizes")

        assert response.status_code == 200
        sizes = {s["name"]: s for s in response.json()["sizes"]}
        assert list(sizes) == ["thumbnail", "medium", "large"]
        assert sizes["thumbnail"] == {"name": "thumbnail", "width": 150, "height": 150, "crop": True}


class TestRegisterAttachment:

    def test_registers_existing_upload(self, client, settings):
        write_image(settings.uploads_dir / "2024/05/photo.jpg", 1200, 800)

        response = client.post("/api/attachments", json={"file": "2024/05/photo.jpg"})

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == 1
        assert data["url"] == "/static/uploads/2024/05/photo.jpg"
        assert (data["width"], data["height"]) == (1200, 800)
        assert data["sizes"] == {}

    def test_missing_file_is_rejected(self, client):
        response = client.post("/api/attachments", json={"file": "2024/05/nope.jpg"})

        assert response.status_code == 400
        assert response.json()["status_code"] == 400
        assert "does not exist" in response.json()["error"]

    def test_path_outside_uploads_is_rejected(self, client, settings):
        write_image(settings.uploads_dir.parent / "secret.jpg", 10, 10)

        response = client.post("/api/attachments", json={"file": "../secret.jpg"})

        assert response.status_code == 400
        assert "outside the uploads directory" in response.json()["error"]

    def test_non_image_is_unprocessable(self, client, settings):
        path = settings.uploads_dir / "notes.jpg"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"plain text")

        response = client.post("/api/attachments", json={"file": "notes.jpg"})

        assert response.status_code == 422
        assert "Image processing failed" in response.json()["error"]

    def test_empty_file_fails_validation(self, client):
        assert client.post("/api/attachments", json={"file": ""}).status_code == 422


class TestGetAttachment:

    def test_unknown_attachment_is_404(self, client):
        response = client.get("/api/attachments/999")

        assert response.status_code == 404
        assert response.json() == {"error": "Attachment not found: 999", "status_code": 404}

    def test_includes_generated_sizes(self, client, attachment_id):
        client.get(f"/api/attachments/{attachment_id}/image", params={"size": "medium"})

        response = client.get(f"/api/attachments/{attachment_id}")

        assert response.status_code == 200
        medium = response.json()["sizes"]["medium"]
        assert medium["file"] == "image-300x200.jpg"
        assert medium["mime-type"] == "image/jpeg"
        assert (medium["width_query"], medium["height_query"]) == (300, 300)


class TestGetImageSrc:

    def test_missing_named_size_is_generated(self, client, attachment_id, original):
        response = client.get(f"/api/attachments/{attachment_id}/image", params={"size": "medium"})

        assert response.status_code == 200
        assert response.json() == {
            "url": "/static/uploads/2024/05/image-300x200.jpg",
            "width": 300,
            "height": 200,
            "is_intermediate": True,
        }
        assert (original.parent / "image-300x200.jpg").exists()

    def test_generated_size_is_served_from_metadata_next_time(self, client, attachment_id, original):
        first = client.get(f"/api/attachments/{attachment_id}/image", params={"size": "thumbnail"}).json()
        (original.parent / "image-150x150.jpg").unlink()

        second = client.get(f"/api/attachments/{attachment_id}/image", params={"size": "thumbnail"}).json()

        # Not regenerated: the recorded entry is served as-is
        assert second == first
        assert not (original.parent / "image-150x150.jpg").exists()

    def test_unknown_size_falls_back_to_original(self, client, attachment_id):
        response = client.get(f"/api/attachments/{attachment_id}/image", params={"size": "poster"})

        assert response.json() == {
            "url": "/static/uploads/2024/05/image.jpg",
            "width": 1200,
            "height": 800,
            "is_intermediate": False,
        }

    def test_explicit_size_is_cropped(self, client, attachment_id, original):
        response = client.get(
            f"/api/attachments/{attachment_id}/image", params={"width": 150, "height": 100}
        )

        assert response.json() == {
            "url": "/static/uploads/2024/05/image-150x100.jpg",
            "width": 150,
            "height": 100,
            "is_intermediate": True,
        }
        assert (original.parent / "image-150x100.jpg").exists()

    def test_explicit_size_larger_than_original_falls_back(self, client, attachment_id):
        response = client.get(
            f"/api/attachments/{attachment_id}/image", params={"width": 2000, "height": 2000}
        )

        assert response.json()["url"] == "/static/uploads/2024/05/image.jpg"
        assert response.json()["is_intermediate"] is False

    def test_unknown_attachment_is_404(self, client):
        response = client.get("/api/attachments/999/image", params={"size": "medium"})
        assert response.status_code == 404

    @pytest.mark.parametrize("params", [
        {},
        {"width": 150},
        {"size": "medium", "width": 150, "height": 150},
    ])
    def test_size_arguments_are_validated(self, client, attachment_id, params):
        response = client.get(f"/api/attachments/{attachment_id}/image", params=params)

        assert response.status_code == 400
        assert response.json()["error"].startswith("Validation error")

    def test_request_id_is_echoed(self, client, attachment_id):
        response = client.get(
            f"/api/attachments/{attachment_id}/image",
            params={"size": "medium"},
            headers={"X-Request-ID": "req_test123"},
        )

        assert response.headers["X-Request-ID"] == "req_test123"


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
