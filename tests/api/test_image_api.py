"""
API Integration Tests for Image Endpoints
"""

import io
import json

import pytest
from PIL import Image


def upload(data: bytes, name: str = "image.png", content_type: str = "image/png"):
    return (name, data, content_type)


def size_of(content: bytes):
    return Image.open(io.BytesIO(content)).size


class TestUploadAPI:
    """Integration tests for upload and storage endpoints"""

    def test_upload_file(self, client, gradient_png):
        response = client.post("/api/image/upload-file", files={"file": upload(gradient_png)})

        assert response.status_code == 200
        data = response.json()
        assert data["field_name"] == "file"
        assert data["original_name"] == "image.png"
        assert data["size"] == len(gradient_png)
        assert data["path"] is None

    def test_store_file(self, client, files_dir, gradient_png):
        response = client.post("/api/image/store-file", files={"file": upload(gradient_png)})

        assert response.status_code == 200
        data = response.json()
        assert data["filename"].endswith(".png")
        assert (files_dir / data["filename"]).exists()

    def test_store_files(self, client, files_dir, gradient_png, gradient_jpeg):
        response = client.post(
            "/api/image/store-files",
            files={
                "file1": upload(gradient_png),
                "file2": upload(gradient_jpeg, "photo.jpg", "image/jpeg"),
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"file1", "file2"}
        assert data["file2"][0]["filename"].endswith(".jpg")
        assert len(list(files_dir.iterdir())) == 2
        assert (files_dir / data["file1"][0]["filename"]).read_bytes() == gradient_png

    def test_store_files_single_field(self, client, files_dir):
        response = client.post(
            "/api/image/store-files",
            files={"file2": upload(b"%PDF-1.4", "doc.pdf", "application/pdf")},
        )

        assert response.status_code == 200
        assert set(response.json()) == {"file2"}
        assert len(list(files_dir.iterdir())) == 1

    def test_store_file_keeps_bytes(self, client, files_dir, gradient_image, save_image):
        """Stored files are written unchanged, EXIF orientation included"""
        exif = Image.Exif()
        exif[0x0112] = 6
        original = save_image(gradient_image, "JPEG", exif=exif.tobytes())

        response = client.post(
            "/api/image/store-file", files={"file": upload(original, "photo.jpg", "image/jpeg")}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["size"] == len(original)
        assert (files_dir / data["filename"]).read_bytes() == original

    def test_store_non_image(self, client, files_dir):
        content = b"plain text notes\n"
        response = client.post(
            "/api/image/store-file", files={"file": upload(content, "notes.txt", "text/plain")}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["filename"].endswith(".txt")
        assert data["content_type"] == "text/plain"
        assert (files_dir / data["filename"]).read_bytes() == content


class TestInformationAPI:
    """Integration tests for metadata and stats endpoints"""

    def test_metadata(self, client, gradient_png):
        response = client.post("/api/image/metadata", files={"file": upload(gradient_png)})

        assert response.status_code == 200
        data = response.json()
        assert data["format"] == "png"
        assert data["width"] == 120
        assert data["height"] == 80

    def test_stats(self, client, rgba_png):
        response = client.post("/api/image/stats", files={"file": upload(rgba_png)})

        assert response.status_code == 200
        data = response.json()
        assert len(data["channels"]) == 4
        assert data["is_opaque"] is False

    def test_metadata_invalid_image(self, client):
        response = client.post("/api/image/metadata", files={"file": upload(b"garbage")})

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Error getting image metadata"
        assert data["operation"] == "getting image metadata"


class TestTransformAPI:
    """Integration tests for transform endpoints"""

    def test_convert(self, client, gradient_png):
        response = client.post(
            "/api/image/convert",
            files={"file": upload(gradient_png)},
            data={"options": json.dumps({"format": "webp", "options": {"quality": 60}})},
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/webp"

    def test_convert_requires_options(self, client, gradient_png):
        response = client.post("/api/image/convert", files={"file": upload(gradient_png)})
        assert response.status_code == 422

    def test_resize(self, client, gradient_png):
        response = client.post(
            "/api/image/resize",
            files={"file": upload(gradient_png)},
            data={"options": json.dumps({"width": 60})},
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert size_of(response.content) == (60, 40)

    def test_resize_invalid_json(self, client, gradient_png):
        response = client.post(
            "/api/image/resize",
            files={"file": upload(gradient_png)},
            data={"options": "{not json"},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "Invalid options"

    def test_crop(self, client, gradient_png):
        response = client.post(
            "/api/image/crop",
            files={"file": upload(gradient_png)},
            data={"options": json.dumps({"left": 10, "top": 10, "width": 20, "height": 30})},
        )

        assert response.status_code == 200
        assert size_of(response.content) == (20, 30)

    def test_crop_out_of_bounds(self, client, gradient_png):
        response = client.post(
            "/api/image/crop",
            files={"file": upload(gradient_png)},
            data={"options": json.dumps({"left": 100, "top": 0, "width": 50, "height": 10})},
        )

        assert response.status_code == 500
        assert response.json()["error"] == "Error cropping image"

    def test_rotate(self, client, gradient_png):
        response = client.post(
            "/api/image/rotate",
            files={"file": upload(gradient_png)},
            data={"options": json.dumps({"angle": 270})},
        )

        assert response.status_code == 200
        assert size_of(response.content) == (80, 120)

    @pytest.mark.parametrize("endpoint", ["flip-vertical", "flip-horizontal"])
    def test_flips(self, client, gradient_png, endpoint):
        response = client.post(f"/api/image/{endpoint}", files={"file": upload(gradient_png)})

        assert response.status_code == 200
        assert size_of(response.content) == (120, 80)

    def test_effects(self, client, gradient_png):
        response = client.post(
            "/api/image/effects",
            files={"file": upload(gradient_png)},
            data={"options": json.dumps({"grayscale": True, "blur": 2})},
        )

        assert response.status_code == 200
        assert Image.open(io.BytesIO(response.content)).mode == "L"

    def test_effects_unknown_option(self, client, gradient_png):
        response = client.post(
            "/api/image/effects",
            files={"file": upload(gradient_png)},
            data={"options": json.dumps({"sharpen": 1})},
        )
        assert response.status_code == 422

    def test_trim(self, client, bordered_png):
        response = client.post("/api/image/trim", files={"file": upload(bordered_png)})

        assert response.status_code == 200
        assert size_of(response.content) == (50, 30)

    def test_flatten(self, client, rgba_png):
        response = client.post(
            "/api/image/flatten",
            files={"file": upload(rgba_png)},
            data={"options": json.dumps({"background": "#ffffff"})},
        )

        assert response.status_code == 200
        image = Image.open(io.BytesIO(response.content))
        assert image.mode == "RGB"
        assert image.getpixel((0, 0)) == (255, 255, 255)

    def test_compose(self, client, make_png):
        response = client.post(
            "/api/image/compose",
            files={"file1": upload(make_png(300, 200)), "file2": upload(make_png(80, 50))},
            data={"options": json.dumps({"blend": "screen"})},
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert size_of(response.content) == (80, 50)


class TestSystemAPI:
    """Integration tests for system endpoints"""

    def test_health(self, client):
        response = client.get("/api/system/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_status(self, client):
        response = client.get("/api/system/status")

        assert response.status_code == 200
        assert response.json()["engine"]["cache_enabled"] is False

    def test_config(self, client, files_dir):
        response = client.get("/api/system/config")

        assert response.status_code == 200
        assert response.json()["storage"]["files_dir"] == str(files_dir)

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_debug_toggle(self, client):
        enabled = client.post("/api/system/debug/true")
        disabled = client.post("/api/system/debug/false")

        assert enabled.status_code == 200
        assert enabled.json() == {"enabled": True, "log_level": "DEBUG"}
        assert disabled.json()["enabled"] is False
