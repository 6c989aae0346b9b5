"""Security tests for the uploads route and the app wiring.

Path traversal, content types and CORS configuration.
"""

from epaper_core.config_manager import get_config_manager
from epaper_ui.routes.api import content_disposition, serve_upload_file


def test_path_traversal_blocked():
    """Uploads endpoint rejects path traversal attempts."""
    response = serve_upload_file("../../../etc/passwd")
    assert response.status_code in (403, 404)
    body = (response.body or b"").decode("utf-8", errors="ignore")
    assert "Forbidden" in body or "Not Found" in body

    response = serve_upload_file("..%2F..%2F..%2Fetc%2Fpasswd")
    assert response.status_code in (403, 404)

    response = serve_upload_file("../../config.json")
    assert response.status_code in (403, 404)


def test_uploads_404_for_nonexistent_file():
    response = serve_upload_file("editions/missing.jpg")
    assert response.status_code == 404
    assert "Not Found" in (response.body or b"").decode("utf-8", errors="ignore")


def test_uploads_serve_page_images_with_content_type(public_root):
    target = public_root / "uploads" / "editions" / "images" / "page-1.jpg"
    target.parent.mkdir(parents=True)
    target.write_bytes(b"\xff\xd8\xff")

    response = serve_upload_file("editions/images/page-1.jpg")

    assert response.status_code == 200
    assert response.media_type == "image/jpeg"


def test_symlinks_cannot_escape_uploads(public_root, tmp_path):
    uploads = public_root / "uploads"
    uploads.mkdir(parents=True, exist_ok=True)
    target = tmp_path / "secret.txt"
    target.write_text("secret content")
    (uploads / "evil_link").symlink_to(target)

    assert serve_upload_file("evil_link").status_code == 403


def test_content_disposition_keeps_unicode_name():
    header = content_disposition("Édition-20240501-1-1234.png")
    assert 'filename="dition-20240501-1-1234.png"' in header
    assert "filename*=UTF-8''%C3%89dition-20240501-1-1234.png" in header


def test_cors_configuration_from_config():
    allowed_origins = get_config_manager().data.get("security", {}).get("allowed_origins", ["*"])

    assert isinstance(allowed_origins, list)
    assert len(allowed_origins) > 0
