from pathlib import Path

from epaper_core.editions import page_images
from epaper_core.editions.page_images import (
    MISSING_DIRECTORY_NOTICE,
    MISSING_PDF_NOTICE,
    images_dir_for_pdf,
    order_page_files,
    page_image_file,
    page_number_from_name,
    resolve_page_images,
    sanitize_storage_path,
)

PDF_PATH = "/../uploads/editions/2024/05/01/abc/edition-2024-05-01.pdf"


def test_sanitize_strips_legacy_traversal_prefixes():
    assert sanitize_storage_path(PDF_PATH) == "uploads/editions/2024/05/01/abc/edition-2024-05-01.pdf"
    assert sanitize_storage_path("../../uploads/a.pdf") == "uploads/a.pdf"
    assert sanitize_storage_path("/uploads/a.pdf") == "uploads/a.pdf"
    assert sanitize_storage_path("") == ""


def test_images_dir_sits_next_to_the_pdf(public_root):
    images_dir = images_dir_for_pdf(public_root, PDF_PATH)
    assert images_dir == (public_root / "uploads/editions/2024/05/01/abc/images").resolve()


def test_images_dir_rejects_paths_leaving_the_public_root(public_root):
    assert images_dir_for_pdf(public_root, "uploads/../../../etc/edition.pdf") is None


def test_page_numbers_sort_numerically_not_lexically():
    files = [Path("page-10.jpg"), Path("page-2.jpg"), Path("page-1.jpg")]
    ordered = order_page_files(files)
    assert [f.name for f in ordered] == ["page-1.jpg", "page-2.jpg", "page-10.jpg"]


def test_malformed_names_sort_as_page_zero_and_warn(monkeypatch):
    warnings = []
    monkeypatch.setattr(page_images.logger, "warning", lambda msg, *args: warnings.append(msg % args))
    ordered = order_page_files([Path("page-3.jpg"), Path("page-cover.jpg"), Path("page-1.jpg")])
    assert [f.name for f in ordered] == ["page-cover.jpg", "page-1.jpg", "page-3.jpg"]
    assert page_number_from_name("page-cover.jpg") == 0
    assert any("page-cover.jpg" in w for w in warnings)


def test_resolve_returns_root_relative_urls_in_page_order(make_page_images, public_root):
    make_page_images(PDF_PATH, names=("page-2.jpg", "page-10.jpg", "page-1.jpg"))
    result = resolve_page_images(PDF_PATH, public_root)

    assert result.images == [
        "/uploads/editions/2024/05/01/abc/images/page-1.jpg",
        "/uploads/editions/2024/05/01/abc/images/page-2.jpg",
        "/uploads/editions/2024/05/01/abc/images/page-10.jpg",
    ]
    assert result.notice == ""
    assert len(result) == 3


def test_resolve_ignores_other_extensions_and_files(make_page_images, public_root):
    images_dir = make_page_images(PDF_PATH, names=("page-1.jpg",))
    (images_dir / "page-2.png").write_bytes(b"png")
    (images_dir / "og-image.jpg").write_bytes(b"jpg")

    assert [Path(u).name for u in resolve_page_images(PDF_PATH, public_root).images] == ["page-1.jpg"]
    both = resolve_page_images(PDF_PATH, public_root, extensions=("jpg", "png")).images
    assert [Path(u).name for u in both] == ["page-1.jpg", "page-2.png"]


def test_missing_directory_is_a_notice_not_an_error(public_root):
    result = resolve_page_images("/../uploads/editions/missing/edition.pdf", public_root)
    assert result.is_empty
    assert result.directory_missing
    assert result.notice == MISSING_DIRECTORY_NOTICE


def test_empty_pdf_path_yields_empty_set(public_root):
    result = resolve_page_images("", public_root)
    assert result.images == []
    assert result.notice == MISSING_PDF_NOTICE


def test_page_image_file_maps_urls_back_inside_the_root(make_page_images, public_root):
    make_page_images(PDF_PATH, names=("page-1.jpg",))
    url = resolve_page_images(PDF_PATH, public_root).images[0]

    assert page_image_file(public_root, url) == (public_root / url.lstrip("/")).resolve()
    assert page_image_file(public_root, "/../../etc/passwd") is None
    assert page_image_file(public_root, "/uploads/nope.jpg") is None
