import json
import re
from datetime import date
from io import BytesIO

import pytest
from PIL import Image
from starlette.requests import Request

from epaper_ui.routes import api

PDF_PATH = "/../uploads/editions/2024/05/01/abc/edition-2024-05-01.pdf"
CROP = json.dumps({"x": 10, "y": 10, "width": 40, "height": 50})


def _request():
    return Request(
        {
            "type": "http",
            "method": "POST",
            "scheme": "http",
            "server": ("testserver", 80),
            "path": "/api/crop/compose",
            "headers": [],
            "query_string": b"",
        }
    )


@pytest.fixture
def edition_with_pages(edition_store, make_page_images):
    eid = edition_store.create_edition("Morning Herald", date(2024, 5, 1), pdf_path=PDF_PATH)
    make_page_images(PDF_PATH)
    return eid


def test_download_returns_branded_png(edition_with_pages):
    response = api.compose_crop(_request(), edition_id=str(edition_with_pages), page="2", crop_data=CROP)

    assert response.status_code == 200
    assert response.media_type == "image/png"
    image = Image.open(BytesIO(response.body))
    assert image.size == (40, 50 + 200 + 150)
    disposition = response.headers["content-disposition"]
    assert re.search(r'filename="Morning-Herald-20240501-2-\d{4}\.png"', disposition)


def test_share_uses_fixed_name(edition_with_pages):
    response = api.compose_crop(
        _request(), edition_id=str(edition_with_pages), page="1", crop_data=CROP, purpose="share"
    )

    assert 'filename="cropped-epaper-page-1.png"' in response.headers["content-disposition"]


def test_region_is_clamped_to_page(edition_with_pages):
    crop = json.dumps({"x": 50, "y": 80, "width": 500, "height": 500})
    response = api.compose_crop(_request(), edition_id=str(edition_with_pages), page="1", crop_data=crop)

    assert Image.open(BytesIO(response.body)).size == (10, 10 + 350)


@pytest.mark.parametrize(
    ("kwargs", "status"),
    [
        ({"crop_data": "not json"}, 400),
        ({"crop_data": json.dumps({"x": 0, "y": 0, "width": 0, "height": 5})}, 400),
        ({"page": "two"}, 400),
        ({"purpose": "print"}, 400),
        ({"page": "3"}, 404),
        ({"edition_id": "999"}, 404),
    ],
)
def test_invalid_requests(edition_with_pages, kwargs, status):
    params = {"edition_id": str(edition_with_pages), "page": "1", "crop_data": CROP, **kwargs}

    response = api.compose_crop(_request(), **params)

    assert response.status_code == status
    assert "error" in json.loads(response.body)


def test_unreadable_page_image(edition_with_pages, public_root):
    page = public_root / "uploads/editions/2024/05/01/abc/images/page-1.jpg"
    page.write_bytes(b"broken")

    response = api.compose_crop(_request(), edition_id=str(edition_with_pages), page="1", crop_data=CROP)

    assert response.status_code == 422


def test_database_error_is_reported(monkeypatch):
    def _broken(*_args, **_kwargs):
        raise api.EditionStoreError("db down")

    monkeypatch.setattr(api.EditionStore, "find_published_edition_by_id", _broken)

    response = api.compose_crop(_request(), edition_id="1", page="1", crop_data=CROP)

    assert response.status_code == 503
