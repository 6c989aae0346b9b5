import json
import re
from datetime import date

from starlette.requests import Request

from epaper_core.compose.share import URL_SHARE_TEXT, share_policy
from epaper_core.config_manager import get_config_manager
from epaper_ui.components.viewer import VIEWER_SCRIPT
from epaper_ui.routes import viewer_handlers

PDF_PATH = "/../uploads/editions/2024/05/01/abc/edition-2024-05-01.pdf"
_BOUNDARY_RE = re.compile(r'<script[^>]*id="epaper-viewer-data"[^>]*>(.*?)</script>', re.DOTALL)


def _request(path="/", query=b""):
    return Request(
        {
            "type": "http",
            "method": "GET",
            "scheme": "http",
            "server": ("testserver", 80),
            "path": path,
            "headers": [],
            "query_string": query,
        }
    )


def _boundary(response):
    match = _BOUNDARY_RE.search(response.body.decode("utf-8"))
    assert match, "viewer data block missing"
    return json.loads(match.group(1).replace("<\\/", "</"))


def test_single_edition_for_date_renders_viewer(edition_store, make_page_images):
    eid = edition_store.create_edition("Morning Herald", date(2024, 5, 1), pdf_path=PDF_PATH)
    make_page_images(PDF_PATH)

    response = viewer_handlers.viewer_page(_request(), date="2024-05-01")

    assert response.status_code == 200
    data = _boundary(response)
    assert data["selectedDate"] == "2024-05-01"
    assert data["rawEditionTitle"] == "Morning Herald"
    assert data["editionId"] == eid
    assert data["editionImages"] == [
        "/uploads/editions/2024/05/01/abc/images/page-1.jpg",
        "/uploads/editions/2024/05/01/abc/images/page-2.jpg",
    ]
    assert data["siteUrl"] == "http://testserver"
    assert data["viewer"]["maxZoom"] == 4.0
    assert data["sharePolicy"] == share_policy()
    assert data["shareTemplates"]["url"]["text"] == URL_SHARE_TEXT

    html = response.body.decode("utf-8")
    assert "Morning Herald (for 01-05-2024)" in html
    assert 'id="pageImage_1"' in html
    assert 'href="/uploads/editions/2024/05/01/abc/edition-2024-05-01.pdf"' in html


def test_viewer_sets_security_headers(edition_store):
    response = viewer_handlers.viewer_page(_request())

    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["Cache-Control"].startswith("no-store")


def test_several_editions_redirect_to_listing(edition_store):
    edition_store.create_edition("North", date(2024, 5, 1))
    edition_store.create_edition("South", date(2024, 5, 1))

    response = viewer_handlers.viewer_page(_request(), date="2024-05-01")

    assert response.status_code == 302
    assert response.headers["location"] == "/editions/date-editions.php?date=2024-05-01"


def test_edition_id_wins_over_date(edition_store):
    edition_store.create_edition("North", date(2024, 5, 1))
    edition_store.create_edition("South", date(2024, 5, 1))
    other = edition_store.create_edition("Evening", date(2024, 4, 2))

    response = viewer_handlers.viewer_page(_request(), date="2024-05-01", edition_id=str(other))

    assert response.status_code == 200
    assert _boundary(response)["rawEditionTitle"] == "Evening"


def test_empty_database_shows_empty_state(edition_store):
    response = viewer_handlers.viewer_page(_request())

    html = response.body.decode("utf-8")
    data = _boundary(response)
    assert data["editionImages"] == []
    assert data["editionId"] is None
    assert data["rawEditionTitle"] == "No Edition"
    assert 'id="emptyState"' in html
    assert "No editions available in the database." in html


def test_missing_images_are_reported_in_notification(edition_store):
    edition_store.create_edition("Imageless", date(2024, 5, 1), pdf_path=PDF_PATH)

    response = viewer_handlers.viewer_page(_request(), date="2024-05-01")

    assert "Image directory for this edition not found." in response.body.decode("utf-8")
    assert _boundary(response)["editionImages"] == []


def test_configured_site_url_is_used_as_base(edition_store):
    get_config_manager().set_setting("site.site_url", "https://news.example.com/")
    edition_store.create_edition("Any", date(2024, 5, 1))

    response = viewer_handlers.viewer_page(_request(), date="2024-05-01")

    assert _boundary(response)["siteUrl"] == "https://news.example.com"
    assert 'content="https://news.example.com/?date=2024-05-01"' in response.body.decode("utf-8")


def test_request_identity_defaults_to_anonymous():
    assert not viewer_handlers.request_identity(_request()).logged_in


def test_script_takes_share_decisions_from_boundary():
    assert "data.sharePolicy" in VIEWER_SCRIPT
    assert "POLICY[kind].outcomes[result]" in VIEWER_SCRIPT
    assert "'image_failed'" not in VIEWER_SCRIPT
    assert "'url_unavailable'" not in VIEWER_SCRIPT


def test_image_onload_keeps_the_page_it_was_set_for():
    assert "loaded(state.index" not in VIEWER_SCRIPT
    assert "img.onload = () => loaded(pending, img)" in VIEWER_SCRIPT
