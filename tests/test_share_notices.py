import pytest

from epaper_core.compose.share import (
    ShareKind,
    ShareResult,
    clipboard_outcome,
    share_catalog,
    share_outcome,
    share_policy,
    share_templates,
)
from epaper_core.viewer.notices import Tone


def test_successful_image_share_reports_success():
    outcome = share_outcome(ShareKind.IMAGE, ShareResult.SHARED)

    assert [n.message for n in outcome.notices] == ["Cropped image shared successfully!"]
    assert outcome.notices[0].tone == Tone.SUCCESS
    assert not outcome.use_clipboard


def test_cancel_is_reported_without_clipboard():
    outcome = share_outcome(ShareKind.URL, ShareResult.CANCELED)

    assert outcome.notices[0].message == "Page URL share canceled."
    assert outcome.notices[0].tone == Tone.ERROR
    assert not outcome.use_clipboard


@pytest.mark.parametrize("result", [ShareResult.FAILED, ShareResult.UNAVAILABLE])
@pytest.mark.parametrize("kind", [ShareKind.IMAGE, ShareKind.URL])
def test_failures_fall_back_to_clipboard(kind, result):
    assert share_outcome(kind, result).use_clipboard


def test_image_preparation_failure_stops_there():
    outcome = share_outcome(ShareKind.IMAGE, ShareResult.PREPARE_FAILED)

    assert outcome.notices[0].message == "Error preparing cropped image for sharing."
    assert not outcome.use_clipboard


def test_clipboard_notices_last_longer_for_images():
    copied = clipboard_outcome(ShareKind.IMAGE, True)
    failed = clipboard_outcome(ShareKind.IMAGE, False)

    assert copied.tone == Tone.SUCCESS and copied.duration_ms == 5000
    assert failed.tone == Tone.ERROR and failed.duration_ms == 5000
    assert clipboard_outcome(ShareKind.URL, True).message == "Page URL copied to clipboard!"


def test_catalog_is_json_ready():
    catalog = share_catalog()

    assert catalog["downloaded"] == {
        "message": "Cropped image downloaded successfully!",
        "tone": "success",
        "duration_ms": 3000,
    }
    assert catalog["url_copy_failed"]["tone"] == "error"


def test_policy_table_matches_classification():
    policy = share_policy()

    for kind in ShareKind:
        for result in ShareResult:
            step = policy[kind.value]["outcomes"][result.value]
            outcome = share_outcome(kind, result)
            assert step["use_clipboard"] == outcome.use_clipboard
            assert [share_catalog()[key]["message"] for key in step["notices"]] == [n.message for n in outcome.notices]


def test_policy_only_names_catalog_entries():
    catalog = share_catalog()
    policy = share_policy()

    for entry in policy.values():
        assert set(entry["clipboard"].values()) <= set(catalog)
        for step in entry["outcomes"].values():
            assert set(step["notices"]) <= set(catalog)


def test_url_prepare_failure_goes_to_clipboard():
    assert share_policy()["url"]["outcomes"]["prepare_failed"] == {"notices": ["url_failed"], "use_clipboard": True}


def test_share_templates():
    templates = share_templates()

    assert templates["image"]["text"].format(page=4) == "Check out this cropped image from page 4 of the E-Paper!"
    assert templates["url"]["text"].format(title="Morning") == "Check out this E-Paper page: Morning"
