import json
from datetime import date

import pymupdf as fitz
import pytest
from PIL import Image

from epaper_cli.cli import main

PDF_PATH = "/../uploads/editions/2024/05/01/abc/edition-2024-05-01.pdf"


def _json_out(capsys):
    out = capsys.readouterr().out
    return json.loads(out[out.index("{") :])


def _write_pdf(target, pages=2):
    target.parent.mkdir(parents=True, exist_ok=True)
    doc = fitz.open()
    for number in range(1, pages + 1):
        page = doc.new_page(width=200, height=300)
        page.insert_text((20, 50), f"Page {number}")
    doc.save(str(target))
    doc.close()


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 2
    assert "E-Paper operator tools" in capsys.readouterr().out


def test_resolve_prints_json(edition_store, capsys):
    eid = edition_store.create_edition("Morning Herald", date(2024, 5, 1))

    main(["--resolve", "--date", "2024-05-01"])

    payload = _json_out(capsys)
    assert payload["edition_id"] == eid
    assert payload["display_title"] == "Morning Herald (for 01-05-2024)"
    assert payload["redirect_to"] is None


def test_resolve_reports_redirect(edition_store, capsys):
    edition_store.create_edition("North", date(2024, 5, 1))
    edition_store.create_edition("South", date(2024, 5, 1))

    main(["--resolve", "--date", "2024-05-01"])

    assert _json_out(capsys)["redirect_to"] == "/editions/date-editions.php?date=2024-05-01"


def test_list_and_images(edition_store, make_page_images, capsys):
    eid = edition_store.create_edition("Morning Herald", date(2024, 5, 1), pdf_path=PDF_PATH)
    make_page_images(PDF_PATH, names=("page-10.jpg", "page-2.jpg"))

    main(["--list"])
    assert "Morning Herald" in capsys.readouterr().out

    main(["--images", str(eid)])
    assert [line for line in capsys.readouterr().out.splitlines() if line.startswith("/uploads")] == [
        "/uploads/editions/2024/05/01/abc/images/page-2.jpg",
        "/uploads/editions/2024/05/01/abc/images/page-10.jpg",
    ]


def test_images_for_unknown_edition_exits(edition_store):
    with pytest.raises(SystemExit) as exc:
        main(["--images", "42"])
    assert exc.value.code == 1


def test_sitemap_command(edition_store, capsys):
    edition_store.create_edition("Live", date(2024, 5, 1))

    main(["--sitemap", "https://x.test"])

    assert "https://x.test/?date=2024-05-01&amp;edition_id=" in capsys.readouterr().out


def test_render_pages_writes_jpegs(edition_store, public_root, capsys):
    _write_pdf(public_root / "uploads/editions/2024/05/01/abc/edition-2024-05-01.pdf")
    eid = edition_store.create_edition("Morning Herald", date(2024, 5, 1), pdf_path=PDF_PATH)

    main(["--render-pages", str(eid)])

    images_dir = public_root / "uploads/editions/2024/05/01/abc/images"
    assert sorted(p.name for p in images_dir.iterdir()) == ["page-1.jpg", "page-2.jpg"]
    with Image.open(images_dir / "page-1.jpg") as img:
        assert img.size == (500, 750)
    assert "Wrote 2 page image(s)" in capsys.readouterr().out


def test_render_pages_rejects_broken_pdf(edition_store, public_root):
    pdf = public_root / "uploads/editions/2024/05/01/abc/edition-2024-05-01.pdf"
    pdf.parent.mkdir(parents=True)
    pdf.write_bytes(b"not a pdf")
    eid = edition_store.create_edition("Broken", date(2024, 5, 1), pdf_path=PDF_PATH)

    with pytest.raises(SystemExit) as exc:
        main(["--render-pages", str(eid)])
    assert exc.value.code == 1


def test_settings_round_trip(capsys):
    main(["--set", "app_title", "The Daily Bugle"])
    main(["--settings"])

    out = capsys.readouterr().out
    assert "✅ app_title = The Daily Bugle" in out
    assert "The Daily Bugle" in out.split("Website settings")[1]
