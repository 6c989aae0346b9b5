import argparse
import json
import sys
from datetime import datetime

from epaper_core import __version__
from epaper_core.logger import get_logger, setup_logging

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="E-Paper operator tools")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--list", action="store_true", help="List published editions")
    parser.add_argument("--resolve", action="store_true", help="Resolve an edition the way the viewer does")
    parser.add_argument("--date", help="Requested publication date (YYYY-MM-DD), used with --resolve")
    parser.add_argument("--edition-id", help="Requested edition id, used with --resolve")
    parser.add_argument("--images", metavar="ID", help="Print the ordered page image URLs of an edition")
    parser.add_argument("--sitemap", metavar="BASE_URL", help="Print the editions sitemap for a site URL")
    parser.add_argument(
        "--render-pages",
        metavar="ID",
        help="Rasterize an edition's stored PDF into images/page-<N>.jpg",
    )
    parser.add_argument("--settings", action="store_true", help="Show website settings stored in the database")
    parser.add_argument("--set", nargs=2, metavar=("KEY", "VALUE"), help="Store a website setting in the database")
    return parser


def _today():
    from epaper_core.services.storage.settings_store import load_site_settings

    return datetime.now(load_site_settings().tzinfo).date()


def _load_edition_or_exit(store, edition_id: str):
    edition = store.find_published_edition_by_id(edition_id)
    if edition is None:
        print(f"❌ Published edition not found: {edition_id}")
        sys.exit(1)
    return edition


def _handle_list() -> None:
    from epaper_core.services.storage.edition_store import EditionStore

    editions = EditionStore().list_published_editions()
    print(f"\n📰 Published editions ({len(editions)})\n" + "=" * 80)
    print(f"{'ID':<6} | {'Date':<10} | {'Title':<40} | PDF")
    print("-" * 80)
    for e in editions:
        print(f"{e.id:<6} | {e.display_date:<10} | {e.title[:40]:<40} | {e.pdf_path or '-'}")
    print("\n")


def _handle_resolve(date_param, edition_id) -> None:
    from epaper_core.config_manager import get_config_manager
    from epaper_core.editions.resolution import DEFAULT_DISAMBIGUATION_PATH, resolve_edition
    from epaper_core.services.storage.edition_store import EditionStore

    cm = get_config_manager()
    resolution = resolve_edition(
        EditionStore(),
        _today(),
        date_param,
        edition_id,
        cm.get_setting("editions.disambiguation_path", DEFAULT_DISAMBIGUATION_PATH),
    )
    edition = resolution.edition
    payload = {
        "edition_id": edition.id if edition else None,
        "selected_date": resolution.selected_date.isoformat(),
        "display_title": resolution.display_title,
        "raw_title": resolution.raw_title,
        "notification": resolution.notification,
        "redirect_to": resolution.redirect_to,
        "error": resolution.error,
    }
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _handle_images(edition_id: str) -> None:
    from epaper_core.config_manager import get_config_manager
    from epaper_core.editions.page_images import resolve_page_images
    from epaper_core.services.storage.edition_store import EditionStore

    cm = get_config_manager()
    edition = _load_edition_or_exit(EditionStore(), edition_id)
    image_set = resolve_page_images(
        edition.pdf_path, cm.get_public_dir(), cm.get_setting("viewer.image_extensions", ["jpg"]) or ["jpg"]
    )
    if image_set.notice:
        print(f"⚠️  {image_set.notice}")
    for url in image_set.images:
        print(url)


def _handle_sitemap(base_url: str) -> None:
    from epaper_core.editions.sitemap import render_editions_sitemap
    from epaper_core.services.storage.edition_store import EditionStore

    sys.stdout.write(render_editions_sitemap(base_url, EditionStore().list_published_editions()).decode("utf-8"))


def _handle_render_pages(edition_id: str) -> None:
    from epaper_core.config_manager import get_config_manager
    from epaper_core.editions.page_images import images_dir_for_pdf, sanitize_storage_path
    from epaper_core.editions.pdf_pages import PdfRenderError, render_pdf_pages
    from epaper_core.services.storage.edition_store import EditionStore

    cm = get_config_manager()
    public_root = cm.get_public_dir()
    edition = _load_edition_or_exit(EditionStore(), edition_id)
    images_dir = images_dir_for_pdf(public_root, edition.pdf_path)
    pdf_file = public_root / sanitize_storage_path(edition.pdf_path)
    if images_dir is None or not pdf_file.is_file():
        print(f"❌ PDF not found for edition {edition.id}: {edition.pdf_path or '-'}")
        sys.exit(1)

    def _progress(done: int, total: int) -> None:
        print(f"\r🖨️  Page {done}/{total}", end="", flush=True)

    try:
        pages = render_pdf_pages(
            pdf_file,
            images_dir,
            dpi=int(cm.get_setting("render.dpi", 180) or 180),
            jpeg_quality=int(cm.get_setting("render.jpeg_quality", 85) or 85),
            progress_callback=_progress,
        )
    except PdfRenderError as exc:
        logger.error("PDF rendering failed for edition %s: %s", edition.id, exc)
        print(f"\n❌ {exc}")
        sys.exit(1)
    print(f"\n✅ Wrote {len(pages)} page image(s) to {images_dir}")


def _handle_settings() -> None:
    from epaper_core.services.storage.settings_store import SettingsStore

    stored = SettingsStore().all()
    print(f"\n⚙️  Website settings ({len(stored)})\n" + "=" * 80)
    for key in sorted(stored):
        print(f"{key:<32} = {stored[key]}")
    print("\n")


def _handle_set(key: str, value: str) -> None:
    from epaper_core.services.storage.settings_store import SettingsStore

    if not SettingsStore().set(key, value):
        print(f"❌ Could not store setting {key}")
        sys.exit(1)
    print(f"✅ {key} = {value}")


def _dispatch(args: argparse.Namespace) -> bool:
    if args.list:
        _handle_list()
        return True
    if args.resolve:
        _handle_resolve(args.date, args.edition_id)
        return True
    if args.images:
        _handle_images(args.images)
        return True
    if args.sitemap:
        _handle_sitemap(args.sitemap)
        return True
    if args.render_pages:
        _handle_render_pages(args.render_pages)
        return True
    if args.settings:
        _handle_settings()
        return True
    if args.set:
        _handle_set(*args.set)
        return True
    return False


def main(argv=None):
    """CLI entry point."""
    setup_logging()
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not _dispatch(args):
        parser.print_help()
        sys.exit(2)


if __name__ == "__main__":
    main()
