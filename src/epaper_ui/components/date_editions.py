"""Edition cards and pagination for the editions-by-date listing."""

from __future__ import annotations

from datetime import date
from urllib.parse import urlencode

from fasthtml.common import H1, H3, A, Div, Img, Nav, P, Span

from epaper_core.models import Edition
from epaper_ui.common.title_utils import truncate_title


def edition_card(edition: Edition, thumb_url: str) -> A:
    """One card linking straight to the viewer for that edition."""
    image = (
        Img(src=thumb_url, alt=edition.title, loading="lazy", cls="h-64 w-full object-cover object-top")
        if thumb_url
        else Div("No preview", cls="flex h-64 items-center justify-center bg-gray-100 text-sm text-gray-400")
    )
    return A(
        image,
        Div(
            H3(truncate_title(edition.title, max_len=60), cls="text-lg font-semibold leading-snug text-gray-800"),
            P(edition.display_date, cls="text-sm text-gray-500"),
            cls="flex flex-1 flex-col gap-1 p-4",
        ),
        href=f"/?{urlencode({'edition_id': edition.id})}",
        cls="edition-card flex flex-col overflow-hidden rounded-xl border border-[var(--color-light-gray-border)] "
        "bg-white shadow transition hover:-translate-y-1 hover:shadow-lg",
        data_edition_id=str(edition.id),
    )


def pagination_nav(selected: date, current_page: int, total_pages: int, base_path: str):
    """Prev / numbered / next links, omitted when everything fits on one page."""
    if total_pages <= 1:
        return ""

    def href(page: int) -> str:
        return f"{base_path}?{urlencode({'date': selected.isoformat(), 'page': page})}"

    links = []
    if current_page > 1:
        links.append(A("« Prev", href=href(current_page - 1), cls="btn-theme"))
    for page in range(1, total_pages + 1):
        if page == current_page:
            links.append(Span(str(page), cls="btn-theme is-active", aria_current="page"))
        else:
            links.append(A(str(page), href=href(page), cls="btn-theme"))
    if current_page < total_pages:
        links.append(A("Next »", href=href(current_page + 1), cls="btn-theme"))
    return Nav(*links, cls="mt-8 flex flex-wrap justify-center gap-2", aria_label="Pagination")


def render_date_editions(
    selected: date,
    cards: list,
    *,
    current_page: int,
    total_pages: int,
    base_path: str,
    total: int,
) -> Div:
    """Listing body: heading, card grid or empty message, pagination."""
    heading = H1(
        f"Editions for {selected.strftime('%d-%m-%Y')}",
        cls="text-2xl font-bold text-[var(--color-text-color)]",
    )
    if not cards:
        body = P(
            f"No editions found for {selected.strftime('%d-%m-%Y')}.",
            id="date-editions-empty",
            cls="mt-6 rounded bg-white p-6 text-center text-gray-500 shadow",
        )
    else:
        body = Div(
            *cards,
            id="date-editions-grid",
            cls="mt-6 grid grid-cols-1 gap-6 sm:grid-cols-2 lg:grid-cols-3 xl:grid-cols-4",
        )
    return Div(
        heading,
        P(f"{total} edition(s) published on this date.", cls="text-sm text-gray-500"),
        body,
        pagination_nav(selected, current_page, total_pages, base_path),
        cls="mx-auto max-w-7xl px-4 py-8",
    )
