"""Base Layout Component.

HTML shell with the site header (logo, title, date picker, login state),
SEO/Open Graph head tags, Tailwind/HTMX/Cropper.js includes, the theme
palette as CSS variables and the global toast holder.
"""

from __future__ import annotations

from datetime import date

from fasthtml.common import A, Body, Div, Form, Head, Header, Html, Img, Input, Link, Main, Meta, Script, Span, Style, Title

from epaper_core import __version__
from epaper_core.editions.seo import PageMeta
from epaper_core.models import Identity
from epaper_core.services.storage.settings_store import SiteSettings
from epaper_ui.common.title_utils import truncate_title
from epaper_ui.common.toasts import TOAST_HOLDER_ID
from epaper_ui.theme import css_variables, resolve_palette

_TOAST_SCRIPT = """
(function () {
    if (window.__epaperToastSystemBound) return;
    window.__epaperToastSystemBound = true;

    const HOLDER_ID = '%(holder)s';
    const ICONS = { success: '✅', info: 'ℹ️', error: '⚠️' };
    const CLOSE_SELECTOR = '[data-toast-close],[data_toast_close]';

    function dismissToast(toast) {
        if (!toast || toast.getAttribute('data-toast-closing') === 'true') return;
        toast.setAttribute('data-toast-closing', 'true');
        toast.classList.add('opacity-0', 'translate-y-2');
        window.setTimeout(() => { if (toast.parentNode) toast.remove(); }, 250);
    }

    function resolveTimeoutMs(toast) {
        const raw = toast.getAttribute('data-toast-timeout') || toast.getAttribute('data_toast_timeout') || '3000';
        const parsed = Number.parseInt(raw, 10);
        if (!Number.isFinite(parsed)) return 3000;
        return Math.min(15000, Math.max(1000, parsed));
    }

    function initToast(toast) {
        if (!toast || toast.getAttribute('data-toast-ready') === 'true') return;
        toast.setAttribute('data-toast-ready', 'true');
        window.setTimeout(() => dismissToast(toast), resolveTimeoutMs(toast));
    }

    function holder() { return document.getElementById(HOLDER_ID); }

    // Client-side counterpart of build_toast(), fed with Notice dicts.
    window.epaperToast = function (notice) {
        const root = holder();
        if (!root || !notice) return;
        const tone = ICONS[notice.tone] ? notice.tone : 'info';
        const card = document.createElement('div');
        card.className = 'pointer-events-auto epaper-toast-entry toast-' + tone
            + ' w-full flex items-start gap-3 px-4 py-3 transition-all duration-200 ease-out';
        card.setAttribute('role', 'status');
        card.setAttribute('data-toast-timeout', String(notice.duration_ms || 3000));
        const icon = document.createElement('span');
        icon.className = 'text-lg leading-none mt-0.5';
        icon.textContent = ICONS[tone];
        const text = document.createElement('div');
        text.className = 'text-sm font-semibold leading-snug text-left';
        text.textContent = notice.message;
        const close = document.createElement('button');
        close.type = 'button';
        close.className = 'ml-3 inline-flex h-6 w-6 items-center justify-center rounded-full hover:bg-white/20';
        close.setAttribute('data-toast-close', 'true');
        close.textContent = '✕';
        card.append(icon, text, close);
        root.appendChild(card);
        initToast(card);
    };

    function bind() {
        const root = holder();
        if (!root || root.dataset.toastBound === 'true') return;
        root.dataset.toastBound = 'true';
        new MutationObserver((mutations) => {
            mutations.forEach((m) => m.addedNodes.forEach((node) => {
                if (node instanceof Element) {
                    if (node.classList.contains('epaper-toast-entry')) initToast(node);
                    node.querySelectorAll('.epaper-toast-entry').forEach(initToast);
                }
            }));
        }).observe(root, { childList: true, subtree: true });
        root.querySelectorAll('.epaper-toast-entry').forEach(initToast);
        root.addEventListener('click', (event) => {
            const btn = event.target.closest(CLOSE_SELECTOR);
            if (btn) dismissToast(btn.closest('.epaper-toast-entry'));
        });
    }

    document.addEventListener('DOMContentLoaded', bind);
    document.addEventListener('htmx:oobAfterSwap', bind);
})();
"""

_BASE_CSS = """
body { background-color: var(--color-bg-gray-100); color: var(--color-text-color); }
.site-header { background-color: var(--color-main-color); color: var(--color-main-text-color); }
.site-header a:hover, .btn-theme:hover:not([disabled]) {
    background-color: var(--color-hover-color); color: var(--color-hover-text-color);
}
.btn-theme {
    border: 1px solid var(--color-light-gray-border); color: var(--color-gray-text); background: #FFFFFF;
    border-radius: 0.375rem; padding: 0.35rem 0.7rem; font-size: 0.875rem;
}
.btn-theme[disabled], .btn-theme[aria-disabled="true"] { opacity: 0.5; cursor: not-allowed; pointer-events: none; }
.btn-theme.is-active { background-color: var(--color-hover-color); color: var(--color-hover-text-color); }
.epaper-toast-entry.toast-success { background: #059669; color: #F8FAFC; }
.epaper-toast-entry.toast-error { background: #DC2626; color: #F8FAFC; }
.epaper-toast-entry.toast-info { background: #0284C7; color: #F8FAFC; }
"""


def head_tags(title: str, meta: PageMeta | None):
    """`<head>` children: title, SEO and Open Graph tags, scripts and styles."""
    tags = [
        Meta(charset="utf-8"),
        Meta(name="viewport", content="width=device-width, initial-scale=1"),
        Title(title),
    ]
    if meta is not None:
        for attr, key, content in meta.as_tags():
            tags.append(Meta(**{attr: key, "content": content}))
        tags.append(Link(rel="canonical", href=meta.url))
    tags.extend(
        [
            Script(src="https://cdn.tailwindcss.com"),
            Script(src="https://unpkg.com/htmx.org@1.9.10"),
            Link(rel="stylesheet", href="https://cdnjs.cloudflare.com/ajax/libs/cropperjs/1.6.1/cropper.min.css"),
            Script(src="https://cdnjs.cloudflare.com/ajax/libs/cropperjs/1.6.1/cropper.min.js"),
            Style(_BASE_CSS),
        ]
    )
    return tags


def _identity_badge(identity: Identity):
    if not identity.logged_in:
        return A("Login", href="/users/login.php", cls="px-3 py-1 rounded text-sm")
    return Div(
        Span(identity.username or "User", cls="font-semibold"),
        Span(f"({identity.role})", cls="text-xs opacity-80"),
        A("Logout", href="/users/logout.php", cls="px-2 py-1 rounded text-xs"),
        cls="flex items-center gap-2 text-sm",
        data_user_id=str(identity.user_id or ""),
    )


def site_header(
    site: SiteSettings,
    identity: Identity,
    *,
    heading: str = "",
    selected_date: date | None = None,
    notification: str = "",
    date_action: str = "/",
) -> Header:
    """Top bar: logo, edition heading, fallback notification, date picker, login state."""
    logo_src = "/" + site.logo_path.lstrip("/") if site.logo_path else ""
    return Header(
        Div(
            A(
                Img(src=logo_src, alt=site.title, cls="h-10 w-auto") if logo_src else Span(site.title),
                href="/",
                cls="flex items-center shrink-0",
            ),
            Div(
                Div(truncate_title(heading or site.title), id="edition-heading", cls="font-semibold truncate"),
                Div(notification, id="edition-notification", cls="text-xs opacity-90 truncate")
                if notification
                else "",
                cls="flex flex-col min-w-0 flex-1",
            ),
            Form(
                Input(
                    type="date",
                    name="date",
                    id="editionDatePicker",
                    value=(selected_date or date.today()).isoformat(),
                    onchange="this.form.submit()",
                    cls="rounded px-2 py-1 text-sm text-gray-800",
                    data_control="date_picker",
                ),
                action=date_action,
                method="get",
                cls="shrink-0",
            ),
            _identity_badge(identity),
            cls="max-w-7xl mx-auto flex items-center gap-4 px-4 py-2",
        ),
        cls="site-header sticky top-0 z-40 shadow",
    )


def base_layout(
    title: str,
    content,
    *,
    site: SiteSettings,
    identity: Identity | None = None,
    meta: PageMeta | None = None,
    heading: str = "",
    selected_date: date | None = None,
    notification: str = "",
    toasts=(),
    date_action: str = "/",
) -> Html:
    """Generate the page shell around `content`."""
    palette = resolve_palette(site.theme)
    return Html(
        Head(*head_tags(title, meta)),
        Body(
            site_header(
                site,
                identity or Identity(),
                heading=heading,
                selected_date=selected_date,
                notification=notification,
                date_action=date_action,
            ),
            Main(content, id="app-main", cls="min-h-[calc(100vh-3.5rem)]"),
            Div(
                *toasts,
                id=TOAST_HOLDER_ID,
                cls="pointer-events-none fixed top-4 right-4 z-50 flex w-[min(420px,95vw)] flex-col gap-2",
            ),
            Script(_TOAST_SCRIPT % {"holder": TOAST_HOLDER_ID}),
            Div(f"{site.editor_name} · v{__version__}", cls="text-center text-xs text-gray-500 py-3"),
            style=css_variables(palette),
            cls="antialiased",
        ),
        lang="en",
    )
