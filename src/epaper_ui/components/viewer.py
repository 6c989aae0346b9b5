"""Viewer components: thumbnail sidebar, page viewport, controls, JSON boundary.

The browser script only reflects the transitions of
`epaper_core.viewer.state.ViewerSession`; every constant and message it uses
arrives through the `#epaper-viewer-data` JSON block.
"""

from __future__ import annotations

import json
from typing import Any

from fasthtml.common import A, Aside, Button, Div, Img, NotStr, Script, Section, Span

from epaper_core.compose.share import share_catalog, share_policy, share_templates
from epaper_core.viewer.state import CROP_LOCKED_CONTROLS, MESSAGES, PAGE_CONTROLS, Control, ViewerSession
from epaper_ui.components.cropper import render_crop_toolbar

VIEWER_DATA_ID = "epaper-viewer-data"


def viewer_boundary(
    *,
    session: ViewerSession,
    selected_date: str,
    raw_title: str,
    page_turn_sound: str,
    edition_id: int | None,
    site_url: str,
    compose_url: str = "/api/crop/compose",
) -> dict[str, Any]:
    """The data contract handed from the server to the browser viewer."""
    return {
        "selectedDate": selected_date,
        "rawEditionTitle": raw_title,
        "pageTurnSoundPath": page_turn_sound,
        "editionImages": list(session.images),
        "editionId": edition_id,
        "siteUrl": site_url,
        "composeUrl": compose_url,
        "viewer": session.settings.to_client(),
        "messages": dict(MESSAGES),
        "shareMessages": share_catalog(),
        "sharePolicy": share_policy(),
        "shareTemplates": share_templates(),
        "pageControls": sorted(c.value for c in PAGE_CONTROLS),
        "cropLockedControls": sorted(c.value for c in CROP_LOCKED_CONTROLS),
    }


def boundary_script(data: dict[str, Any]) -> Script:
    """Embed the boundary as inert JSON (`</` escaped so it cannot close the tag)."""
    payload = json.dumps(data, ensure_ascii=False).replace("</", "<\\/")
    return Script(NotStr(payload), type="application/json", id=VIEWER_DATA_ID)


def _control_button(label: str, icon: str, control: Control, enabled: bool, element_id: str, title: str = ""):
    return Button(
        Span(icon),
        Span(label, cls="hidden md:inline"),
        id=element_id,
        type="button",
        title=title or label,
        cls="btn-theme flex items-center gap-1",
        data_control=control.value,
        disabled=not enabled,
    )


def render_thumbnails(images: list[str], active: int | None) -> Aside:
    """Sidebar of page thumbnails; clicking one shows that page."""
    return Aside(
        Div(
            *[
                Div(
                    Img(src=src, alt=f"Page {i + 1}", loading="lazy", cls="w-full h-auto block"),
                    Div(str(i + 1), cls="page-number-overlay absolute bottom-1 right-1 rounded bg-black/60 px-1 text-xs text-white"),
                    cls="thumbnail-item relative cursor-pointer rounded border-2 "
                    + ("active border-[var(--color-hover-color)]" if i == active else "border-transparent"),
                    data_index=str(i),
                )
                for i, src in enumerate(images)
            ],
            id="thumbnail-container",
            cls="flex flex-col gap-2 p-2",
        ),
        cls="hidden md:block w-40 shrink-0 overflow-y-auto border-r border-[var(--color-light-gray-border)] bg-white",
        style="max-height: calc(100vh - 7rem);",
    )


def render_controls(session: ViewerSession, pdf_url: str) -> Div:
    """Toolbar with navigation, zoom, crop, share, fullscreen and PDF download."""
    view = session.snapshot()
    pdf_enabled = view.enabled(Control.PDF_DOWNLOAD) and bool(pdf_url)
    return Div(
        _control_button("Prev", "◀", Control.PREV, view.enabled(Control.PREV), "prevPage", "Previous page"),
        Span(
            Span(str(view.page_index + 1 if view.page_count else 0), id="currentPageNum"),
            " / ",
            Span(str(view.page_count), id="totalPagesNum"),
            cls="px-2 text-sm tabular-nums",
        ),
        _control_button("Next", "▶", Control.NEXT, view.enabled(Control.NEXT), "nextPage", "Next page"),
        _control_button("Zoom in", "＋", Control.ZOOM_IN, view.enabled(Control.ZOOM_IN), "zoomIn"),
        _control_button("Zoom out", "－", Control.ZOOM_OUT, view.enabled(Control.ZOOM_OUT), "zoomOut"),
        _control_button("Fit", "↔", Control.RESET_ZOOM, view.enabled(Control.RESET_ZOOM), "resetZoom", "Fit to width"),
        _control_button("Crop", "✂", Control.TOGGLE_CROP, view.enabled(Control.TOGGLE_CROP), "toggleCropModeBtn"),
        _control_button("Share", "↗", Control.SHARE, view.enabled(Control.SHARE), "shareBtn"),
        _control_button(
            "Full Screen", "⛶", Control.FULLSCREEN, view.enabled(Control.FULLSCREEN), "fullScreenBtn"
        ),
        A(
            Span("⤓"),
            Span("PDF", cls="hidden md:inline"),
            href=pdf_url or "#",
            download="" if pdf_url else None,
            cls="btn-theme flex items-center gap-1",
            data_control=Control.PDF_DOWNLOAD.value,
            aria_disabled="false" if pdf_enabled else "true",
        ),
        cls="viewer-controls flex flex-wrap items-center gap-2 border-b border-[var(--color-light-gray-border)] bg-white px-3 py-2",
    )


def render_viewport(session: ViewerSession) -> Div:
    """The scrollable page area with one image per page (only the current one shown)."""
    view = session.snapshot()
    if view.page_count == 0:
        body = Div(
            Span("ℹ️", cls="mr-2"),
            view.empty_message,
            id="emptyState",
            cls="m-auto rounded bg-white px-6 py-4 text-[var(--color-gray-text)] shadow",
        )
    else:
        body = Div(
            *[
                Img(
                    src=src,
                    alt=f"Page {i + 1}",
                    id=f"pageImage_{i}",
                    cls="edition-page-image max-w-none select-none",
                    style="" if i == view.page_index else "display: none;",
                    draggable="false",
                )
                for i, src in enumerate(session.images)
            ],
            cls="relative m-auto",
        )
    return Div(
        body,
        render_crop_toolbar(),
        id="imageViewport",
        cls="relative flex overflow-auto bg-[var(--color-bg-gray-100)]",
        style="height: calc(100vh - 7rem); touch-action: pan-x pan-y;",
    )


def render_viewer(session: ViewerSession, boundary: dict[str, Any], pdf_url: str) -> Div:
    """Full viewer region: sidebar, controls, viewport, boundary data and script."""
    view = session.snapshot()
    return Div(
        render_thumbnails(list(session.images), view.active_thumbnail),
        Section(
            render_controls(session, pdf_url),
            render_viewport(session),
            cls="flex min-w-0 flex-1 flex-col",
        ),
        boundary_script(boundary),
        Script(VIEWER_SCRIPT),
        id="epaper-viewer",
        cls="flex w-full",
        data_mode=view.mode.value,
    )


VIEWER_SCRIPT = r"""
(function () {
    const data = JSON.parse(document.getElementById('epaper-viewer-data').textContent);
    const cfg = data.viewer;
    const MSG = data.messages;
    const SHARE = data.shareMessages;
    const images = data.editionImages || [];
    const viewport = document.getElementById('imageViewport');
    const toolbar = document.getElementById('cropperButtons');
    const thumbs = document.getElementById('thumbnail-container');
    const audio = data.pageTurnSoundPath ? new Audio(data.pageTurnSoundPath) : null;
    if (audio) audio.preload = 'auto';

    const state = {
        mode: images.length ? 'loading' : 'ready',
        index: 0,
        zoom: 1,
        natural: {},
        cropper: null,
        pinchStartDistance: 0,
        pinchZoomStart: 1,
        pinching: false,
        pinchedThisSequence: false,
        start: [0, 0],
        lastTap: null,
        dragging: null,
    };

    function toast(notice) { if (window.epaperToast) window.epaperToast(notice); }
    function say(message, tone, ms) {
        toast({ message: message, tone: tone || 'success', duration_ms: ms || cfg.noticeMs });
    }
    function shareNotice(key) { toast(SHARE[key]); }

    function controls() { return document.querySelectorAll('[data-control]'); }
    function setEnabled(el, enabled) {
        if (el.tagName === 'A') el.setAttribute('aria-disabled', enabled ? 'false' : 'true');
        else el.disabled = !enabled;
    }
    function syncControls() {
        const empty = images.length === 0;
        controls().forEach((el) => {
            const name = el.dataset.control;
            let enabled = true;
            if (name.startsWith('crop_') && name !== 'crop_cancel') enabled = state.mode === 'cropping';
            if (name === 'crop_cancel') enabled = state.mode === 'cropping';
            if ((empty || state.mode === 'loading') && data.pageControls.includes(name)) enabled = false;
            if (state.mode === 'cropping' && data.cropLockedControls.includes(name)) enabled = false;
            if (empty && name === 'fullscreen') enabled = false;
            if (name === 'pdf_download' && el.getAttribute('href') === '#') enabled = false;
            setEnabled(el, enabled);
        });
        const crop = document.getElementById('toggleCropModeBtn');
        if (crop) crop.classList.toggle('is-active', state.mode === 'cropping');
        toolbar.classList.toggle('hidden', state.mode !== 'cropping');
        toolbar.classList.toggle('flex', state.mode === 'cropping');
    }

    function image(i) { return document.getElementById('pageImage_' + i); }
    function size() { return state.natural[state.index] || null; }
    function baseline() {
        const s = size();
        if (!s || !viewport.clientWidth) return 1;
        return viewport.clientWidth / s[0];
    }
    function upper() { return Math.max(cfg.maxZoom, baseline()); }
    function clampZoom(z) { return Math.min(Math.max(z, baseline()), upper()); }
    function clampAxis(offset, content, view) {
        if (content <= view) return (content - view) / 2;
        return Math.max(0, Math.min(offset, content - view));
    }
    function apply(scrollX, scrollY) {
        const s = size();
        const img = image(state.index);
        if (!s || !img) return;
        img.style.width = (s[0] * state.zoom) + 'px';
        img.style.height = 'auto';
        const w = s[0] * state.zoom, h = s[1] * state.zoom;
        viewport.scrollLeft = Math.max(0, clampAxis(scrollX, w, viewport.clientWidth));
        viewport.scrollTop = Math.max(0, clampAxis(scrollY, h, viewport.clientHeight));
    }
    function fit() { state.zoom = baseline(); apply(viewport.scrollLeft, viewport.scrollTop); }
    function zoomTo(level, ax, ay) {
        if (state.mode !== 'ready' || !size()) return;
        const old = state.zoom;
        const next = clampZoom(level);
        const sx = ((ax + viewport.scrollLeft) / old) * next - ax;
        const sy = ((ay + viewport.scrollTop) / old) * next - ay;
        state.zoom = next;
        apply(sx, sy);
    }
    function zoomedIn() { return state.zoom > baseline() + cfg.zoomEpsilon; }

    function render(resetScroll) {
        if (!images.length) { syncControls(); return; }
        document.querySelectorAll('.edition-page-image').forEach((img) => { img.style.display = 'none'; });
        const img = image(state.index);
        img.style.display = 'block';
        document.getElementById('currentPageNum').textContent = state.index + 1;
        if (thumbs) {
            thumbs.querySelectorAll('.thumbnail-item').forEach((t) => t.classList.remove('active'));
            const active = thumbs.querySelector('[data-index="' + state.index + '"]');
            if (active) { active.classList.add('active'); active.scrollIntoView({ block: 'nearest' }); }
        }
        if (resetScroll) { viewport.scrollLeft = 0; viewport.scrollTop = 0; }
        if (!size()) {
            state.mode = 'loading';
            const pending = state.index;
            if (img.complete && img.naturalWidth) loaded(pending, img);
            else img.onload = () => loaded(pending, img);
        } else {
            if (state.mode === 'loading') state.mode = 'ready';
            fit();
        }
        syncControls();
    }
    function loaded(i, img) {
        state.natural[i] = [img.naturalWidth, img.naturalHeight];
        if (i !== state.index || state.mode === 'cropping') return;
        state.mode = 'ready';
        fit();
        syncControls();
    }

    function feedback() {
        if (audio) { audio.currentTime = 0; audio.play().catch(() => {}); }
        if (navigator.vibrate) navigator.vibrate(cfg.vibrateMs);
    }
    function goTo(i, announce, cue) {
        if (!images.length || state.mode === 'cropping') return false;
        if (i < 0) { say(MSG.first_page, 'error', cfg.pageNoticeMs); return false; }
        if (i >= images.length) { say(MSG.last_page, 'error', cfg.pageNoticeMs); return false; }
        if (i === state.index && state.mode !== 'loading') { render(false); return false; }
        state.index = i;
        render(true);
        if (cue) feedback();
        if (announce) {
            say(MSG.page_label.replace('{page}', i + 1).replace('{total}', images.length), 'success', cfg.pageNoticeMs);
        }
        return true;
    }
    function navigate(step, announce) {
        if (state.mode !== 'ready') return false;
        return goTo(state.index + step, announce, true);
    }

    function zoomIn() {
        if (state.mode !== 'ready' || !size()) return;
        const old = state.zoom, top = upper();
        zoomTo(Math.min(old * cfg.zoomStep, top), viewport.clientWidth / 2, viewport.clientHeight / 2);
        if (state.zoom === top && old < top) say(MSG.max_zoom);
    }
    function zoomOut() {
        if (state.mode !== 'ready' || !size()) return;
        const old = state.zoom, base = baseline();
        zoomTo(Math.max(old / cfg.zoomStep, base), viewport.clientWidth / 2, viewport.clientHeight / 2);
        if (Math.abs(state.zoom - base) < cfg.zoomEpsilon && Math.abs(old - base) >= cfg.zoomEpsilon) say(MSG.zoom_reset);
    }
    function resetZoom(announce) {
        if (state.mode !== 'ready' || !size()) return;
        fit();
        if (announce) say(MSG.zoom_reset);
    }

    function doubleTap(x, y, wasZoomed) {
        if (wasZoomed) { fit(); say(MSG.zoom_reset); return; }
        const old = state.zoom;
        const target = clampZoom(Math.max(cfg.doubleTapZoom, baseline()));
        const sx = ((x + viewport.scrollLeft) / old) * target - viewport.clientWidth / 2;
        const sy = ((y + viewport.scrollTop) / old) * target - viewport.clientHeight / 2;
        state.zoom = target;
        apply(sx, sy);
        say(MSG.zoom_tap);
    }

    function local(touch) {
        const rect = viewport.getBoundingClientRect();
        return [touch.clientX - rect.left, touch.clientY - rect.top];
    }
    function dist(a, b) { return Math.hypot(a[0] - b[0], a[1] - b[1]); }

    viewport.addEventListener('touchstart', (e) => {
        if (state.mode !== 'ready') { state.pinching = false; state.pinchedThisSequence = false; return; }
        if (e.touches.length === 1) {
            state.start = local(e.touches[0]);
        } else if (e.touches.length >= 2) {
            state.pinching = true;
            state.pinchedThisSequence = true;
            state.pinchStartDistance = dist(local(e.touches[0]), local(e.touches[1]));
            state.pinchZoomStart = state.zoom;
        }
    }, { passive: true });

    viewport.addEventListener('touchmove', (e) => {
        if (state.mode !== 'ready' || !state.pinching || e.touches.length < 2) return;
        e.preventDefault();
        state.pinchedThisSequence = true;
        const a = local(e.touches[0]), b = local(e.touches[1]);
        const current = dist(a, b);
        if (state.pinchStartDistance === 0) {
            state.pinchStartDistance = current;
            state.pinchZoomStart = state.zoom;
            return;
        }
        zoomTo(state.pinchZoomStart * (current / state.pinchStartDistance), (a[0] + b[0]) / 2, (a[1] + b[1]) / 2);
    }, { passive: false });

    viewport.addEventListener('touchend', (e) => {
        if (state.mode !== 'ready') { state.pinching = false; state.pinchedThisSequence = false; return; }
        state.pinching = false;
        if (e.touches.length > 0) return;
        if (state.pinchedThisSequence) { state.pinchedThisSequence = false; return; }
        const end = local(e.changedTouches[0]);
        const dx = end[0] - state.start[0], dy = end[1] - state.start[1];
        const wasZoomed = zoomedIn();
        if (Math.abs(dx) < cfg.swipeMinDistance && Math.abs(dy) < cfg.swipeMinDistance) {
            const now = Date.now();
            if (state.lastTap !== null && now - state.lastTap > 0 && now - state.lastTap < cfg.doubleTapDelayMs) {
                state.lastTap = null;
                e.preventDefault();
                doubleTap(end[0], end[1], wasZoomed);
            } else {
                state.lastTap = now;
            }
            return;
        }
        state.lastTap = null;
        if (!wasZoomed && Math.abs(dx) > cfg.swipeMinDistance && Math.abs(dy) < cfg.swipeMaxVerticalDeviation) {
            e.preventDefault();
            navigate(dx < 0 ? 1 : -1, true);
        }
    });

    viewport.addEventListener('mousedown', (e) => {
        if (state.mode !== 'ready' || e.buttons !== 1 || e.target.closest('#cropperButtons')) return;
        state.dragging = { x: e.clientX, y: e.clientY, left: viewport.scrollLeft, top: viewport.scrollTop };
        e.preventDefault();
    });
    viewport.addEventListener('mousemove', (e) => {
        if (!state.dragging) return;
        apply(state.dragging.left - (e.clientX - state.dragging.x), state.dragging.top - (e.clientY - state.dragging.y));
    });
    ['mouseup', 'mouseleave'].forEach((name) => viewport.addEventListener(name, () => { state.dragging = null; }));

    function positionToolbar() {
        if (!state.cropper) return;
        const box = state.cropper.getCropBoxData();
        toolbar.style.left = Math.max(0, box.left + box.width - toolbar.offsetWidth - 5) + 'px';
        toolbar.style.top = Math.max(0, box.top - toolbar.offsetHeight - 5) + 'px';
    }
    function enterCrop() {
        if (state.mode !== 'ready' || !images.length || !size()) return;
        state.cropper = new Cropper(image(state.index), {
            aspectRatio: NaN, viewMode: 0, autoCropArea: cfg.cropAutoArea, background: false,
            zoomable: false, movable: false, rotatable: false, scalable: false, highlight: false,
            cropBoxMovable: true, cropBoxResizable: true,
            ready: positionToolbar, cropmove: positionToolbar, cropend: positionToolbar,
        });
        state.mode = 'cropping';
        syncControls();
    }
    function exitCrop(reason) {
        if (state.mode !== 'cropping') return;
        if (state.cropper) { state.cropper.destroy(); state.cropper = null; }
        state.mode = 'ready';
        syncControls();
        if (reason === 'cancel') say(MSG.crop_canceled, 'error');
        if (reason === 'escape') say(MSG.crop_escape, 'error');
    }

    async function composeCrop(purpose) {
        const crop = state.cropper.getData(true);
        const body = new FormData();
        body.append('edition_id', data.editionId);
        body.append('page', state.index + 1);
        body.append('purpose', purpose);
        body.append('crop_data', JSON.stringify(crop));
        const response = await fetch(data.composeUrl, { method: 'POST', body: body });
        if (!response.ok) throw new Error('compose failed: ' + response.status);
        const disposition = response.headers.get('Content-Disposition') || '';
        const match = disposition.match(/filename="?([^";]+)"?/);
        return { blob: await response.blob(), filename: match ? match[1] : 'cropped.png' };
    }

    async function downloadCrop() {
        if (state.mode !== 'cropping' || !state.cropper) { say(MSG.crop_inactive, 'error'); return; }
        try {
            const result = await composeCrop('download');
            const link = document.createElement('a');
            link.href = URL.createObjectURL(result.blob);
            link.download = result.filename;
            document.body.appendChild(link);
            link.click();
            link.remove();
            shareNotice('downloaded');
        } catch (err) {
            console.error(err);
            shareNotice('download_failed');
        } finally {
            exitCrop('silent');
        }
    }

    function blobToDataUrl(blob) {
        return new Promise((resolve, reject) => {
            const reader = new FileReader();
            reader.onload = () => resolve(reader.result);
            reader.onerror = reject;
            reader.readAsDataURL(blob);
        });
    }

    const POLICY = data.sharePolicy;
    // Shows the notices for one share result; true when the clipboard fallback should run.
    function settle(kind, result) {
        const step = POLICY[kind].outcomes[result];
        step.notices.forEach(shareNotice);
        return step.use_clipboard;
    }
    async function copyText(kind, source) {
        const keys = POLICY[kind].clipboard;
        try { await navigator.clipboard.writeText(await source); shareNotice(keys.copied); }
        catch (err) { console.error(err); shareNotice(keys.failed); }
    }
    async function nativeShare(payload, available) {
        if (!available) return 'unavailable';
        try {
            await navigator.share(payload);
            return 'shared';
        } catch (err) {
            if (err.name === 'AbortError') return 'canceled';
            console.error(err);
            return 'failed';
        }
    }

    async function shareCrop() {
        let result;
        try {
            result = await composeCrop('share');
        } catch (err) {
            console.error(err);
            settle('image', 'prepare_failed');
            exitCrop('silent');
            return;
        }
        exitCrop('silent');
        const file = new File([result.blob], result.filename, { type: 'image/png' });
        const texts = data.shareTemplates.image;
        const payload = { files: [file], title: texts.title, text: texts.text.replace('{page}', state.index + 1) };
        const available = Boolean(navigator.share && navigator.canShare && navigator.canShare({ files: [file] }));
        if (settle('image', await nativeShare(payload, available))) await copyText('image', blobToDataUrl(result.blob));
    }

    async function shareUrl() {
        const url = window.location.href;
        const title = document.title;
        const payload = { title: title, text: data.shareTemplates.url.text.replace('{title}', title), url: url };
        if (settle('url', await nativeShare(payload, Boolean(navigator.share)))) await copyText('url', url);
    }

    function on(id, handler) { const el = document.getElementById(id); if (el) el.addEventListener('click', handler); }
    on('prevPage', () => navigate(-1, false));
    on('nextPage', () => navigate(1, false));
    on('zoomIn', zoomIn);
    on('zoomOut', zoomOut);
    on('resetZoom', () => resetZoom(true));
    on('toggleCropModeBtn', () => (state.mode === 'cropping' ? exitCrop('silent') : enterCrop()));
    on('cancelCropBtn', () => exitCrop('cancel'));
    on('cropDownloadBtn', downloadCrop);
    on('shareCropBtn', shareCrop);
    on('shareBtn', () => (state.mode === 'cropping' ? shareCrop() : shareUrl()));
    on('fullScreenBtn', () => {
        if (document.fullscreenElement) document.exitFullscreen();
        else if (document.documentElement.requestFullscreen) document.documentElement.requestFullscreen();
    });
    if (thumbs) {
        thumbs.addEventListener('click', (e) => {
            const item = e.target.closest('.thumbnail-item');
            if (item) goTo(Number.parseInt(item.dataset.index, 10), false, false);
        });
    }
    document.addEventListener('keydown', (e) => { if (e.key === 'Escape') exitCrop('escape'); });
    document.addEventListener('fullscreenchange', () => { exitCrop('silent'); render(false); });
    window.addEventListener('resize', () => { exitCrop('silent'); render(false); });

    render(true);
})();
"""
