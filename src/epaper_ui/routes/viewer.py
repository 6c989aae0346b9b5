"""Viewer routes registration.

Only binds paths; the logic lives in `epaper_ui.routes.viewer_handlers`.
"""

import epaper_ui.routes.viewer_handlers as handlers


def setup_viewer_routes(app):
    """Register the viewer page and its legacy alias on `app`."""
    app.get("/")(handlers.viewer_page)
    app.get("/index.php")(handlers.viewer_page)
