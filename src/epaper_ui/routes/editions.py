"""Editions-by-date routes registration."""

import epaper_ui.routes.editions_handlers as handlers


def setup_editions_routes(app):
    """Register the disambiguation listing under both its legacy and clean path."""
    app.get("/editions/date-editions.php")(handlers.date_editions_page)
    app.get("/editions/date-editions")(handlers.date_editions_page)
