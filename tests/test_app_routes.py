def test_app_registers_viewer_and_api_routes():
    """The web app exposes the viewer aliases, the listing, the sitemap and the APIs."""
    import epaper_app

    paths = {getattr(route, "path", "") for route in epaper_app.app.routes}

    for expected in (
        "/",
        "/index.php",
        "/editions/date-editions.php",
        "/editions/date-editions",
        "/sitemaps/editions.xml",
        "/uploads/{path:path}",
        "/api/crop/compose",
        "/health",
    ):
        assert expected in paths
    assert not any("static" in getattr(route, "name", "") for route in epaper_app.app.routes)


def test_health_reports_version():
    import epaper_app
    from epaper_core import __version__

    assert epaper_app.health() == {"status": "ok", "version": __version__}


def test_unhandled_errors_get_a_generic_body():
    import asyncio

    from starlette.requests import Request

    import epaper_app

    request = Request(
        {
            "type": "http",
            "method": "GET",
            "scheme": "http",
            "server": ("testserver", 80),
            "path": "/",
            "headers": [],
            "query_string": b"",
        }
    )

    response = asyncio.run(epaper_app.server_error(request, RuntimeError("sqlite at /srv/db")))

    assert response.status_code == 500
    assert response.body == b"500 Internal Server Error"
