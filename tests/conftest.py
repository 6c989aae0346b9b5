"""Shared pytest setup.

`src/` goes on the import path, the config file lives in a session temp dir,
and each test gets its own public root, database and log folder.
"""

from __future__ import annotations

import copy
import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if entry.exists() and str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


def _config_manager():
    from epaper_core.config_manager import get_config_manager

    return get_config_manager()


def _restart_logging() -> None:
    """Reattach the handlers under the currently configured `paths.logs_dir`."""
    from epaper_core import logger as logger_mod

    logger_mod.reset_logging()
    logger_mod.setup_logging()


def pytest_configure():
    """Keep config.json and session logs out of the working tree."""
    session_dir = Path(tempfile.mkdtemp(prefix="epaper-pytest-"))
    os.environ.setdefault("EPAPER_CONFIG", str(session_dir / "config.json"))
    _config_manager().set_logs_dir(str(session_dir / "logs"))
    _restart_logging()


@pytest.fixture(autouse=True)
def _isolated_runtime(tmp_path):
    """Give every test its own public root, database and logs."""
    cm = _config_manager()
    snapshot = copy.deepcopy(cm.data)
    for folder in ("public", "data", "logs"):
        cm.set_path(f"{folder}_dir", str(tmp_path / folder))
    _restart_logging()

    yield

    cm.data.clear()
    cm.data.update(snapshot)


@pytest.fixture
def public_root():
    return _config_manager().get_public_dir()


@pytest.fixture
def edition_store():
    from epaper_core.services.storage.edition_store import EditionStore

    return EditionStore()


@pytest.fixture
def make_page_images(public_root):
    """Create `images/page-<N>.jpg` files next to a stored PDF path; returns the folder."""
    from PIL import Image

    def _make(pdf_path: str, names=("page-1.jpg", "page-2.jpg"), size=(60, 90)):
        relative = pdf_path.replace("/../", "", 1).lstrip("/")
        pdf_file = public_root / relative
        images_dir = pdf_file.parent / "images"
        images_dir.mkdir(parents=True, exist_ok=True)
        pdf_file.write_bytes(b"%PDF-1.4\n")
        for name in names:
            Image.new("RGB", size, "white").save(images_dir / name, "JPEG")
        return images_dir

    return _make
