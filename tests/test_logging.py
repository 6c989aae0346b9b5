import json
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from epaper_core import config_manager as config_mod
from epaper_core import logger as logger_mod


def _file_handlers():
    return [h for h in logger_mod.app_logger.handlers if isinstance(h, TimedRotatingFileHandler)]


def test_file_log_goes_to_configured_logs_dir(monkeypatch, tmp_path):
    configured = tmp_path / "configured-logs"
    cfg_file = tmp_path / "config.json"
    cfg_file.write_text(
        json.dumps({"paths": {"logs_dir": str(configured)}, "settings": {"logging": {"level": "DEBUG"}}}),
        encoding="utf-8",
    )
    manager = config_mod.ConfigManager.load(cfg_file)
    monkeypatch.setattr(config_mod, "get_config_manager", lambda: manager)

    logger_mod.reset_logging()
    logger_mod.setup_logging()
    try:
        assert logger_mod.resolve_log_dir() == configured
        handlers = _file_handlers()
        assert len(handlers) == 1
        assert Path(handlers[0].baseFilename) == configured / logger_mod.LOG_FILENAME
        assert logger_mod.app_logger.level == logging.DEBUG
    finally:
        logger_mod.reset_logging()


def test_setup_is_idempotent():
    logger_mod.setup_logging()
    before = list(logger_mod.app_logger.handlers)

    logger_mod.setup_logging()

    assert logger_mod.app_logger.handlers == before


def test_get_logger_uses_namespace():
    assert logger_mod.get_logger("editions.resolution").name == "epaper.editions.resolution"
    assert logger_mod.get_logger("epaper.cli").name == "epaper.cli"
