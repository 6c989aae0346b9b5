import contextlib
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

LOGGER_NAMESPACE = "epaper"
LOG_FILENAME = "app.log"
LOG_BACKUP_DAYS = 30

# Libraries that log every decoded image or form part at DEBUG.
_CHATTY_LIBRARIES = ("PIL", "multipart")


def _configured(path: str, default):
    try:
        from .config_manager import get_config_manager

        cm = get_config_manager()
    except (ImportError, OSError, ValueError, RuntimeError):
        return default
    if path == "paths.logs_dir":
        return cm.get_logs_dir()
    return cm.get_setting(path, default)


def _level_name() -> str:
    return str(_configured("logging.level", "INFO") or "INFO").upper()


def _usable_log_dir(candidate: Path) -> Path:
    try:
        candidate.mkdir(parents=True, exist_ok=True)
        return candidate
    except OSError:
        fallback = Path("logs")
        fallback.mkdir(parents=True, exist_ok=True)
        return fallback


def resolve_log_dir() -> Path:
    """`paths.logs_dir` from the loaded config, read when logging is set up."""
    return _usable_log_dir(Path(_configured("paths.logs_dir", Path("logs"))))


CONSOLE_FORMAT = logging.Formatter("%(levelname)s | %(name)s | %(message)s")
FILE_FORMAT = logging.Formatter(
    "%(asctime)s [%(levelname)s] [%(name)s.%(funcName)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

app_logger = logging.getLogger(LOGGER_NAMESPACE)
app_logger.propagate = True


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CONSOLE_FORMAT)
    handler.setLevel(level)
    return handler


def _file_handler(log_file: Path, level: int) -> logging.Handler:
    handler = TimedRotatingFileHandler(
        log_file, when="midnight", interval=1, backupCount=LOG_BACKUP_DAYS, encoding="utf-8"
    )
    handler.setFormatter(FILE_FORMAT)
    handler.setLevel(level)
    return handler


def setup_logging():
    """Attach console and daily-rotated file handlers to the `epaper` logger.

    Safe to call repeatedly: once handlers exist only the level is refreshed
    from `settings.logging.level`.
    """
    level_name = _level_name()
    level = getattr(logging, level_name, logging.INFO)

    if app_logger.handlers:
        if app_logger.level != level:
            app_logger.setLevel(level)
            for handler in app_logger.handlers:
                handler.setLevel(level)
        return

    app_logger.setLevel(level)
    app_logger.addHandler(_console_handler(level))
    for name in _CHATTY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    log_file = resolve_log_dir() / LOG_FILENAME
    try:
        app_logger.addHandler(_file_handler(log_file, level))
    except OSError as exc:
        sys.stderr.write(f"File logging disabled ({log_file}): {exc}\n")
        app_logger.warning("File logging disabled (%s): %s", log_file, exc)

    app_logger.info("Logging ready (level %s) -> %s", level_name, log_file)


def reset_logging() -> None:
    """Close and detach the `epaper` handlers so the next setup reads config again."""
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        with contextlib.suppress(OSError, ValueError):
            handler.close()


def get_logger(name: str):
    """Logger inside the `epaper` namespace (`foo` becomes `epaper.foo`).

    Handlers are attached by `setup_logging()`, which the entry points call
    once configuration can be loaded.
    """
    if not name.startswith(LOGGER_NAMESPACE):
        name = f"{LOGGER_NAMESPACE}.{name}"
    return logging.getLogger(name)
