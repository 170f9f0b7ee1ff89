# Rev 1.0.0

# raptorTracker – logging setup (Rev 1.0.0)
from __future__ import annotations
import logging, os, sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

APP_NAME = "raptorTracker"
LOGGER_ROOT = "raptor"

FMT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"

# File: rotate at 5MB, keep 7 backups
MAX_BYTES = 5_000_000
BACKUPS = 7


def log_dir(app: str = APP_NAME) -> Path:
    base = os.environ.get("XDG_STATE_HOME", os.path.expanduser("~/.local/state"))
    d = Path(base) / app / "logs"
    d.mkdir(parents=True, exist_ok=True)
    return d


def get_logger(name: str) -> logging.Logger:
    """Component logger under raptor.*, e.g. raptor.progress, raptor.migrations."""
    return logging.getLogger(f"{LOGGER_ROOT}.{name}")


def _route_qt_messages() -> bool:
    """Pipe Qt's qDebug/qWarning output into the 'qt' logger when PySide6 is importable."""
    try:
        from PySide6.QtCore import QtMsgType, qInstallMessageHandler
    except ImportError:
        return False

    levels = {
        QtMsgType.QtDebugMsg: logging.DEBUG,
        QtMsgType.QtInfoMsg: logging.INFO,
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }

    def _qt_handler(msg_type, context, message):
        logging.getLogger("qt").log(levels.get(msg_type, logging.INFO), message)

    qInstallMessageHandler(_qt_handler)
    return True


def _tagged(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setFormatter(logging.Formatter(FMT, DATEFMT))
    handler.setLevel(level)
    handler._raptor = True
    return handler


def setup_logging(app_name: str = APP_NAME, *, console: bool = True) -> Path:
    """Configure the root logger once per process entry point; returns the log file path.

    Level comes from $RAPTOR_LOG_LEVEL (DEBUG/INFO/WARNING/ERROR), default INFO.
    The CLI passes console=False for --quiet.
    """
    level_name = os.environ.get("RAPTOR_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logfile = log_dir(app_name) / f"{app_name}.log"

    root = logging.getLogger()
    root.setLevel(level)
    # replace handlers installed by an earlier call
    for h in [h for h in root.handlers if getattr(h, "_raptor", False)]:
        root.removeHandler(h)
        h.close()

    root.addHandler(_tagged(
        RotatingFileHandler(logfile, maxBytes=MAX_BYTES, backupCount=BACKUPS, encoding="utf-8"), level
    ))
    if console:
        root.addHandler(_tagged(logging.StreamHandler(sys.stdout), level))

    # Uncaught exceptions → log as ERROR
    def _excepthook(exctype, value, tb):
        logging.getLogger("unhandled").exception("Uncaught exception", exc_info=(exctype, value, tb))
        sys.__excepthook__(exctype, value, tb)
    sys.excepthook = _excepthook

    qt = _route_qt_messages()
    get_logger("logging").info("Logging initialized at %s; file: %s (qt routing: %s)", level_name, logfile, qt)
    return logfile
