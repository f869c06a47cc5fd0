# logging_setup.py
#
# Description:
# Logging configuration. The terminal belongs to the Textual UI while the app
# runs, so log records go to a file only.
#

import logging
from pathlib import Path


def setup_logging(log_file, level: str = "INFO") -> Path:
    """
    Configure the root logger with a single file handler.

    Call this once, before the app starts. Any handlers installed earlier are
    removed to avoid duplicate lines.

    Args:
        log_file: Path of the log file; parent directories are created.
        level: Level name such as "DEBUG" or "INFO". Unknown names mean INFO.

    Returns:
        The resolved log file path.
    """
    log_path = Path(log_file).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    fh = logging.FileHandler(str(log_path), encoding="utf-8")
    fh.setFormatter(fmt)
    root.addHandler(fh)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)
    return log_path
