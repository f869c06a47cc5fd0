# main.py
#
# Description:
# Entry point. Reads configuration and command-line flags, sets up logging,
# loads the task file and runs the Textual app. Tasks are saved when the
# app quits.
#

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from config import Config, ConfigError, default_config_path, load_config
from logging_setup import setup_logging
from storage import JsonStorage, StorageError, TaskRepository, create_storage
from task_manager import TaskManager
from views import TaskListApp

__version__ = "1.0.0"

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="td",
        description="td: a small terminal task list with priorities and undo.",
    )
    p.add_argument(
        "--config",
        help="Path to the JSON config file (default: ~/.config/td/config.json or TD_CONFIG env var)",
    )
    p.add_argument(
        "--data-file",
        help="Path to the task file (default: ~/.td.json or TD_DATA_FILE env var)",
    )
    p.add_argument("--log-level", help="Log level for the log file (DEBUG, INFO, ...).")
    p.add_argument("--log-file", help="Where to write logs.")
    p.add_argument(
        "--autosave",
        action="store_true",
        help="Save after every change instead of only on quit.",
    )
    p.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    return p


def resolve_config(ns: argparse.Namespace) -> Config:
    """Loads the config file and lets command-line flags override it."""
    config = load_config(ns.config or default_config_path())
    overrides = {}
    if ns.data_file:
        overrides["data_file"] = ns.data_file
    if ns.log_level:
        overrides["log_level"] = ns.log_level
    if ns.log_file:
        overrides["log_file"] = ns.log_file
    if ns.autosave:
        overrides["autosave"] = True
    return replace(config, **overrides)


def load_task_manager(repository: TaskRepository) -> TaskManager:
    """
    Builds the TaskManager from storage, starting empty if the data is
    unusable. An unreadable task file is moved aside first so the next save
    does not overwrite it.
    """
    try:
        tasks, done_tasks, next_id = repository.load_tasks()
    except StorageError as e:
        logger.error("Failed to load tasks, starting with an empty list: %s", e)
        if isinstance(repository, JsonStorage):
            backup = repository.move_aside()
            if backup:
                print(f"td: could not read tasks ({e}); old file kept at {backup}", file=sys.stderr)
        return TaskManager()
    return TaskManager(tasks, done_tasks, next_id)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    try:
        config = resolve_config(ns)
    except ConfigError as e:
        print(f"td: {e}", file=sys.stderr)
        return 1

    try:
        setup_logging(config.log_file, config.log_level)
    except OSError as e:
        print(f"td: cannot open log file {config.log_file}: {e}", file=sys.stderr)
        return 1
    repository = create_storage(
        {"type": "file", "file_path": config.data_file, "integrity": config.integrity}
    )
    task_manager = load_task_manager(repository)

    app = TaskListApp(task_manager, repository, config)
    try:
        app.run()
    finally:
        repository.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
