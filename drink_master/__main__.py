from __future__ import annotations

import os
import sys
from pathlib import Path


def _ensure_repo_root_on_path() -> None:
    """Ensure the repository root (parent of this package) is on ``sys.path``.

    Running ``python drink_master/__main__.py`` directly does not make the
    package importable; inserting its parent directory fixes that.
    """
    pkg_dir = Path(__file__).resolve().parent
    repo_root_str = str(pkg_dir.parent)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


if __package__:
    # python -m drink_master, or the installed console script
    from .app import run
    from .logging_config import level_from_name, setup_logging
else:
    _ensure_repo_root_on_path()
    from drink_master.app import run
    from drink_master.logging_config import level_from_name, setup_logging

LOG_LEVEL_ENV = "DRINK_MASTER_LOG_LEVEL"


def main() -> int:
    """Entry point for running the game from the command line."""
    setup_logging(level=level_from_name(os.environ.get(LOG_LEVEL_ENV)))
    return run()


if __name__ == "__main__":
    raise SystemExit(main())
