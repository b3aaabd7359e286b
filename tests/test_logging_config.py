from __future__ import annotations

import logging

from drink_master.logging_config import level_from_name, setup_logging


def test_setup_logging_writes_package_logs_to_file(tmp_path) -> None:
    log_file = tmp_path / "drink_master.log"
    setup_logging(level=logging.DEBUG, log_file=str(log_file))
    try:
        logging.getLogger("drink_master.engine").info("round evaluated")
        root = logging.getLogger("drink_master")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2
        for handler in root.handlers:
            handler.flush()
        assert "round evaluated" in log_file.read_text(encoding="utf-8")

        # Re-configuring replaces handlers instead of stacking them.
        setup_logging(level=logging.WARNING)
        assert len(root.handlers) == 1
    finally:
        root = logging.getLogger("drink_master")
        for handler in list(root.handlers):
            handler.close()
        root.handlers.clear()


def test_level_from_name() -> None:
    assert level_from_name("debug") == logging.DEBUG
    assert level_from_name(" Info ") == logging.INFO
    assert level_from_name(None) == logging.WARNING
    assert level_from_name("") == logging.WARNING
    assert level_from_name("chatty", default=logging.ERROR) == logging.ERROR
