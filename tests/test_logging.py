from __future__ import annotations

import logging

from pos.logging import ROOT_LOGGER_NAME, get_logger, set_log_level


def test_module_loggers_live_under_the_pos_namespace() -> None:
    assert get_logger("pos.cart").name == "pos.cart"
    assert get_logger("kitchen").name == "pos.kitchen"


def test_pos_records_do_not_reach_the_root_logger(caplog) -> None:
    with caplog.at_level(logging.INFO):
        get_logger("pos.payment").warning("Payment rejected (test)")
    assert logging.getLogger(ROOT_LOGGER_NAME).propagate is False
    assert "Payment rejected (test)" not in caplog.text


def test_set_log_level_switches_to_debug_format() -> None:
    pos_logger = logging.getLogger(ROOT_LOGGER_NAME)
    try:
        set_log_level(logging.DEBUG)
        assert pos_logger.level == logging.DEBUG
        assert all("%(lineno)d" in handler.formatter._fmt for handler in pos_logger.handlers)
    finally:
        set_log_level(logging.INFO)
    assert pos_logger.level == logging.INFO
