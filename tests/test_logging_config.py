import logging
import logging.handlers

import pytest

from logging_config import setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_console_handler_only():
    logger = setup_logging('WARNING')
    ours = [h for h in logger.handlers if getattr(h, '_coin_handler', False)]
    assert len(ours) == 1
    assert ours[0].level == logging.WARNING


def test_rotating_file_handler(tmp_path):
    log_file = tmp_path / 'logs' / 'coin.log'
    logger = setup_logging('INFO', log_file=str(log_file))
    ours = [h for h in logger.handlers if getattr(h, '_coin_handler', False)]
    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in ours)

    logging.getLogger('bayesian_coin').info('prior replaced')
    for handler in ours:
        handler.flush()
    assert 'prior replaced' in log_file.read_text()


def test_repeated_setup_does_not_duplicate_handlers():
    setup_logging()
    logger = setup_logging()
    ours = [h for h in logger.handlers if getattr(h, '_coin_handler', False)]
    assert len(ours) == 1
