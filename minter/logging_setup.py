"""
Logging setup shared by the deployer scripts
"""

import os
import logging

LOGGER_NAME = 'nft_deployer'
LOG_FORMAT = '%(asctime)s | %(levelname)s | %(message)s'


def setup_logging(debug: bool = False, log_dir: str = 'logs') -> logging.Logger:
    """Setup file and console logging for the deployer logger"""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Already configured by an earlier call
    if logger.handlers:
        return logger

    os.makedirs(log_dir, exist_ok=True)

    file_handler = logging.FileHandler(os.path.join(log_dir, 'deployer.log'), encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)

    formatter = logging.Formatter(LOG_FORMAT)
    file_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    # Solana and HTTP clients are chatty at DEBUG
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logger
