import logging

from bdcinema.core.config import settings

logger = logging.getLogger("bdcinema")
logger.setLevel(settings.log_level.upper())

if not logger.handlers:
    console_handler = logging.StreamHandler()
    formatter = logging.Formatter("[%(levelname)s] %(asctime)s - %(name)s - %(message)s", "%Y-%m-%d %H:%M:%S")
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
