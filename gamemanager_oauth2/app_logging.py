import logging
from pythonjsonlogger import jsonlogger

_handler = None


def setup_logger(level: str = 'INFO'):
    global _handler
    logger = logging.getLogger()
    if _handler is None:
        _handler = logging.StreamHandler()
        formatter = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s',
                                             rename_fields={'levelname': 'level', 'asctime': 'timestamp'})
        _handler.setFormatter(formatter)
        logger.addHandler(_handler)
    logger.setLevel(level.upper())
