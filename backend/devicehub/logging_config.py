import logging
from . import config

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

def configure_logging():
    level = config.LOG_LEVEL.upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='[%(asctime)s] [%(process)d] [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    # server and access lines go through the root handler in the same format
    for name in UVICORN_LOGGERS:
        uv = logging.getLogger(name)
        uv.handlers.clear()
        uv.propagate = True
