import logging

from devicehub.logging_config import UVICORN_LOGGERS, configure_logging


def test_uvicorn_loggers_write_through_root():
    access = logging.getLogger("uvicorn.access")
    access.addHandler(logging.NullHandler())
    access.propagate = False

    configure_logging()

    for name in UVICORN_LOGGERS:
        uv = logging.getLogger(name)
        assert uv.handlers == []
        assert uv.propagate is True
