import uvicorn
from . import config
from .logging_config import configure_logging

def main():
    # Run: python -m devicehub  (or: uvicorn devicehub.main:app --port $PORT)
    configure_logging()
    uvicorn.run("devicehub.main:app", host=config.HOST, port=config.PORT, log_config=None)

if __name__ == "__main__":
    main()
