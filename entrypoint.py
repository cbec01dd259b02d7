import uvicorn
from constants import HOST, LOG_FILE, LOG_LEVEL, PORT, RELOAD
from logging_config import setup_logging

# Setup logging before importing app
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)

from logging_config import get_logger

logger = get_logger(__name__)


def main():
    logger.info(f"Starting presence server on {HOST}:{PORT}")
    logger.info(f"WebSocket endpoint: ws://{HOST}:{PORT}/ws")
    uvicorn.run("app:app", host=HOST, port=PORT, reload=RELOAD, log_config=None)


if __name__ == "__main__":
    main()
