import logging

from utils.logging_config import setup_logging

# Initialize centralized logging configuration before the app modules log anything
setup_logging()

from app import main

logger = logging.getLogger(__name__)


if __name__ == '__main__':
    logger.info("🚀 Starting shop API")
    main()
