import logging
import os
import sys
from typing import Final

from dotenv import load_dotenv

load_dotenv()

DB_CONNECTION_STRING = os.getenv("DB_CONNECTION_STRING") or ""
BOT_TOKEN = os.getenv("BOT_TOKEN") or ""
GUILD_ID = int(os.getenv("GUILD_ID") or 0)
ADMIN_ROLE_ID = int(os.getenv("ADMIN_ROLE_ID") or 0)
LOTTERY_CHANNEL_ID = int(os.getenv("LOTTERY_CHANNEL_ID") or 0)


def is_running_tests() -> bool:
    """Check if code is being run by pytest."""
    return "pytest" in sys.modules


def setup_logger() -> logging.Logger:
    logger = logging.getLogger("itawards")
    # Set DEBUG level for tests, INFO for normal running
    logger.setLevel(logging.DEBUG if is_running_tests() else logging.INFO)

    c_handler = logging.StreamHandler(sys.stdout)
    f_handler = logging.FileHandler("bot.log")

    c_handler.setLevel(logging.DEBUG if is_running_tests() else logging.INFO)
    f_handler.setLevel(logging.DEBUG)  # File always logs DEBUG

    format = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    c_handler.setFormatter(format)
    f_handler.setFormatter(format)

    logger.addHandler(c_handler)
    logger.addHandler(f_handler)

    return logger


LOGGER: Final[logging.Logger] = setup_logger()
