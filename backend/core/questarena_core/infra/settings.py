import logging
import os

from dotenv import load_dotenv

load_dotenv()

log = logging.getLogger(__name__)


def _env_number(name: str, default, cast=int):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        log.warning("Ignoring malformed %s=%r; using %s", name, raw, default)
        return default


# API / transport
API_SECRET_KEY = os.getenv("API_SECRET_KEY", "")
BOT_TOKEN = os.getenv("BOT_TOKEN")
LOG_DIR = os.getenv("LOG_DIR", "./logs")
MINIAPP_BASE_URL = os.getenv("MINIAPP_BASE_URL", "http://localhost:3000").rstrip("/")

# Quest creation gating
QUEST_MIN_MESSAGES = _env_number("QUEST_MIN_MESSAGES", 10)
QUEST_MIN_ACTIVE_USERS = _env_number("QUEST_MIN_ACTIVE_USERS", 2)
QUEST_MIN_ENGAGEMENT_RATIO = _env_number("QUEST_MIN_ENGAGEMENT_RATIO", 0.5, float)
QUEST_COOLDOWN_MINUTES = _env_number("QUEST_COOLDOWN_MINUTES", 30)
ACTIVITY_WINDOW_MINUTES = _env_number("ACTIVITY_WINDOW_MINUTES", 60)

# Background work
EXPIRY_SWEEP_INTERVAL_SECONDS = _env_number("EXPIRY_SWEEP_INTERVAL_SECONDS", 15.0, float)
PROPOSER_TIMEOUT_SECONDS = _env_number("PROPOSER_TIMEOUT_SECONDS", 20.0, float)
STREAM_RESTART_DELAY_SECONDS = _env_number("STREAM_RESTART_DELAY_SECONDS", 10.0, float)

# Fan-out
SUBSCRIBER_QUEUE_SIZE = _env_number("SUBSCRIBER_QUEUE_SIZE", 256)
SEND_RETRY_ATTEMPTS = _env_number("SEND_RETRY_ATTEMPTS", 3)
