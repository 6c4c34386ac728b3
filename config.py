"""
Central configuration

Purpose: single source of truth for endpoints, API key, timeouts, server settings and user-facing messages.

Input: environment variables (optionally from a .env file next to this module).

Output: constants used by other modules (strings, numbers) and get_api_key().

Example: DIFY_API_KEY=app-xxxx in .env → get_api_key() == "app-xxxx"
"""
import os

from dotenv import load_dotenv

env_path = os.path.join(os.path.dirname(__file__), '.env')
load_dotenv(dotenv_path=env_path)

# ============================================
# DIFY WORKFLOW API
# ============================================

DIFY_WORKFLOW_URL = os.getenv("DIFY_WORKFLOW_URL", "https://api.dify.ai/v1/workflows/run")
DIFY_RESPONSE_MODE = "blocking"
DIFY_USER = os.getenv("DIFY_USER", "webapp-user")
DIFY_TIMEOUT = float(os.getenv("DIFY_TIMEOUT", "120"))  # blocking workflows can be slow

MAX_WORKERS = int(os.getenv("MAX_WORKERS", "8"))

# ============================================
# LOCAL SERVER
# ============================================

APP_HOST = os.getenv("APP_HOST", "127.0.0.1")
APP_PORT = int(os.getenv("APP_PORT", "8000"))
CONFIG_PATH = "/api/config"
CONFIG_TIMEOUT = 10.0

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# ============================================
# USER-FACING MESSAGES
# ============================================

MSG_MISSING_INPUT = "お薬の名前と手術予定日を両方入力してください。"
MSG_INVALID_DATE = "手術予定日は本日以降の日付を YYYY-MM-DD 形式で入力してください。"
MSG_CONFIG_FAILED = "APIキーの取得に失敗しました。"
MSG_NO_RESULT = "結果が取得できませんでした。"
MSG_UNKNOWN_API_ERROR = "Unknown API error"


class ConfigError(Exception):
    """Raised when the API key cannot be obtained."""


def get_api_key() -> str:
    """Return the Dify API key, read at call time so .env edits and test overrides apply."""
    api_key = os.getenv("DIFY_API_KEY", "").strip()
    if not api_key:
        raise ConfigError("DIFY_API_KEY environment variable is not set")
    return api_key
