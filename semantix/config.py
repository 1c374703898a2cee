import os
from dotenv import load_dotenv
from pathlib import Path

# Load environment variables from .env file with explicit path
load_dotenv(dotenv_path=Path(__file__).parent.parent / '.env')

# Extension identity (key under which settings are persisted)
MODULE_NAME = os.getenv("SEMANTIX_MODULE_NAME", "Semantix")

# Vectorization backend
# Used when the active embedding provider has no baseUrl of its own.
DEFAULT_BACKEND_URL = os.getenv("SEMANTIX_BACKEND_URL", "http://localhost:8000")
BACKEND_TIMEOUT_SECONDS = float(os.getenv("SEMANTIX_BACKEND_TIMEOUT_SECONDS", "30"))

# Prompt interceptor
#
# "prompt": host passes a single prompt string plus chat history
# "chat":   host passes the structured chat array with context size and abort
HOST_CONVENTION = os.getenv("SEMANTIX_HOST_CONVENTION", "prompt").lower()
COLLECTION_PREFIX = os.getenv("SEMANTIX_COLLECTION_PREFIX", "worldbook_")
MAX_INJECTED_CHARS = int(os.getenv("SEMANTIX_MAX_INJECTED_CHARS", "8000"))

# Front-end sessions kept in memory by the HTTP app
MAX_SESSIONS = int(os.getenv("SEMANTIX_MAX_SESSIONS", "100"))

# Settings persistence
SETTINGS_DB_PATH = os.getenv("SEMANTIX_SETTINGS_DB_PATH", "semantix_settings.db")

LOG_LEVEL = os.getenv("SEMANTIX_LOG_LEVEL", "INFO").upper()
