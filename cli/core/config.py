# cli/core/config.py
from pathlib import Path
import os

# Backend URL (FastAPI)
BASE_URL = os.environ.get("TOKENDEMO_URL", "http://localhost:8000")

# How the access credential travels: "cookie", "header" or "both"
TRANSPORT = os.environ.get("TOKENDEMO_TRANSPORT", "cookie")

# Requested access token lifetime in minutes (None = server default)
_max_age = os.environ.get("TOKENDEMO_ACCESS_TOKEN_MAX_AGE")
ACCESS_TOKEN_MAX_AGE = int(_max_age) if _max_age else None

# Folder where the CLI keeps local data (cookies, header token)
APP_DIR = Path(os.environ.get("TOKENDEMO_HOME", Path.home() / ".tokendemo"))

# Session file (cookie jar + header token)
SESSION_FILE = APP_DIR / "session.json"
