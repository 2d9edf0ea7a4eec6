"""Environment for the test run; must be set before the app modules are imported."""

import os
import tempfile

os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret")
os.environ.setdefault("PASSWORD_PEPPER", "test-pepper")
os.environ.setdefault("TOKEN_TRANSPORT", "cookie")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("DB_PATH", os.path.join(tempfile.mkdtemp(prefix="tokendemo-db-"), "db.json"))
os.environ.setdefault("TOKENDEMO_HOME", tempfile.mkdtemp(prefix="tokendemo-home-"))
