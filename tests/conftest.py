"""Root conftest — shared test configuration."""

import os

# Keep tests off any real database and identity salt
os.environ.setdefault("TRIBUNAL_DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("TRIBUNAL_IDENTITY_SALT", "test-salt")
os.environ.setdefault("TRIBUNAL_LOG_FORMAT", "text")
