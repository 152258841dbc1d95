"""Global pytest configuration."""

import os

# Keep tests offline and in-memory before any settings are read
os.environ["OPENAI_API_KEY"] = ""
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
