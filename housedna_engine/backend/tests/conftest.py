# backend/tests/conftest.py
from __future__ import annotations

import os
import tempfile

# must be set before house_health.config is imported
_DB_DIR = tempfile.mkdtemp(prefix="house_health_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"

import pytest  # noqa: E402

from house_health.db import Base, engine, init_db  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_schema():
    """Every test starts from empty tables."""
    Base.metadata.drop_all(bind=engine)
    init_db()
    yield
