import os
import sys
import pytest

# ensure workspace root is on sys.path so our application packages can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import database
from engine import thresholds as thresholds_mod
from services import detection_service as service_mod
from store import client as store_client


@pytest.fixture(autouse=True)
def clear_fallback(monkeypatch):
    """Keep every test on the in-memory store and a fresh threshold registry."""
    store_client.reset_fallback()

    async def no_redis():
        return None

    monkeypatch.setattr(store_client, "get_redis", no_redis)
    monkeypatch.setattr(thresholds_mod, "_registry", thresholds_mod.ThresholdRegistry())
    service_mod.set_detection_service(None)

    yield

    service_mod.set_detection_service(None)
    store_client.reset_fallback()


@pytest.fixture
def alert_db(tmp_path):
    """File-backed SQLite alert store shared by the worker threads of a test."""
    database.dispose_database()
    database.init_database(f"sqlite:///{tmp_path / 'alerts.db'}")
    database.init_db()
    yield
    database.dispose_database()
