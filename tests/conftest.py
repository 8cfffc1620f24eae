# tests/conftest.py

import pytest

from cargo_erp import create_app
from cargo_erp.config import Config
from cargo_erp.services.ledger import Ledger


def make_config(tmp_path, **overrides):
    class TestConfig(Config):
        TESTING = True
        WTF_CSRF_ENABLED = False
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'erp.db'}"
        REMOTE_SYNC_ENABLED = True
        LOCAL_CACHE_PATH = str(tmp_path / "cache" / "erp_state.json")
        SETTINGS_PATH = str(tmp_path / "settings.json")
        OUTPUT_FOLDER = str(tmp_path / "outputs")
        # los tests hacen flush() explícito
        SYNC_DEBOUNCE_SECONDS = 60.0

    for k, v in overrides.items():
        setattr(TestConfig, k, v)
    return TestConfig


@pytest.fixture
def app(tmp_path):
    app = create_app(make_config(tmp_path))
    yield app
    app.extensions["cargo_erp"].sync.cancel()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ledger():
    lg = Ledger()
    lg.create_shipment(
        name="MV Sheba",
        dispatch_date="2026-01-05",
        total_planned_kg=1000,
        items=[
            {"owner_name": "Partner A", "owner_type": "Partner", "planned_kg": 400},
            {"owner_name": "Partner B", "owner_type": "Partner", "planned_kg": 400},
            {"owner_name": "Client C", "owner_type": "Client", "planned_kg": 200},
        ],
    )
    return lg


@pytest.fixture
def example_costs():
    return {"driver_cost": 100, "store_cost": 50, "freight_cost": 30, "postal_cost": 20}


@pytest.fixture
def example_arrivals():
    return [
        {"owner_name": "Partner A", "owner_type": "Partner", "arrived_kg": 100},
        {"owner_name": "Partner B", "owner_type": "Partner", "arrived_kg": 100},
        {"owner_name": "Client C", "owner_type": "Client", "arrived_kg": 50, "service_fee_per_kg": 2.5},
    ]


@pytest.fixture
def make_test_app(tmp_path):
    """Fábrica de apps con overrides de config (p.ej. REMOTE_SYNC_ENABLED=False)."""
    apps = []

    def _make(**overrides):
        a = create_app(make_config(tmp_path, **overrides))
        apps.append(a)
        return a

    yield _make
    for a in apps:
        a.extensions["cargo_erp"].sync.cancel()
