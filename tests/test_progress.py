# tests/test_progress.py

from cargo_erp.services.allocation import OwnerType
from cargo_erp.services.ledger import ManifestLine, Shipment
from cargo_erp.services.progress import ShipmentStatus, derive_status, progress_percent, shipment_status


def _shipment(planned, arrived_a, arrived_b):
    return Shipment(
        id="s1",
        name="Test",
        dispatch_date="2026-01-01",
        total_planned_kg=planned,
        items=[
            ManifestLine("A", OwnerType.PARTNER, planned_kg=planned / 2, arrived_kg=arrived_a),
            ManifestLine("B", OwnerType.CLIENT, planned_kg=planned / 2, arrived_kg=arrived_b),
        ],
    )


def test_completed_within_tolerance_and_progress_capped():
    s = _shipment(1000, 500.05, 500)
    assert shipment_status(s, tolerance=0.5) == ShipmentStatus.COMPLETED
    assert progress_percent(s) == 100


def test_status_transitions():
    assert derive_status(0, 1000) == ShipmentStatus.IN_TRANSIT
    assert derive_status(500, 1000) == ShipmentStatus.PARTIALLY_ARRIVED
    assert derive_status(999.4, 1000) == ShipmentStatus.PARTIALLY_ARRIVED
    assert derive_status(999.5, 1000) == ShipmentStatus.COMPLETED


def test_progress_without_plan_is_zero():
    s = _shipment(0, 0, 0)
    assert progress_percent(s) == 0


def test_progress_partial():
    s = _shipment(1000, 100, 150)
    assert progress_percent(s) == 25
