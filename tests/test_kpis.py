# tests/test_kpis.py

from cargo_erp.services.kpis import all_batches, compute_dashboard_stats, compute_inventory


def test_dashboard_totals_from_stored_batches(ledger, example_costs, example_arrivals):
    s = ledger.shipments[0]
    ledger.post_batch(s.id, example_costs, example_arrivals, batch_date="2026-01-20")
    ledger.post_batch(s.id, example_costs, [
        {"owner_name": "Client C", "arrived_kg": 50, "service_fee_per_kg": 5},
    ], batch_date="2026-01-25")

    stats = compute_dashboard_stats(ledger.shipments)

    assert stats["shipments"] == 1
    assert stats["batches"] == 2
    assert stats["total_weight"] == 300
    assert stats["partner_kg"] == 200
    assert stats["client_kg"] == 100
    # segundo lote: client_per_kg = 170/50 = 3.4, costos 170, ingreso 250, neto 80
    assert stats["total_revenue"] == 375
    assert stats["net_profit"] == 35
    assert len(stats["recent_batches"]) == 2


def test_inventory_skips_archived(ledger, example_costs, example_arrivals):
    s = ledger.shipments[0]
    ledger.post_batch(s.id, example_costs, example_arrivals)

    inv = compute_inventory(ledger.shipments)
    assert inv["total_in_store"] == 250
    assert inv["partners_in_store"] == 200
    assert inv["clients_in_store"] == 50

    ledger.toggle_archive(s.id)
    assert compute_inventory(ledger.shipments)["total_in_store"] == 0


def test_all_batches_newest_first(ledger, example_costs):
    s = ledger.shipments[0]
    ledger.post_batch(s.id, example_costs, [{"owner_name": "Partner A", "arrived_kg": 1}], batch_date="2026-01-10")
    ledger.post_batch(s.id, example_costs, [{"owner_name": "Partner A", "arrived_kg": 1}], batch_date="2026-02-10")

    rows = all_batches(ledger.shipments)
    assert [r["batch_date"] for r in rows] == ["2026-02-10", "2026-01-10"]
    assert rows[0]["shipment_name"] == "MV Sheba"
