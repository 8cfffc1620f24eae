# scripts/seed_dev.py

from cargo_erp import create_app
from cargo_erp.services.runtime import get_runtime

app = create_app()

with app.app_context():
    runtime = get_runtime()
    settings = runtime.settings

    s = runtime.ledger.create_shipment(
        name="Demo Vessel",
        dispatch_date="2026-01-05",
        total_planned_kg=500,
        items=[
            {"owner_name": settings.partner1, "owner_type": "Partner", "planned_kg": 200},
            {"owner_name": settings.partner2, "owner_type": "Partner", "planned_kg": 200},
            {"owner_name": "Cliente Demo", "owner_type": "Client", "planned_kg": 100},
        ],
    )
    b = runtime.ledger.post_batch(
        s.id,
        cost_inputs={"driver_cost": 100, "store_cost": 50, "freight_cost": 30, "postal_cost": 20},
        arrivals=[
            {"owner_name": settings.partner1, "arrived_kg": 100},
            {"owner_name": settings.partner2, "arrived_kg": 100},
            {"owner_name": "Cliente Demo", "arrived_kg": 50, "service_fee_per_kg": 2.5},
        ],
        batch_date="2026-01-20",
    )
    status = runtime.shutdown()
    print("Embarque creado:", s.id, "lote:", b.id, "net_profit:", b.net_profit, "sync:", status.value if status else "-")
