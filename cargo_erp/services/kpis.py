# cargo_erp/services/kpis.py

from typing import Iterable, Dict, Any, List

from cargo_erp.services.allocation import OwnerType
from cargo_erp.services.progress import progress_percent
from cargo_erp.utils.dates import parse_date
from cargo_erp.utils.money import round2


def compute_dashboard_stats(shipments: Iterable, recent: int = 5) -> Dict[str, Any]:
    """
    Totales del tablero a partir de los campos YA guardados en cada lote
    (no se recalcula nada).

    NOTA:
    - total_weight = kg partners + kg clients de todos los lotes.
    - recent_batches = últimos `recent` lotes en orden de registro (para el gráfico).
    """
    total_revenue = 0.0
    total_client_costs = 0.0
    net_profit = 0.0
    partner_kg = 0.0
    client_kg = 0.0
    batch_count = 0
    chart: List[dict] = []

    shipment_count = 0
    for s in shipments:
        shipment_count += 1
        for b in s.batches:
            batch_count += 1
            total_revenue += b.total_client_revenue
            total_client_costs += b.total_client_costs
            net_profit += b.net_profit
            partner_kg += b.total_partner_kg
            client_kg += b.total_client_kg

            chart.append({
                "batch_id": b.id,
                "shipment": s.name,
                "batch_date": b.batch_date,
                "profit": b.net_profit,
                "revenue": b.total_client_revenue,
                "weight": b.total_arrived_kg,
            })

    return {
        "shipments": shipment_count,
        "batches": batch_count,
        "total_revenue": round2(total_revenue),
        "total_client_costs": round2(total_client_costs),
        "net_profit": round2(net_profit),
        "total_weight": round2(partner_kg + client_kg),
        "partner_kg": round2(partner_kg),
        "client_kg": round2(client_kg),
        "recent_batches": chart[-recent:] if recent else [],
    }


def compute_inventory(shipments: Iterable) -> Dict[str, Any]:
    """
    Stock por propietario sumando todos los embarques NO archivados.
    """
    by_owner: Dict[str, Dict[str, Any]] = {}

    for s in shipments:
        if s.is_archived:
            continue
        for line in s.items:
            row = by_owner.setdefault(line.owner_name, {
                "name": line.owner_name,
                "type": line.owner_type.value,
                "arrived": 0.0,
                "planned": 0.0,
                "remaining": 0.0,
            })
            row["arrived"] = round2(row["arrived"] + line.arrived_kg)
            row["planned"] = round2(row["planned"] + line.planned_kg)
            row["remaining"] = max(0.0, round2(row["planned"] - row["arrived"]))

    owners = list(by_owner.values())
    for row in owners:
        row["pct"] = min(100.0, round2(row["arrived"] / row["planned"] * 100)) if row["planned"] > 0 else 0.0

    return {
        "owners": owners,
        "total_in_store": round2(sum(r["arrived"] for r in owners)),
        "partners_in_store": round2(sum(r["arrived"] for r in owners if r["type"] == OwnerType.PARTNER.value)),
        "clients_in_store": round2(sum(r["arrived"] for r in owners if r["type"] == OwnerType.CLIENT.value)),
    }


def all_batches(shipments: Iterable) -> List[Dict[str, Any]]:
    """
    Historial: todos los lotes con nombre/fecha del embarque, más reciente primero.
    """
    rows = []
    for s in shipments:
        for b in s.batches:
            d = b.to_dict()
            d["shipment_name"] = s.name
            d["dispatch_date"] = s.dispatch_date
            rows.append(d)

    return sorted(rows, key=lambda r: parse_date(r.get("batch_date")) or parse_date("1970-01-01"), reverse=True)


def shipment_overview(shipment) -> Dict[str, Any]:
    d = shipment.to_dict()
    d["total_arrived_kg"] = shipment.total_arrived_kg
    d["remaining_kg"] = max(0.0, round2(shipment.total_planned_kg - shipment.total_arrived_kg))
    d["progress"] = progress_percent(shipment)
    return d
