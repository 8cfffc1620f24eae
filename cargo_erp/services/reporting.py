# cargo_erp/services/reporting.py

from dataclasses import dataclass, field
from typing import List, Dict, Any

from cargo_erp.services.allocation import ArrivalBatch, profit_split
from cargo_erp.services.settings import BusinessSettings
from cargo_erp.utils.money import round2
from cargo_erp.utils.strings import name_key


@dataclass
class OwnerReportRow:
    owner_name: str
    owner_type: str
    arrived_kg: float
    rate_per_kg: float
    expense: float
    service_fee_per_kg: float
    revenue: float
    net_result: float
    is_main_partner: bool = False


@dataclass
class BatchReport:
    business_name: str
    currency: str
    shipment_name: str
    dispatch_date: str
    batch_id: str
    batch_date: str
    summary: Dict[str, Any]
    rows: List[OwnerReportRow] = field(default_factory=list)
    partner_split: List[Dict[str, Any]] = field(default_factory=list)


def build_batch_report(batch: ArrivalBatch, shipment, settings: BusinessSettings) -> BatchReport:
    """
    Conciliación de un lote, solo con los campos guardados en el lote.
      - Partner: gasto = kg * partner_per_kg_cost, resultado = -gasto
      - Client:  gasto = kg * client_per_kg_cost, ingreso = kg * fee, resultado = ingreso - gasto
    La utilidad neta se reparte 50/50 entre los dos Partners configurados.
    """
    main_partners = {name_key(p) for p in settings.partners}

    rows: List[OwnerReportRow] = []
    for item in batch.items:
        rate = batch.partner_per_kg_cost if item.is_partner else batch.client_per_kg_cost
        expense = round2(item.arrived_kg * rate)
        revenue = 0.0 if item.is_partner else round2(item.arrived_kg * item.service_fee_per_kg)
        rows.append(OwnerReportRow(
            owner_name=item.owner_name,
            owner_type=item.owner_type.value,
            arrived_kg=item.arrived_kg,
            rate_per_kg=rate,
            expense=expense,
            service_fee_per_kg=0.0 if item.is_partner else item.service_fee_per_kg,
            revenue=revenue,
            net_result=round2(revenue - expense),
            is_main_partner=name_key(item.owner_name) in main_partners,
        ))

    split = profit_split(batch.net_profit)

    summary = {
        "driver_cost": batch.driver_cost,
        "store_cost": batch.store_cost,
        "freight_cost": batch.freight_cost,
        "postal_cost": batch.postal_cost,
        "total_partner_kg": batch.total_partner_kg,
        "total_client_kg": batch.total_client_kg,
        "total_arrived_kg": batch.total_arrived_kg,
        "partner_per_kg_cost": batch.partner_per_kg_cost,
        "client_per_kg_cost": batch.client_per_kg_cost,
        "total_client_revenue": batch.total_client_revenue,
        "total_client_costs": batch.total_client_costs,
        "net_profit": batch.net_profit,
    }

    return BatchReport(
        business_name=settings.name,
        currency=settings.currency,
        shipment_name=shipment.name,
        dispatch_date=shipment.dispatch_date,
        batch_id=batch.id,
        batch_date=batch.batch_date,
        summary=summary,
        rows=rows,
        partner_split=[
            {"partner": settings.partner1, "share": split},
            {"partner": settings.partner2, "share": split},
        ],
    )
