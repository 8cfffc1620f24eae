# cargo_erp/services/allocation.py

from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Iterable, List, Tuple, Any, Dict

from cargo_erp.utils.money import to_safe_number, round2


class OwnerType(str, Enum):
    PARTNER = "Partner"
    CLIENT = "Client"

    @classmethod
    def parse(cls, value) -> "OwnerType":
        """
        'partner' / 'PARTNER' / OwnerType.PARTNER -> OwnerType.PARTNER.
        Cualquier otro valor se trata como Client.
        """
        if isinstance(value, OwnerType):
            return value
        if str(value or "").strip().lower() == "partner":
            return cls.PARTNER
        return cls.CLIENT


@dataclass(frozen=True)
class CostInputs:
    driver_cost: float = 0.0
    store_cost: float = 0.0
    freight_cost: float = 0.0   # solo Partners
    postal_cost: float = 0.0    # solo Clients

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CostInputs":
        d = d or {}
        return cls(
            driver_cost=round2(d.get("driver_cost")),
            store_cost=round2(d.get("store_cost")),
            freight_cost=round2(d.get("freight_cost")),
            postal_cost=round2(d.get("postal_cost")),
        )


@dataclass(frozen=True)
class ArrivalItem:
    owner_name: str
    owner_type: OwnerType
    arrived_kg: float = 0.0
    service_fee_per_kg: float = 0.0  # solo tiene sentido para Clients

    @property
    def is_partner(self) -> bool:
        return self.owner_type == OwnerType.PARTNER

    def to_dict(self) -> dict:
        return {
            "owner_name": self.owner_name,
            "owner_type": self.owner_type.value,
            "arrived_kg": self.arrived_kg,
            "service_fee_per_kg": self.service_fee_per_kg,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ArrivalItem":
        return cls(
            owner_name=str(d.get("owner_name") or ""),
            owner_type=OwnerType.parse(d.get("owner_type")),
            arrived_kg=round2(d.get("arrived_kg")),
            service_fee_per_kg=round2(d.get("service_fee_per_kg")),
        )


@dataclass(frozen=True)
class ArrivalBatch:
    """
    Foto financiera inmutable de un arribo.
    Los campos derivados se calculan UNA vez (al guardar) y se persisten como datos;
    al cargar no se recalculan, así los reportes históricos no cambian.
    """
    driver_cost: float
    store_cost: float
    freight_cost: float
    postal_cost: float
    items: Tuple[ArrivalItem, ...]

    total_partner_kg: float
    total_client_kg: float
    partner_per_kg_cost: float
    client_per_kg_cost: float
    total_client_revenue: float
    total_client_costs: float
    net_profit: float

    id: str = ""
    shipment_id: str = ""
    batch_date: str = ""

    @property
    def total_arrived_kg(self) -> float:
        return round2(self.total_partner_kg + self.total_client_kg)

    @property
    def cost_inputs(self) -> CostInputs:
        return CostInputs(
            driver_cost=self.driver_cost,
            store_cost=self.store_cost,
            freight_cost=self.freight_cost,
            postal_cost=self.postal_cost,
        )

    def to_dict(self) -> dict:
        d = asdict(self)
        d["items"] = [i.to_dict() for i in self.items]
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ArrivalBatch":
        # Se leen los derivados tal cual fueron guardados (solo saneados).
        return cls(
            driver_cost=round2(d.get("driver_cost")),
            store_cost=round2(d.get("store_cost")),
            freight_cost=round2(d.get("freight_cost")),
            postal_cost=round2(d.get("postal_cost")),
            items=tuple(ArrivalItem.from_dict(i) for i in (d.get("items") or [])),
            total_partner_kg=round2(d.get("total_partner_kg")),
            total_client_kg=round2(d.get("total_client_kg")),
            partner_per_kg_cost=round2(d.get("partner_per_kg_cost")),
            client_per_kg_cost=round2(d.get("client_per_kg_cost")),
            total_client_revenue=round2(d.get("total_client_revenue")),
            total_client_costs=round2(d.get("total_client_costs")),
            net_profit=round2(d.get("net_profit")),
            id=str(d.get("id") or ""),
            shipment_id=str(d.get("shipment_id") or ""),
            batch_date=str(d.get("batch_date") or ""),
        )


def _as_cost_inputs(cost_inputs) -> CostInputs:
    if isinstance(cost_inputs, CostInputs):
        return CostInputs(
            driver_cost=round2(cost_inputs.driver_cost),
            store_cost=round2(cost_inputs.store_cost),
            freight_cost=round2(cost_inputs.freight_cost),
            postal_cost=round2(cost_inputs.postal_cost),
        )
    return CostInputs.from_dict(cost_inputs)


def _as_item(a) -> ArrivalItem:
    if isinstance(a, ArrivalItem):
        return ArrivalItem(
            owner_name=a.owner_name,
            owner_type=OwnerType.parse(a.owner_type),
            arrived_kg=round2(a.arrived_kg),
            service_fee_per_kg=round2(a.service_fee_per_kg),
        )
    return ArrivalItem.from_dict(a)


def compute_batch_financials(cost_inputs, owner_arrivals: Iterable) -> ArrivalBatch:
    """
    Motor de asignación por lote (fórmula por categoría):

      partner_per_kg = (driver + store + freight) / kg_partners   (0 si no hay kg)
      client_per_kg  = (driver + store + postal)  / kg_clients    (0 si no hay kg)
      revenue        = SUM(kg_client * fee)
      client_costs   = kg_clients * client_per_kg
      net_profit     = revenue - client_costs

    La utilidad se define solo del lado Client: los costos de Partners NO se restan.
    Función total: no hace I/O, no lanza, no valida negativos ni límites de manifiesto
    (eso es responsabilidad del ledger). id / shipment_id se asignan afuera.
    """
    costs = _as_cost_inputs(cost_inputs)
    items: List[ArrivalItem] = [_as_item(a) for a in owner_arrivals]

    partner_items = [i for i in items if i.owner_type == OwnerType.PARTNER]
    client_items = [i for i in items if i.owner_type == OwnerType.CLIENT]

    total_partner_kg = round2(sum(i.arrived_kg for i in partner_items))
    total_client_kg = round2(sum(i.arrived_kg for i in client_items))

    partner_per_kg_cost = (
        round2((costs.driver_cost + costs.store_cost + costs.freight_cost) / total_partner_kg)
        if total_partner_kg > 0
        else 0.0
    )
    client_per_kg_cost = (
        round2((costs.driver_cost + costs.store_cost + costs.postal_cost) / total_client_kg)
        if total_client_kg > 0
        else 0.0
    )

    total_client_revenue = round2(sum(i.arrived_kg * i.service_fee_per_kg for i in client_items))
    total_client_costs = round2(total_client_kg * client_per_kg_cost)
    net_profit = round2(total_client_revenue - total_client_costs)

    return ArrivalBatch(
        driver_cost=costs.driver_cost,
        store_cost=costs.store_cost,
        freight_cost=costs.freight_cost,
        postal_cost=costs.postal_cost,
        items=tuple(items),
        total_partner_kg=total_partner_kg,
        total_client_kg=total_client_kg,
        partner_per_kg_cost=partner_per_kg_cost,
        client_per_kg_cost=client_per_kg_cost,
        total_client_revenue=total_client_revenue,
        total_client_costs=total_client_costs,
        net_profit=net_profit,
    )


def profit_split(net_profit) -> float:
    """50/50 fijo entre los dos Partners, sin importar su peso."""
    return round2(to_safe_number(net_profit) / 2)
