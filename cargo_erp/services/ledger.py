# cargo_erp/services/ledger.py

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Optional, Any

from cargo_erp.services.allocation import (
    ArrivalBatch,
    ArrivalItem,
    CostInputs,
    OwnerType,
    compute_batch_financials,
)
from cargo_erp.services.progress import (
    STATUS_TOLERANCE_KG,
    ShipmentStatus,
    arrived_total,
    shipment_status,
)
from cargo_erp.services.settings import BusinessSettings
from cargo_erp.utils.dates import iso_date
from cargo_erp.utils.logging import get_logger
from cargo_erp.utils.money import round2
from cargo_erp.utils.strings import clean_name, name_key

logger = get_logger("ledger")

MANIFEST_TOLERANCE_KG = 0.1


class LedgerValidationError(ValueError):
    """Entrada rechazada antes de tocar el ledger (se muestra al usuario)."""


class ShipmentNotFound(LookupError):
    pass


class BatchNotFound(LookupError):
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class ManifestLine:
    owner_name: str
    owner_type: OwnerType
    planned_kg: float
    arrived_kg: float = 0.0  # acumulado de todos los lotes

    @property
    def remaining_kg(self) -> float:
        return round2(self.planned_kg - self.arrived_kg)

    def to_dict(self) -> dict:
        return {
            "owner_name": self.owner_name,
            "owner_type": self.owner_type.value,
            "planned_kg": self.planned_kg,
            "arrived_kg": self.arrived_kg,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ManifestLine":
        return cls(
            owner_name=clean_name(d.get("owner_name")),
            owner_type=OwnerType.parse(d.get("owner_type")),
            planned_kg=round2(d.get("planned_kg")),
            arrived_kg=round2(d.get("arrived_kg")),
        )


@dataclass
class Shipment:
    id: str
    name: str
    dispatch_date: str
    total_planned_kg: float
    items: List[ManifestLine] = field(default_factory=list)
    batches: List[ArrivalBatch] = field(default_factory=list)
    status: ShipmentStatus = ShipmentStatus.IN_TRANSIT
    is_archived: bool = False

    @property
    def total_arrived_kg(self) -> float:
        return arrived_total(self)

    def line_for(self, owner_name: str) -> Optional[ManifestLine]:
        key = name_key(owner_name)
        for line in self.items:
            if name_key(line.owner_name) == key:
                return line
        return None

    def batch_by_id(self, batch_id: str) -> ArrivalBatch:
        for b in self.batches:
            if b.id == batch_id:
                return b
        raise BatchNotFound(f"Lote no existe: {batch_id}")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "dispatch_date": self.dispatch_date,
            "total_planned_kg": self.total_planned_kg,
            "status": self.status.value,
            "is_archived": self.is_archived,
            "items": [i.to_dict() for i in self.items],
            "batches": [b.to_dict() for b in self.batches],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Shipment":
        return cls(
            id=str(d.get("id") or _new_id()),
            name=clean_name(d.get("name")),
            dispatch_date=iso_date(d.get("dispatch_date")),
            total_planned_kg=round2(d.get("total_planned_kg")),
            items=[ManifestLine.from_dict(i) for i in (d.get("items") or [])],
            batches=[ArrivalBatch.from_dict(b) for b in (d.get("batches") or [])],
            status=ShipmentStatus.parse(d.get("status")),
            is_archived=bool(d.get("is_archived", False)),
        )


def default_manifest(settings: BusinessSettings) -> List[ManifestLine]:
    """Manifiesto inicial: los dos Partners configurados, sin peso asignado."""
    return [
        ManifestLine(owner_name=settings.partner1, owner_type=OwnerType.PARTNER, planned_kg=0.0),
        ManifestLine(owner_name=settings.partner2, owner_type=OwnerType.PARTNER, planned_kg=0.0),
    ]


def _field(obj, name, default=None):
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class Ledger:
    """
    Colección en memoria de embarques. Único escritor; cada mutación
    llama on_change (la app lo usa para agendar el guardado diferido).
    """

    def __init__(
        self,
        shipments: Optional[Iterable[Shipment]] = None,
        status_tolerance: float = STATUS_TOLERANCE_KG,
        manifest_tolerance: float = MANIFEST_TOLERANCE_KG,
        on_change: Optional[Callable[["Ledger"], None]] = None,
    ):
        self.shipments: List[Shipment] = list(shipments or [])
        self.status_tolerance = status_tolerance
        self.manifest_tolerance = manifest_tolerance
        self.on_change = on_change

    # -----------------------------
    # Serialización
    # -----------------------------
    def to_payload(self) -> List[dict]:
        return [s.to_dict() for s in self.shipments]

    @staticmethod
    def shipments_from_payload(payload: Iterable[dict]) -> List[Shipment]:
        return [Shipment.from_dict(d) for d in (payload or []) if isinstance(d, dict)]

    def replace_all(self, shipments: Iterable[Shipment], notify: bool = True) -> None:
        self.shipments = list(shipments)
        if notify:
            self._changed()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self)

    # -----------------------------
    # Consultas
    # -----------------------------
    def get_shipment(self, shipment_id: str) -> Shipment:
        for s in self.shipments:
            if s.id == shipment_id:
                return s
        raise ShipmentNotFound(f"Embarque no existe: {shipment_id}")

    def active_shipments(self) -> List[Shipment]:
        return [s for s in self.shipments if not s.is_archived]

    def archived_shipments(self) -> List[Shipment]:
        return [s for s in self.shipments if s.is_archived]

    # -----------------------------
    # Embarques
    # -----------------------------
    def create_shipment(
        self,
        name: str,
        dispatch_date,
        total_planned_kg,
        items: Iterable,
        auto_balance: bool = False,
    ) -> Shipment:
        name = clean_name(name)
        target = round2(total_planned_kg)

        if not name:
            raise LedgerValidationError("Ingrese el nombre del embarque.")
        if target <= 0:
            raise LedgerValidationError("El peso total planeado debe ser mayor a 0.")

        lines: List[ManifestLine] = []
        seen = set()
        for it in items:
            owner = clean_name(_field(it, "owner_name"))
            if not owner:
                raise LedgerValidationError("Uno o más propietarios del manifiesto no tienen nombre.")
            key = name_key(owner)
            if key in seen:
                raise LedgerValidationError(f"Propietario duplicado en el manifiesto: {owner}")
            seen.add(key)

            planned = round2(_field(it, "planned_kg"))
            if planned < 0:
                raise LedgerValidationError(f"Peso planeado negativo para {owner}.")

            lines.append(ManifestLine(
                owner_name=owner,
                owner_type=OwnerType.parse(_field(it, "owner_type")),
                planned_kg=planned,
            ))

        if not lines:
            raise LedgerValidationError("El manifiesto debe tener al menos un propietario.")

        assigned = round2(sum(l.planned_kg for l in lines))
        if abs(assigned - target) > self.manifest_tolerance:
            if not auto_balance:
                raise LedgerValidationError(
                    f"Peso asignado {assigned}kg no coincide con el objetivo {target}kg."
                )
            others = round2(sum(l.planned_kg for l in lines[:-1]))
            lines[-1].planned_kg = max(0.0, round2(target - others))
            logger.info(f"Auto-balance shipment={name} last_owner={lines[-1].owner_name} planned={lines[-1].planned_kg}")

        shipment = Shipment(
            id=_new_id(),
            name=name,
            dispatch_date=iso_date(dispatch_date),
            total_planned_kg=target,
            items=lines,
            status=ShipmentStatus.IN_TRANSIT,
        )
        self.shipments.insert(0, shipment)
        logger.info(f"Shipment created id={shipment.id} name={name} planned={target} owners={len(lines)}")
        self._changed()
        return shipment

    def toggle_archive(self, shipment_id: str) -> Shipment:
        s = self.get_shipment(shipment_id)
        s.is_archived = not s.is_archived
        logger.info(f"Shipment archive toggled id={shipment_id} archived={s.is_archived}")
        self._changed()
        return s

    def delete_shipment(self, shipment_id: str) -> Shipment:
        s = self.get_shipment(shipment_id)
        self.shipments = [x for x in self.shipments if x.id != shipment_id]
        logger.info(f"Shipment deleted id={shipment_id} batches={len(s.batches)}")
        self._changed()
        return s

    # -----------------------------
    # Lotes de arribo
    # -----------------------------
    def _validate_arrivals(self, shipment: Shipment, arrivals: Iterable) -> List[ArrivalItem]:
        items: List[ArrivalItem] = []
        seen = set()

        for a in arrivals:
            owner = clean_name(_field(a, "owner_name"))
            line = shipment.line_for(owner)
            if line is None:
                raise LedgerValidationError(f"{owner or '(sin nombre)'} no está en el manifiesto de {shipment.name}.")
            key = name_key(owner)
            if key in seen:
                raise LedgerValidationError(f"{owner} aparece dos veces en el lote.")
            seen.add(key)

            kg = round2(_field(a, "arrived_kg"))
            fee = round2(_field(a, "service_fee_per_kg"))
            if kg < 0 or fee < 0:
                raise LedgerValidationError(f"Peso y tarifa de {owner} no pueden ser negativos.")

            if kg > line.remaining_kg + self.manifest_tolerance:
                raise LedgerValidationError(
                    f"{line.owner_name} excede su límite de manifiesto de {line.remaining_kg}kg."
                )

            # el tipo viene del manifiesto: es inmutable una vez creado el embarque
            items.append(ArrivalItem(
                owner_name=line.owner_name,
                owner_type=line.owner_type,
                arrived_kg=kg,
                service_fee_per_kg=fee,
            ))

        total = round2(sum(i.arrived_kg for i in items))
        if total <= 0:
            raise LedgerValidationError("Registre algún peso para finalizar el lote.")
        return items

    def _refresh_status(self, shipment: Shipment) -> None:
        shipment.status = shipment_status(shipment, self.status_tolerance)

    def post_batch(self, shipment_id: str, cost_inputs, arrivals: Iterable, batch_date=None) -> ArrivalBatch:
        shipment = self.get_shipment(shipment_id)
        if shipment.is_archived:
            raise LedgerValidationError("No se pueden registrar arribos en un embarque archivado.")
        if shipment_status(shipment, self.status_tolerance) == ShipmentStatus.COMPLETED:
            raise LedgerValidationError(f"El embarque {shipment.name} ya arribó completo.")

        items = self._validate_arrivals(shipment, arrivals)

        computed = compute_batch_financials(cost_inputs, items)
        batch = replace(
            computed,
            id=_new_id(),
            shipment_id=shipment.id,
            batch_date=iso_date(batch_date),
        )

        for item in batch.items:
            line = shipment.line_for(item.owner_name)
            line.arrived_kg = round2(line.arrived_kg + item.arrived_kg)

        shipment.batches.append(batch)
        self._refresh_status(shipment)

        logger.info(
            f"Batch posted shipment={shipment.id} batch={batch.id} kg={batch.total_arrived_kg} "
            f"net_profit={batch.net_profit} status={shipment.status.value}"
        )
        self._changed()
        return batch

    def delete_batch(self, shipment_id: str, batch_id: str) -> ArrivalBatch:
        """Borra el lote y revierte su aporte al peso acumulado por propietario."""
        shipment = self.get_shipment(shipment_id)
        batch = shipment.batch_by_id(batch_id)

        for item in batch.items:
            line = shipment.line_for(item.owner_name)
            if line is None:
                logger.warning(f"Batch owner missing from manifest shipment={shipment_id} owner={item.owner_name}")
                continue
            line.arrived_kg = max(0.0, round2(line.arrived_kg - item.arrived_kg))

        shipment.batches = [b for b in shipment.batches if b.id != batch_id]
        self._refresh_status(shipment)

        logger.info(f"Batch deleted shipment={shipment_id} batch={batch_id} status={shipment.status.value}")
        self._changed()
        return batch

    def update_batch_costs(self, shipment_id: str, batch_id: str, cost_inputs) -> ArrivalBatch:
        """
        Corrección explícita de costos: se recalcula el lote con los mismos items.
        Los pesos acumulados no cambian.
        """
        shipment = self.get_shipment(shipment_id)
        old = shipment.batch_by_id(batch_id)

        if not isinstance(cost_inputs, CostInputs):
            merged = asdict(old.cost_inputs)
            merged.update({k: v for k, v in (cost_inputs or {}).items() if k in merged})
            cost_inputs = merged

        updated = replace(
            compute_batch_financials(cost_inputs, old.items),
            id=old.id,
            shipment_id=old.shipment_id,
            batch_date=old.batch_date,
        )
        shipment.batches = [updated if b.id == batch_id else b for b in shipment.batches]

        logger.info(f"Batch costs updated shipment={shipment_id} batch={batch_id} net_profit={old.net_profit}->{updated.net_profit}")
        self._changed()
        return updated
