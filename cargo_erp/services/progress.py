# cargo_erp/services/progress.py

from enum import Enum

from cargo_erp.utils.money import round2

STATUS_TOLERANCE_KG = 0.5


class ShipmentStatus(str, Enum):
    DRAFT = "Draft"
    IN_TRANSIT = "In Transit"
    PARTIALLY_ARRIVED = "Partially Arrived"
    COMPLETED = "Completed"

    @classmethod
    def parse(cls, value) -> "ShipmentStatus":
        for s in cls:
            if s.value == value or s.name == value:
                return s
        return cls.IN_TRANSIT


def arrived_total(shipment) -> float:
    return round2(sum(i.arrived_kg for i in shipment.items))


def progress_percent(shipment) -> float:
    """
    % arribado vs planeado, tope 100. 0 si no hay peso planeado.
    """
    total = shipment.total_planned_kg
    if total <= 0:
        return 0.0
    return min(100.0, round2(arrived_total(shipment) / total * 100))


def derive_status(arrived_kg: float, planned_kg: float, tolerance: float = STATUS_TOLERANCE_KG) -> ShipmentStatus:
    """
    Estado en función del peso acumulado (sin memoria del estado anterior):
      - nada arribado            -> In Transit
      - arribado >= plan - tol   -> Completed
      - en medio                 -> Partially Arrived
    """
    arrived = round2(arrived_kg)
    if arrived <= 0:
        return ShipmentStatus.IN_TRANSIT
    if arrived >= round2(planned_kg) - tolerance:
        return ShipmentStatus.COMPLETED
    return ShipmentStatus.PARTIALLY_ARRIVED


def shipment_status(shipment, tolerance: float = STATUS_TOLERANCE_KG) -> ShipmentStatus:
    return derive_status(arrived_total(shipment), shipment.total_planned_kg, tolerance)
