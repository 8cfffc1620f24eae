# cargo_erp/utils/dates.py

from datetime import datetime, date


def parse_date(value):
    """
    Convierte strings/datetime a date cuando sea posible.
    Si no puede, devuelve None.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    s = str(value).strip()
    if not s:
        return None

    # formatos que llegan desde los formularios y del JSON persistido
    formats = [
        "%Y-%m-%d",
        "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%dT%H:%M:%S.%fZ",
        "%d/%m/%Y",
        "%d-%m-%Y",
    ]

    for fmt in formats:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue

    return None


def iso_date(value, default=None) -> str:
    """
    Fecha normalizada 'YYYY-MM-DD'. Si no se puede interpretar usa default (o hoy).
    """
    d = parse_date(value)
    if d is None:
        d = parse_date(default) if default is not None else date.today()
    return d.isoformat()
