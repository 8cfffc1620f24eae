# cargo_erp/utils/money.py

import math
import re
import sys
from decimal import Decimal, InvalidOperation, ROUND_HALF_DOWN, ROUND_HALF_UP

EPSILON = sys.float_info.epsilon
CENTS = Decimal("0.01")


def to_safe_number(value) -> float:
    """
    Convierte cualquier entrada (form, JSON persistido, celda) a float.
    Nunca lanza: si no se puede interpretar devuelve 0 (nunca otro número).
      - None / "" / "nan" -> 0
      - '1e3' -> 1000.0
      - '$ 1,234.50' -> 1234.5
      - '1.234,50' -> 1234.5
      - '5-3' -> 0
      - NaN / inf -> 0
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float, Decimal)):
        try:
            f = float(value)
        except (ValueError, OverflowError):
            return 0.0
        return f if math.isfinite(f) else 0.0

    s = str(value).strip()
    if s == "" or s.lower() in ("nan", "none", "null", "undefined"):
        return 0.0

    # Número plano (incluye notación científica)
    try:
        f = float(s)
    except ValueError:
        pass
    else:
        return f if math.isfinite(f) else 0.0

    # Quitar moneda/letras, dejar dígitos, separadores y signo -
    s = re.sub(r"[^\d,.\-]", "", s)
    if s in ("", "-"):
        return 0.0

    # "1.234,56" -> decimal ","  /  "1,234.56" -> decimal "."
    if s.count(",") > 0 and s.count(".") > 0:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif s.count(",") == 1:
        s = s.replace(",", ".")
    elif s.count(",") > 1 or s.count(".") > 1:
        s = s.replace(",", "").replace(".", "")

    # un "-" que no va al inicio ("5-3") no es un número
    try:
        f = float(Decimal(s))
    except InvalidOperation:
        return 0.0

    return f if math.isfinite(f) else 0.0


def round2(value) -> float:
    """
    Redondea a 2 decimales sumando epsilon antes de cuantizar,
    para que 0.1 + 0.2 quede en 0.30 y no en 0.30000000000000004.
    Las mitades van hacia +infinito también en negativos: -22.625 -> -22.62.
    Idempotente: round2(round2(x)) == round2(x).
    """
    f = to_safe_number(value)
    biased = f + EPSILON
    rounding = ROUND_HALF_UP if biased >= 0 else ROUND_HALF_DOWN
    try:
        q = Decimal(repr(biased)).quantize(CENTS, rounding=rounding)
    except InvalidOperation:
        return f
    result = float(q)
    # evita "-0.0" en reportes
    return result if result != 0 else 0.0
