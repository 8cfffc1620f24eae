# cargo_erp/utils/strings.py

import re
import unicodedata


def clean_name(value) -> str:
    """
    Nombre de propietario/embarque:
    - string
    - trim
    - colapsa espacios
    """
    if value is None:
        return ""
    s = str(value).strip()
    return re.sub(r"\s+", " ", s)


def name_key(value) -> str:
    """
    Llave para comparar nombres (sin tildes, sin mayúsculas).
    'José  Pérez' y 'jose perez' son el mismo propietario.
    """
    s = clean_name(value)
    s = unicodedata.normalize("NFD", s)
    s = "".join(c for c in s if unicodedata.category(c) != "Mn")
    return s.upper()
