# cargo_erp/services/settings.py

import json
import os
from dataclasses import dataclass, asdict
from typing import Optional

from cargo_erp.utils.logging import get_logger
from cargo_erp.utils.strings import clean_name

logger = get_logger("settings")


@dataclass
class BusinessSettings:
    name: str = "AbuRayhan Export"
    logo_url: Optional[str] = None
    partner1: str = "AbuRayhan (Ethiopia)"
    partner2: str = "Tamaam (USA)"
    currency: str = "USD ($)"

    @property
    def partners(self):
        return (self.partner1, self.partner2)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "BusinessSettings":
        base = cls()
        d = d or {}
        return cls(
            name=clean_name(d.get("name")) or base.name,
            logo_url=d.get("logo_url") or None,
            partner1=clean_name(d.get("partner1")) or base.partner1,
            partner2=clean_name(d.get("partner2")) or base.partner2,
            currency=clean_name(d.get("currency")) or base.currency,
        )


def load_settings(path: str) -> BusinessSettings:
    """
    Lee la configuración local. Si no existe o está corrupta, usa los defaults.
    """
    if not path or not os.path.exists(path):
        return BusinessSettings()

    try:
        with open(path, "r", encoding="utf-8") as f:
            return BusinessSettings.from_dict(json.load(f))
    except (OSError, ValueError) as e:
        logger.warning(f"Settings unreadable path={path}: {e}. Using defaults.")
        return BusinessSettings()


def save_settings(settings: BusinessSettings, path: str) -> None:
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings.to_dict(), f, ensure_ascii=False, indent=2)
    logger.info(f"Saved settings path={path} name={settings.name}")
