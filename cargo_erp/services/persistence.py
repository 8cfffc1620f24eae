# cargo_erp/services/persistence.py

from __future__ import annotations

import json
import os
from enum import Enum
from typing import List, Tuple

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from cargo_erp.extensions import db
from cargo_erp.models import ErpState
from cargo_erp.models.erp_state import MAIN_STATE_ID
from cargo_erp.services.ledger import Ledger, Shipment
from cargo_erp.utils.logging import get_logger

logger = get_logger("persistence")


class SyncStatus(str, Enum):
    LIVE = "Live"
    OFFLINE = "Offline"
    ERROR = "Error"


class LedgerStore:
    """
    Persistencia del ledger completo:
      - remoto: una fila upsert en erp_state (SQLAlchemy)
      - local: archivo JSON de respaldo, se escribe siempre

    "Leer todo, mutar en memoria, escribir todo": sin bloqueo, el último que
    guarda gana. Requiere app context para la parte remota.
    """

    def __init__(self, cache_path: str, remote_enabled: bool = True):
        self.cache_path = cache_path
        self.remote_enabled = remote_enabled

    # -----------------------------
    # Local
    # -----------------------------
    def _write_cache(self, payload: List[dict]) -> None:
        folder = os.path.dirname(self.cache_path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        tmp = f"{self.cache_path}.tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False)
        os.replace(tmp, self.cache_path)

    def _read_cache(self) -> List[dict]:
        if not os.path.exists(self.cache_path):
            return []
        try:
            with open(self.cache_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Local cache unreadable path={self.cache_path}: {e}")
            return []
        return data if isinstance(data, list) else []

    # -----------------------------
    # Remoto
    # -----------------------------
    def _ensure_table(self) -> None:
        ErpState.__table__.create(bind=db.engine, checkfirst=True)

    def _read_remote(self) -> List[dict]:
        self._ensure_table()
        row = db.session.get(ErpState, MAIN_STATE_ID)
        data = row.data if row else []
        return data if isinstance(data, list) else []

    def _write_remote(self, payload: List[dict]) -> None:
        self._ensure_table()
        row = db.session.get(ErpState, MAIN_STATE_ID)
        if row is None:
            row = ErpState(id=MAIN_STATE_ID, data=payload)
            db.session.add(row)
        else:
            row.replace_data(payload)
        db.session.commit()

    def check_connection(self) -> bool:
        if not self.remote_enabled:
            return False
        try:
            db.session.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Remote store unreachable: {e}")
            db.session.rollback()
            return False

    # -----------------------------
    # Contrato
    # -----------------------------
    def load(self) -> Tuple[List[Shipment], SyncStatus]:
        if self.remote_enabled:
            try:
                payload = self._read_remote()
                # refrescar respaldo local cada vez que el remoto responde
                try:
                    self._write_cache(payload)
                except OSError as e:
                    logger.warning(f"Could not refresh local cache: {e}")
                logger.info(f"Loaded from remote shipments={len(payload)}")
                return Ledger.shipments_from_payload(payload), SyncStatus.LIVE
            except (SQLAlchemyError, OSError) as e:
                db.session.rollback()
                logger.warning(f"Remote load failed, using local cache: {e}")

        payload = self._read_cache()
        logger.info(f"Loaded from local cache shipments={len(payload)}")
        return Ledger.shipments_from_payload(payload), SyncStatus.OFFLINE

    def save_payload(self, payload: List[dict]) -> SyncStatus:
        # 1) respaldo local inmediato
        try:
            self._write_cache(payload)
        except OSError as e:
            logger.exception(f"Local cache write failed: {e}")

        if not self.remote_enabled:
            return SyncStatus.OFFLINE

        # 2) remoto
        try:
            self._write_remote(payload)
        except (SQLAlchemyError, OSError) as e:
            db.session.rollback()
            logger.error(f"Remote save failed, data kept locally: {e}")
            return SyncStatus.ERROR

        logger.info(f"Saved to remote shipments={len(payload)}")
        return SyncStatus.LIVE

    def save(self, shipments: List[Shipment]) -> SyncStatus:
        return self.save_payload([s.to_dict() for s in shipments])
