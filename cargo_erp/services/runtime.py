# cargo_erp/services/runtime.py

from __future__ import annotations

from typing import Optional

from flask import Flask, current_app

from cargo_erp.services.ledger import Ledger
from cargo_erp.services.persistence import LedgerStore, SyncStatus
from cargo_erp.services.settings import BusinessSettings, load_settings, save_settings
from cargo_erp.services.sync import DebouncedSync
from cargo_erp.utils.logging import get_logger

logger = get_logger("runtime")

EXTENSION_KEY = "cargo_erp"


class ErpRuntime:
    """
    Estado de la app (ledger + store + sync + settings) como objeto explícito,
    uno por instancia de Flask (app.extensions["cargo_erp"]).
    """

    def __init__(self, app: Flask):
        cfg = app.config
        self.app = app
        self.settings_path: str = cfg["SETTINGS_PATH"]
        self.settings: BusinessSettings = load_settings(self.settings_path)

        self.store = LedgerStore(
            cache_path=cfg["LOCAL_CACHE_PATH"],
            remote_enabled=bool(cfg.get("REMOTE_SYNC_ENABLED", True)),
        )
        self.sync = DebouncedSync(self._save_in_context, delay=float(cfg.get("SYNC_DEBOUNCE_SECONDS", 1.5)))
        self.ledger = Ledger(
            status_tolerance=float(cfg.get("STATUS_TOLERANCE_KG", 0.5)),
            manifest_tolerance=float(cfg.get("MANIFEST_TOLERANCE_KG", 0.1)),
            on_change=self._on_ledger_change,
        )
        self.loaded = False

    @property
    def status(self) -> SyncStatus:
        return self.sync.status

    def _save_in_context(self, payload) -> SyncStatus:
        # el timer corre en otro hilo: necesita su propio app context
        with self.app.app_context():
            return self.store.save_payload(payload)

    def _on_ledger_change(self, ledger: Ledger) -> None:
        self.sync.schedule(ledger.to_payload())

    def load(self) -> SyncStatus:
        """Carga (o recarga) el estado autoritativo. Descarta guardados pendientes."""
        self.sync.cancel()
        shipments, status = self.store.load()
        self.ledger.replace_all(shipments, notify=False)
        self.sync.status = status
        self.loaded = True
        logger.info(f"Runtime loaded shipments={len(shipments)} status={status.value}")
        return status

    def ensure_loaded(self) -> None:
        if not self.loaded:
            self.load()

    def update_settings(self, settings: BusinessSettings) -> BusinessSettings:
        self.settings = settings
        save_settings(settings, self.settings_path)
        return settings

    def shutdown(self) -> Optional[SyncStatus]:
        return self.sync.flush()


def init_runtime(app: Flask) -> ErpRuntime:
    runtime = ErpRuntime(app)
    app.extensions[EXTENSION_KEY] = runtime
    return runtime


def get_runtime() -> ErpRuntime:
    runtime: ErpRuntime = current_app.extensions[EXTENSION_KEY]
    runtime.ensure_loaded()
    return runtime
