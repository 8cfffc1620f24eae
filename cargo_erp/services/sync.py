# cargo_erp/services/sync.py

from __future__ import annotations

import threading
from typing import Callable, List, Optional

from cargo_erp.services.persistence import SyncStatus
from cargo_erp.utils.logging import get_logger

logger = get_logger("sync")

DEFAULT_DELAY_SECONDS = 1.5


class _PendingSave:
    """Una escritura agendada. cancel() la invalida aunque el timer ya haya disparado."""

    def __init__(self, payload: List[dict], generation: int):
        self.payload = payload
        self.generation = generation
        self.cancelled = threading.Event()
        self.timer: Optional[threading.Timer] = None

    def cancel(self) -> None:
        self.cancelled.set()
        if self.timer is not None:
            self.timer.cancel()


class DebouncedSync:
    """
    Guardado diferido del ledger:
      - schedule(payload) agenda una escritura en `delay` segundos
      - una nueva mutación cancela la pendiente y re-agenda (solo se escribe el último estado)
      - flush() escribe ya lo pendiente (apagado / tests)

    Cada agenda lleva una generación creciente; una escritura más vieja que la
    última ya escrita se descarta, así el store nunca termina con estado viejo.

    save_fn(payload) -> SyncStatus. Si falla, el estado queda en ERROR y la app sigue.
    """

    def __init__(self, save_fn: Callable[[List[dict]], SyncStatus], delay: float = DEFAULT_DELAY_SECONDS):
        self.save_fn = save_fn
        self.delay = delay
        self.status: SyncStatus = SyncStatus.OFFLINE
        self.last_error: Optional[str] = None
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._pending: Optional[_PendingSave] = None
        self._generation = 0
        self._written_generation = 0

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def schedule(self, payload: List[dict]) -> None:
        with self._lock:
            self._generation += 1
            task = _PendingSave(payload, self._generation)
            if self._pending is not None:
                self._pending.cancel()
                logger.debug("Pending save superseded")
            self._pending = task
            task.timer = threading.Timer(self.delay, self._run, args=(task,))
            task.timer.daemon = True
            task.timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None

    def flush(self) -> Optional[SyncStatus]:
        with self._lock:
            task = self._pending
            if task is None:
                return None
            task.cancel()
            self._pending = None
        return self._write(task)

    def _run(self, task: _PendingSave) -> None:
        with self._lock:
            if task.cancelled.is_set() or self._pending is not task:
                return
            self._pending = None
        self._write(task)

    def _write(self, task: _PendingSave) -> SyncStatus:
        # una sola escritura en vuelo a la vez, nunca una más vieja que la última
        with self._write_lock:
            if task.generation <= self._written_generation:
                logger.debug(f"Stale save skipped generation={task.generation} written={self._written_generation}")
                return self.status
            self._written_generation = task.generation
            try:
                status = self.save_fn(task.payload)
                self.last_error = None
            except Exception as e:
                logger.exception(f"Background save failed: {e}")
                status = SyncStatus.ERROR
                self.last_error = str(e)
            self.status = status
            return status
