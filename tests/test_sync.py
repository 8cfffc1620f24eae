# tests/test_sync.py

import threading
import time

from cargo_erp.services.persistence import SyncStatus
from cargo_erp.services.sync import DebouncedSync


def test_rapid_changes_write_only_last_state():
    saved = []
    done = threading.Event()

    def save(payload):
        saved.append(payload)
        done.set()
        return SyncStatus.LIVE

    sync = DebouncedSync(save, delay=0.05)
    sync.schedule([{"v": 1}])
    sync.schedule([{"v": 2}])
    sync.schedule([{"v": 3}])

    assert done.wait(2)
    time.sleep(0.2)
    assert saved == [[{"v": 3}]]
    assert sync.status == SyncStatus.LIVE
    assert not sync.has_pending


def test_flush_writes_pending_immediately():
    saved = []
    sync = DebouncedSync(lambda p: saved.append(p) or SyncStatus.OFFLINE, delay=60)

    assert sync.flush() is None
    sync.schedule([{"v": 1}])
    assert sync.has_pending
    assert sync.flush() == SyncStatus.OFFLINE
    assert saved == [[{"v": 1}]]
    assert sync.flush() is None


def test_cancel_drops_pending_write():
    saved = []
    sync = DebouncedSync(lambda p: saved.append(p) or SyncStatus.LIVE, delay=0.05)
    sync.schedule([{"v": 1}])
    sync.cancel()
    time.sleep(0.2)
    assert saved == []


def test_failed_save_sets_error_status():
    def boom(payload):
        raise RuntimeError("network down")

    sync = DebouncedSync(boom, delay=60)
    sync.schedule([])
    assert sync.flush() == SyncStatus.ERROR
    assert sync.status == SyncStatus.ERROR
    assert "network down" in sync.last_error


def test_older_write_never_lands_after_newer():
    saved = []
    in_flight = threading.Event()
    release = threading.Event()

    def save(payload):
        if payload == [{"v": "x"}]:
            in_flight.set()
            release.wait(2)
        saved.append(payload)
        return SyncStatus.LIVE

    sync = DebouncedSync(save, delay=0.01)

    # X ocupa el escritor
    sync.schedule([{"v": "x"}])
    assert in_flight.wait(2)

    # A dispara su timer y queda esperando al escritor
    sync.schedule([{"v": "a"}])
    time.sleep(0.1)

    # B llega después y se fuerza con flush desde otro hilo
    sync.schedule([{"v": "b"}])
    flusher = threading.Thread(target=sync.flush)
    flusher.start()
    time.sleep(0.05)

    release.set()
    flusher.join(2)
    time.sleep(0.1)

    assert saved[0] == [{"v": "x"}]
    assert saved[-1] == [{"v": "b"}]
    assert not sync.has_pending
