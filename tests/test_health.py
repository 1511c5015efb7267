from doclens.api.client import APIResult
from doclens.polling.health import HealthMonitor, run_health_check
from doclens.state.store import SessionStore

HEALTHY = {
    "status": "healthy",
    "services": {
        "direct_processing": {"status": "healthy"},
        "vector_processing": {"status": "healthy"},
        "rag_qa": {"status": "healthy"},
    },
}


class StubClient:
    def __init__(self, health, rag):
        self.health = health
        self.rag = rag
        self.calls = 0

    def health_check(self):
        self.calls += 1
        return self.health

    def check_rag_health(self):
        return self.rag


def test_health_check_basic():
    snap = run_health_check(StubClient(APIResult.success(HEALTHY), APIResult.success({"capabilities": {}})))
    assert snap.online
    assert snap.services.direct_processing and snap.services.rag_qa


def test_health_failure_marks_offline():
    snap = run_health_check(StubClient(APIResult.failure("Unable to connect"), APIResult.success({})))
    assert not snap.online
    assert not snap.services.direct_processing


def test_rag_failure_only_disables_qa():
    snap = run_health_check(StubClient(APIResult.success(HEALTHY), APIResult.failure("HTTP 500: Error", 500)))
    assert snap.online
    assert snap.services.direct_processing
    assert not snap.services.rag_qa


def test_monitor_updates_store():
    store = SessionStore()
    monitor = HealthMonitor(StubClient(APIResult.success(HEALTHY), APIResult.success({})), store, interval=60)
    monitor.check_once()
    assert store.state.backend_health.online


def test_monitor_start_checks_immediately_and_stops():
    store = SessionStore()
    client = StubClient(APIResult.success(HEALTHY), APIResult.success({}))
    monitor = HealthMonitor(client, store, interval=60).start()
    try:
        assert client.calls == 1
        assert store.state.backend_health.services.rag_qa
        assert monitor.running
    finally:
        monitor.stop()
    assert not monitor.running


def test_monitor_ignores_reset_session():
    store = SessionStore()
    monitor = HealthMonitor(StubClient(APIResult.success(HEALTHY), APIResult.success({})), store, interval=60)
    store.reset_state()
    monitor.check_once()
    assert not store.state.backend_health.online
