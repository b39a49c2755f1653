import pytest

from cafe_enricher.jobs import run_enrich_server


class DummySettings:
    worker_port = 9000


@pytest.fixture(autouse=True)
def submitted(monkeypatch):
    captured = {}

    class DummyExecutor:
        def submit(self, fn, args):
            captured["called"] = True
            captured["args"] = args

    monkeypatch.setattr(run_enrich_server, "_executor", DummyExecutor())
    monkeypatch.setattr(run_enrich_server, "get_settings", lambda: DummySettings())
    yield captured


def test_health_endpoint():
    client = run_enrich_server.app.test_client()
    response = client.get("/healthz")
    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "ok"
    assert body["worker_port_config"] == 9000


def test_enrich_defaults_to_full_batch(submitted):
    client = run_enrich_server.app.test_client()
    response = client.post("/enrich", json={})

    assert response.status_code == 202
    assert submitted["args"] == {"cafe_ids": None, "force": False, "with_images": False}


def test_enrich_passes_options(submitted):
    client = run_enrich_server.app.test_client()
    response = client.post("/enrich", json={"cafe_ids": ["a", "b"], "force": True, "with_images": True})

    assert response.status_code == 202
    assert submitted["args"] == {"cafe_ids": ["a", "b"], "force": True, "with_images": True}


def test_enrich_validates_payload(submitted):
    client = run_enrich_server.app.test_client()
    assert client.post("/enrich", json={"cafe_ids": "a"}).status_code == 400
    assert client.post("/enrich", json={"cafe_ids": ["a", ""]}).status_code == 400
    assert client.post("/enrich", json={"force": "yes"}).status_code == 400
    assert "called" not in submitted


def test_run_job_safe_logs_failures(monkeypatch, caplog):
    def boom(**kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(run_enrich_server, "run_enrichment_job", boom)
    with caplog.at_level("ERROR"):
        run_enrich_server._run_job_safe({"cafe_ids": None, "force": False, "with_images": False})
    assert "Enrichment job failed" in " ".join(caplog.messages)
