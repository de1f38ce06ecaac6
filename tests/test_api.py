import pytest
from fastapi.testclient import TestClient

from api.routes.jobs import get_runner
from api.server import create_app
from jobs.runner import JobRunner
from jobs.store import JobStore, get_job_store

START_BODY = {
    "queryText": "Restaurant Berlin",
    "location": "berlin",
    "resultLimit": 5,
    "submitterId": "user-1",
}


@pytest.fixture()
def app():
    return create_app()


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def test_start_job_returns_results(client):
    response = client.post("/api/jobs", json=START_BODY)
    assert response.status_code == 200

    body = response.json()
    assert body["success"] is True
    assert body["totalFound"] == 5
    assert len(body["results"]) == 5
    first = body["results"][0]
    assert {"id", "name", "category", "address", "reviewCount", "openingHours", "coordinates"} <= set(first)

    record = get_job_store().get(body["jobId"])
    assert record.state.value == "completed"


def test_get_job_returns_authoritative_record(client):
    job_id = client.post("/api/jobs", json=START_BODY).json()["jobId"]

    response = client.get(f"/api/jobs/{job_id}")
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == job_id
    assert body["state"] == "completed"
    assert body["progressPercent"] == 100
    assert body["resultCount"] == len(body["results"]) == 5
    assert body["request"]["queryText"] == "Restaurant Berlin"


def test_get_unknown_job_is_404(client):
    response = client.get("/api/jobs/does-not-exist")
    assert response.status_code == 404
    assert response.json()["error"] == "Job not found"


@pytest.mark.parametrize(
    "override",
    [{"queryText": "  "}, {"resultLimit": 0}, {"resultLimit": "many"}],
)
def test_invalid_request_is_400(client, override):
    response = client.post("/api/jobs", json={**START_BODY, **override})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid job request"
    assert body["details"]


def test_limit_above_maximum_is_capped(client):
    response = client.post("/api/jobs", json={**START_BODY, "resultLimit": 500})
    assert response.status_code == 200
    assert response.json()["totalFound"] == 100


def test_runner_failure_is_500_with_details(app, client):
    def boom(query, location, limit):
        raise RuntimeError("boom")

    app.dependency_overrides[get_runner] = lambda: JobRunner(store=get_job_store(), generator=boom, delay=0)

    response = client.post("/api/jobs", json=START_BODY)
    assert response.status_code == 500
    assert response.json() == {"error": "Scraping job failed", "details": "RuntimeError: boom"}

    failed = get_job_store().list_for_submitter("user-1")[0]
    assert failed.state.value == "failed"


def test_list_jobs_for_submitter(client):
    client.post("/api/jobs", json=START_BODY)
    client.post("/api/jobs", json={**START_BODY, "queryText": "Friseur"})
    client.post("/api/jobs", json={**START_BODY, "submitterId": "user-2"})

    response = client.get("/api/jobs", params={"submitterId": "user-1"})
    assert response.status_code == 200
    assert len(response.json()) == 2

    response = client.get("/api/jobs", params={"submitterId": "user-1", "limit": 1})
    assert len(response.json()) == 1


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["max_result_limit"] == 100


def test_health_ignores_client_side_runner_settings(client, monkeypatch):
    monkeypatch.setattr("config.RUNNER_URL", "")
    monkeypatch.setattr("config.RUNNER_API_KEY", "")

    body = client.get("/api/health").json()
    assert body["missing_keys"] == []


def test_job_creation_failure_is_500_with_details(app, client):
    class BrokenStore(JobStore):
        def create(self, request):
            raise RuntimeError("db down")

    app.dependency_overrides[get_runner] = lambda: JobRunner(store=BrokenStore(), delay=0)
    response = client.post("/api/jobs", json=START_BODY)

    assert response.status_code == 500
    assert response.json() == {"error": "Could not create job", "details": "RuntimeError: db down"}
