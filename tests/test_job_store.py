import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from api.models import JobState, build_request
from errors import JobNotFoundError
from jobs.store import JobStore


@pytest.fixture()
def store():
    return JobStore()


def _request(submitter="user-1", query="Restaurant"):
    return build_request(query_text=query, location="berlin", result_limit=3, submitter_id=submitter)


def test_create_starts_running_at_zero(store):
    record = store.create(_request())

    assert record.state == JobState.RUNNING
    assert record.progress_percent == 0
    assert record.started_at is not None
    assert record.results is None
    assert store.get(record.id) == record


def test_update_and_get_unknown_job(store):
    with pytest.raises(JobNotFoundError):
        store.update("missing", progress_percent=50)
    with pytest.raises(JobNotFoundError):
        store.get("missing")


def test_update_stamps_write_time(store):
    record = store.create(_request())
    time.sleep(0.01)
    store.update(record.id, progress_percent=40)

    updated = store.get(record.id)
    assert updated.progress_percent == 40
    assert updated.updated_at > record.updated_at
    assert updated.created_at == record.created_at


def test_readers_get_copies(store):
    record = store.create(_request())
    snapshot = store.get(record.id)
    snapshot.progress_percent = 99

    assert store.get(record.id).progress_percent == 0


def test_invalid_update_leaves_record_untouched(store):
    record = store.create(_request())
    with pytest.raises(ValueError):
        store.update(record.id, progress_percent=150)

    assert store.get(record.id).progress_percent == 0


def test_list_for_submitter_newest_first(store):
    first = store.create(_request(query="Restaurant"))
    store.create(_request(submitter="someone-else"))
    time.sleep(0.01)
    second = store.create(_request(query="Friseur"))

    jobs = store.list_for_submitter("user-1")
    assert [j.id for j in jobs] == [second.id, first.id]
    assert [j.id for j in store.list_for_submitter("user-1", limit=1)] == [second.id]
    assert store.list_for_submitter("nobody") == []


def test_concurrent_updates_on_separate_records(store):
    records = [store.create(_request()) for _ in range(8)]

    def bump(job_id):
        for pct in range(0, 101, 10):
            store.update(job_id, progress_percent=pct)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(bump, [r.id for r in records]))

    assert all(store.get(r.id).progress_percent == 100 for r in records)
