import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from api.models import build_request
from jobs.store import reset_job_store


@pytest.fixture(autouse=True)
def reset_state():
    reset_job_store()
    yield
    reset_job_store()


@pytest.fixture()
def restaurant_request():
    return build_request(
        query_text="Restaurant Berlin",
        location="berlin",
        result_limit=5,
        submitter_id="user-1",
    )
