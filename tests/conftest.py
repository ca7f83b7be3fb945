from datetime import datetime

import pytest

from interntracker.config import reset_config
from interntracker.models import ApplicationRecord


@pytest.fixture(autouse=True)
def clean_config() -> None:
    reset_config()
    yield
    reset_config()


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 6, 24)


@pytest.fixture
def make_record():
    def _make(**overrides) -> ApplicationRecord:
        fields = {"id": "r1", "company": "Acme", "position": "SWE Intern"}
        fields.update(overrides)
        return ApplicationRecord(**fields)

    return _make
