import pytest
from monoweave.test_utils import PlanFactory


@pytest.fixture
def plan_factory(tmp_path, monkeypatch):
    # Use a fixture to ensure a clean workspace and chdir for each test
    factory = PlanFactory(tmp_path)
    monkeypatch.chdir(tmp_path)
    return factory
