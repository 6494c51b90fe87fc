import pytest

from monoweave.common import MessageBus, catalog
from monoweave.engine import ApplyEngine


@pytest.fixture
def quiet_engine():
    """An engine whose bus resolves real messages but renders nothing."""
    return ApplyEngine(bus=MessageBus(catalog))


@pytest.fixture
def two_source_plan(plan_factory):
    return (
        plan_factory.with_source("alpha", {"package.json": '{"name": "alpha"}', "src/index.js": "1"})
        .with_source("beta")
        .with_root_manifest({"name": "mono", "private": True, "workspaces": ["packages/*"]})
        .with_file("pnpm-workspace.yaml", "packages:\n  - packages/*\n")
        .with_file(".github/workflows/ci.yml", "name: CI\n")
    )
