import pytest

from monoweave.common import DictCatalog, MessageBus
from monoweave.engine import CancellationToken, RealFileSystem, StepContext
from monoweave.spec import Plan, PlanFile, PlanSource


class ListRenderer:
    def __init__(self):
        self.lines = []

    def render(self, message: str, level: str) -> None:
        self.lines.append((level, message))


@pytest.fixture
def renderer():
    return ListRenderer()


@pytest.fixture
def quiet_bus(renderer):
    return MessageBus(DictCatalog({"apply.install.stdout": "{line}", "apply.install.stderr": "{line}"}), renderer)


@pytest.fixture
def make_ctx(tmp_path, quiet_bus):
    def _make(plan=None, token=None, install_command="true", fs=None):
        if plan is None:
            sources = []
            for name in ("alpha", "beta"):
                src = tmp_path / "sources" / name
                src.mkdir(parents=True)
                (src / "index.js").write_text(f"module.exports = '{name}';\n")
                sources.append(PlanSource(name, str(src)))
            plan = Plan(
                version=1,
                sources=sources,
                packages_dir="packages",
                root_manifest={"name": "mono", "private": True},
                files=[
                    PlanFile("pnpm-workspace.yaml", "packages:\n  - packages/*\n"),
                    PlanFile(".github/workflows/ci.yml", "name: CI\n"),
                ],
                install=False,
            )
        return StepContext(
            plan=plan,
            staging_dir=tmp_path / "out.staging-00c0ffee",
            token=token or CancellationToken(),
            bus=quiet_bus,
            fs=fs or RealFileSystem(),
            install_command=install_command,
        )

    return _make
