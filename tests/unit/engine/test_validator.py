import copy
import json

import pytest

from monoweave.engine import (
    NotFoundError,
    SchemaError,
    collect_plan_errors,
    compute_plan_hash,
    load_plan,
    validate_plan,
)

VALID_PLAN = {
    "version": 1,
    "sources": [{"name": "alpha", "path": "/tmp/alpha"}],
    "packagesDir": "packages",
    "rootManifest": {"name": "mono", "private": True},
    "files": [{"relativePath": "pnpm-workspace.yaml", "content": "packages:\n  - packages/*\n"}],
    "install": False,
}


def mutate(**changes):
    plan = copy.deepcopy(VALID_PLAN)
    for key, value in changes.items():
        if value is ...:
            del plan[key]
        else:
            plan[key] = value
    return plan


def test_accepts_valid_plan():
    assert validate_plan(VALID_PLAN)
    assert collect_plan_errors(VALID_PLAN) == []


def test_accepts_install_command_and_multiple_sources():
    plan = mutate(
        install=True,
        installCommand="npm install --ignore-scripts",
        sources=[{"name": "a", "path": "/a"}, {"name": "b", "path": "/b"}],
    )
    assert validate_plan(plan)


def test_accepts_legacy_root_package_json_key():
    plan = mutate(rootManifest=...)
    plan["rootPackageJson"] = {"name": "legacy"}
    assert validate_plan(plan)


def test_ignores_unknown_keys():
    plan = mutate(analysisFindings={"conflicts": []}, generatedBy="analyzer")
    assert validate_plan(plan)


@pytest.mark.parametrize(
    "data",
    [
        None,
        "not an object",
        [VALID_PLAN],
        mutate(version=2),
        mutate(version=True),
        mutate(version=...),
        mutate(sources=[]),
        mutate(sources=[{"path": "/a"}]),
        mutate(sources=[{"name": "a"}]),
        mutate(sources=["a"]),
        mutate(packagesDir=...),
        mutate(packagesDir=3),
        mutate(rootManifest=None),
        mutate(rootManifest=[1, 2]),
        mutate(files={}),
        mutate(files=[{"content": "x"}]),
        mutate(files=[{"relativePath": "x"}]),
        mutate(install=...),
        mutate(install="yes"),
        mutate(installCommand=""),
    ],
)
def test_rejects_malformed_plans(data):
    assert validate_plan(data) is False
    assert collect_plan_errors(data)


def test_collects_every_problem():
    errors = collect_plan_errors(mutate(version=9, packagesDir=None, install=None))
    assert len(errors) == 3


def test_load_plan_returns_fingerprint_of_raw_bytes(tmp_path):
    raw = json.dumps(VALID_PLAN, indent=4).encode("utf-8")
    plan_path = tmp_path / "plan.json"
    plan_path.write_bytes(raw)

    loaded = load_plan(plan_path)

    assert loaded.fingerprint == compute_plan_hash(raw)
    assert len(loaded.fingerprint) == 64
    assert loaded.plan.sources[0].name == "alpha"
    assert loaded.plan.files[0].relative_path == "pnpm-workspace.yaml"
    assert loaded.path == plan_path.resolve()


def test_load_plan_missing_file(tmp_path):
    with pytest.raises(NotFoundError, match="Plan file not found"):
        load_plan(tmp_path / "nope.json")


def test_load_plan_invalid_json(tmp_path):
    plan_path = tmp_path / "plan.json"
    plan_path.write_text("{ nope")
    with pytest.raises(SchemaError, match="invalid JSON"):
        load_plan(plan_path)


def test_load_plan_invalid_schema_lists_problems(tmp_path):
    plan_path = tmp_path / "plan.json"
    plan_path.write_text(json.dumps(mutate(sources=[])))
    with pytest.raises(SchemaError) as excinfo:
        load_plan(plan_path)
    assert excinfo.value.problems == ["sources must be a non-empty array"]


def test_fingerprint_is_deterministic_and_content_sensitive():
    assert compute_plan_hash(b"abc") == compute_plan_hash(b"abc")
    assert compute_plan_hash(b"abc") != compute_plan_hash(b"abd")


@pytest.mark.parametrize(
    "relative_path",
    ["/etc/passwd", "../escaped.txt", "config/../../escaped.txt", "C:\\temp\\x", "\\\\host\\share\\x", "", "."],
)
def test_rejects_file_paths_outside_output(relative_path):
    errors = collect_plan_errors(mutate(files=[{"relativePath": relative_path, "content": "x"}]))

    assert errors == [f"files[0].relativePath must stay inside the output: {relative_path!r}"]


@pytest.mark.parametrize("name", ["/abs/alpha", "../alpha", "nested/../../alpha", "", "."])
def test_rejects_source_names_outside_packages_dir(name):
    errors = collect_plan_errors(mutate(sources=[{"name": name, "path": "/a"}]))

    assert len(errors) == 1
    assert errors[0].startswith("sources[0].name must be a relative path")


@pytest.mark.parametrize("packages_dir", ["/packages", "../packages"])
def test_rejects_packages_dir_outside_output(packages_dir):
    assert not validate_plan(mutate(packagesDir=packages_dir))


def test_accepts_nested_relative_paths():
    plan = mutate(
        packagesDir="libs/js",
        sources=[{"name": "@scope/alpha", "path": "/a"}],
        files=[{"relativePath": ".github/workflows/ci.yml", "content": ""}],
    )
    assert collect_plan_errors(plan) == []
