import hashlib
import json
from dataclasses import dataclass
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Any, List

from monoweave.spec import PLAN_SCHEMA_VERSION, Plan
from .exceptions import NotFoundError, SchemaError


@dataclass
class LoadedPlan:
    plan: Plan
    fingerprint: str
    path: Path


def compute_plan_hash(raw: bytes) -> str:
    return hashlib.sha256(raw).hexdigest()


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


def _escapes_staging(value: str) -> bool:
    # Joined onto the staging dir, so it must be relative and stay below it.
    if PurePosixPath(value).is_absolute():
        return True
    as_windows = PureWindowsPath(value)
    if as_windows.drive or as_windows.root:
        return True
    return not as_windows.parts or ".." in as_windows.parts


def collect_plan_errors(data: Any) -> List[str]:
    """Return every structural problem found in a parsed plan (empty if valid)."""
    if not isinstance(data, dict):
        return ["plan must be a JSON object"]

    errors: List[str] = []
    version = data.get("version")
    # bool is an int subclass; `true` must not pass as version 1.
    if isinstance(version, bool) or version != PLAN_SCHEMA_VERSION:
        errors.append(
            f"unsupported plan version {version!r} (expected {PLAN_SCHEMA_VERSION})"
        )

    sources = data.get("sources")
    if not isinstance(sources, list) or not sources:
        errors.append("sources must be a non-empty array")
    else:
        for i, source in enumerate(sources):
            if not isinstance(source, dict):
                errors.append(f"sources[{i}] must be an object")
                continue
            name = source.get("name")
            if not _is_str(name):
                errors.append(f"sources[{i}].name must be a string")
            elif _escapes_staging(name):
                errors.append(f"sources[{i}].name must be a relative path inside packagesDir: {name!r}")
            if not _is_str(source.get("path")):
                errors.append(f"sources[{i}].path must be a string")

    packages_dir = data.get("packagesDir")
    if not _is_str(packages_dir):
        errors.append("packagesDir must be a string")
    elif _escapes_staging(packages_dir):
        errors.append(f"packagesDir must be a relative path inside the output: {packages_dir!r}")

    manifest = data.get("rootManifest", data.get("rootPackageJson"))
    if not isinstance(manifest, dict):
        errors.append("rootManifest must be an object")

    files = data.get("files")
    if not isinstance(files, list):
        errors.append("files must be an array")
    else:
        for i, entry in enumerate(files):
            if not isinstance(entry, dict):
                errors.append(f"files[{i}] must be an object")
                continue
            relative_path = entry.get("relativePath")
            if not _is_str(relative_path):
                errors.append(f"files[{i}].relativePath must be a string")
            elif _escapes_staging(relative_path):
                errors.append(
                    f"files[{i}].relativePath must stay inside the output: {relative_path!r}"
                )
            if not _is_str(entry.get("content")):
                errors.append(f"files[{i}].content must be a string")

    if not isinstance(data.get("install"), bool):
        errors.append("install must be a boolean")

    if "installCommand" in data and data["installCommand"] is not None:
        if not _is_str(data["installCommand"]) or not data["installCommand"].strip():
            errors.append("installCommand must be a non-empty string")

    return errors


def validate_plan(data: Any) -> bool:
    return not collect_plan_errors(data)


def load_plan(path: Path) -> LoadedPlan:
    plan_path = Path(path).resolve()
    if not plan_path.is_file():
        raise NotFoundError(f"Plan file not found: {plan_path}")

    raw = plan_path.read_bytes()
    fingerprint = compute_plan_hash(raw)

    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SchemaError(f"Plan file contains invalid JSON: {e}") from e

    problems = collect_plan_errors(data)
    if problems:
        raise SchemaError("Plan file is invalid: " + "; ".join(problems), problems)

    return LoadedPlan(plan=Plan.from_dict(data), fingerprint=fingerprint, path=plan_path)
