import json
from pathlib import Path
from textwrap import dedent
from typing import Any, Dict, List, Optional

import tomli_w


class PlanFactory:
    """
    Builds source repositories and a plan file under a temporary root.

    Sources are created in `<root>/sources/<name>` so that each build yields
    fresh copies, and the plan is written to `<root>/<plan_name>`.
    """

    def __init__(self, root_path: Path):
        self.root_path = root_path
        self._sources: List[Dict[str, Any]] = []
        self._files: List[Dict[str, str]] = []
        self._root_manifest: Dict[str, Any] = {"name": "monorepo", "private": True}
        self._packages_dir = "packages"
        self._install = False
        self._install_command: Optional[str] = None
        self._extra: Dict[str, Any] = {}
        self._config: Optional[Dict[str, Any]] = None

    def with_source(
        self, name: str, files: Optional[Dict[str, str]] = None, create: bool = True
    ) -> "PlanFactory":
        if files is None:
            files = {"package.json": json.dumps({"name": name, "version": "1.0.0"})}
        self._sources.append({"name": name, "files": files, "create": create})
        return self

    def with_file(self, relative_path: str, content: str) -> "PlanFactory":
        self._files.append({"relativePath": relative_path, "content": dedent(content)})
        return self

    def with_root_manifest(self, manifest: Dict[str, Any]) -> "PlanFactory":
        self._root_manifest = manifest
        return self

    def with_packages_dir(self, name: str) -> "PlanFactory":
        self._packages_dir = name
        return self

    def with_install(self, command: Optional[str] = None) -> "PlanFactory":
        self._install = True
        self._install_command = command
        return self

    def with_config(self, config: Dict[str, Any]) -> "PlanFactory":
        self._config = config
        return self

    def with_extra(self, key: str, value: Any) -> "PlanFactory":
        self._extra[key] = value
        return self

    def source_path(self, name: str) -> Path:
        return self.root_path / "sources" / name

    def plan_data(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "version": 1,
            "sources": [
                {"name": s["name"], "path": str(self.source_path(s["name"]))}
                for s in self._sources
            ],
            "packagesDir": self._packages_dir,
            "rootManifest": self._root_manifest,
            "files": list(self._files),
            "install": self._install,
        }
        if self._install_command is not None:
            data["installCommand"] = self._install_command
        data.update(self._extra)
        return data

    def build(self, plan_name: str = "plan.json") -> Path:
        for source in self._sources:
            if not source["create"]:
                continue
            source_root = self.source_path(source["name"])
            for rel, content in source["files"].items():
                path = source_root / rel
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content, encoding="utf-8")

        if self._config is not None:
            with (self.root_path / "monoweave.toml").open("wb") as f:
                tomli_w.dump(self._config, f)

        plan_path = self.root_path / plan_name
        plan_path.write_text(json.dumps(self.plan_data(), indent=2), encoding="utf-8")
        return plan_path
