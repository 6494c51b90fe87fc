import json
import os
import shutil
from pathlib import Path
from typing import Any, Protocol


class FileSystemAdapter(Protocol):
    def write_text(self, path: Path, content: str) -> None: ...
    def write_json(self, path: Path, data: Any) -> None: ...
    def ensure_dir(self, path: Path) -> None: ...
    def move(self, src: Path, dest: Path) -> None: ...
    def rename(self, src: Path, dest: Path) -> None: ...
    def exists(self, path: Path) -> bool: ...
    def rmtree(self, path: Path) -> None: ...
    def remove(self, path: Path) -> None: ...


class RealFileSystem:
    def write_text(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def write_json(self, path: Path, data: Any) -> None:
        self.write_text(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")

    def ensure_dir(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def move(self, src: Path, dest: Path) -> None:
        # shutil.move falls back to copy+delete across filesystems.
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(src), str(dest))

    def rename(self, src: Path, dest: Path) -> None:
        os.rename(src, dest)

    def exists(self, path: Path) -> bool:
        return path.exists()

    def rmtree(self, path: Path) -> None:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif path.exists() or path.is_symlink():
            path.unlink()

    def remove(self, path: Path) -> None:
        if path.exists():
            path.unlink()
