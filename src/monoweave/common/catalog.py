import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .pointer import SemanticPointer

log = logging.getLogger(__name__)


class JsonHandler:
    def match(self, path: Path) -> bool:
        return path.suffix.lower() == ".json"

    def load(self, path: Path) -> Dict[str, Any]:
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (json.JSONDecodeError, OSError) as e:
            log.warning(f"Could not load message file {path}: {e}")
            return {}


class MessageCatalog:
    """
    Resolves message ids (semantic pointers) to string templates.

    Templates are read from flat JSON files under each root; earlier roots
    win over later ones, so a project override directory can be placed in
    front of the packaged assets.
    """

    def __init__(self, roots: List[Path], handler: Optional[JsonHandler] = None):
        self.roots = roots
        self.handler = handler or JsonHandler()
        self._registry: Optional[Dict[str, str]] = None

    def _load(self) -> Dict[str, str]:
        merged: Dict[str, str] = {}
        # Lowest priority first, so higher priority roots overwrite.
        for root in reversed(self.roots):
            if root.is_dir():
                merged.update(self._load_directory(root))
        return merged

    def _load_directory(self, root_path: Path) -> Dict[str, str]:
        registry: Dict[str, str] = {}
        for dirpath, _, filenames in os.walk(root_path):
            for filename in sorted(filenames):
                file_path = Path(dirpath) / filename
                if not self.handler.match(file_path):
                    continue
                for key, value in self.handler.load(file_path).items():
                    registry[str(key)] = str(value)
        return registry

    def get(self, msg_id: Union[str, SemanticPointer]) -> Optional[str]:
        if self._registry is None:
            self._registry = self._load()
        return self._registry.get(str(msg_id))

    def __call__(self, msg_id: Union[str, SemanticPointer], **kwargs: Any) -> str:
        template = self.get(msg_id) or str(msg_id)
        try:
            return template.format(**kwargs)
        except (KeyError, IndexError):
            return template


class DictCatalog(MessageCatalog):
    def __init__(self, templates: Dict[str, str]):
        super().__init__(roots=[])
        self._registry = dict(templates)


def create_catalog(project_root: Optional[Path] = None) -> MessageCatalog:
    lang = os.getenv("MONOWEAVE_LANG", "en")
    root = project_root or Path.cwd()
    assets_root = Path(__file__).parent / "assets" / "needle"
    roots = [root / ".monoweave" / "needle" / lang, assets_root / lang]
    if lang != "en":
        roots.append(assets_root / "en")
    return MessageCatalog(roots)
