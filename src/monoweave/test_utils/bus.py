from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Union

# Import the actual singleton to patch it in-place
import monoweave.common
from monoweave.common.messaging.protocols import Renderer
from monoweave.common.pointer import SemanticPointer


class SpyRenderer(Renderer):
    def __init__(self):
        self.messages: List[Dict[str, Any]] = []

    def render(self, message: str, level: str) -> None:
        # The spy logic mostly acts on record(), but satisfy interface
        pass

    def record(self, level: str, msg_id: Union[str, SemanticPointer], params: Dict[str, Any]):
        self.messages.append({"level": level, "id": str(msg_id), "params": params})


class SpyBus:
    """
    A Test Utility that spies on the global monoweave.common.bus singleton.

    Instead of replacing the bus instance (which fails if modules have already
    imported the instance via 'from monoweave.common import bus'),
    this utility patches the instance methods directly.
    """

    def __init__(self):
        self._spy_renderer = SpyRenderer()

    @contextmanager
    def patch(self, monkeypatch: Any):
        real_bus = monoweave.common.bus

        def intercept_render(
            level: str, msg_id: Union[str, SemanticPointer], **kwargs: Any
        ) -> None:
            # Capture the intent only; nothing is printed.
            self._spy_renderer.record(level, msg_id, kwargs)

        monkeypatch.setattr(real_bus, "_render", intercept_render)
        monkeypatch.setattr(real_bus, "_renderer", self._spy_renderer)

        yield self

    def get_messages(self) -> List[Dict[str, Any]]:
        return self._spy_renderer.messages

    def ids(self, level: Optional[str] = None) -> List[str]:
        return [
            m["id"] for m in self.get_messages() if level is None or m["level"] == level
        ]

    def assert_id_called(
        self, msg_id: Union[str, SemanticPointer], level: Optional[str] = None
    ):
        key = str(msg_id)
        if key not in self.ids(level):
            # Enhanced error message for debugging
            ids_seen = [m["id"] for m in self.get_messages()]
            raise AssertionError(
                f"Message with ID '{key}' was not sent.\nCaptured IDs: {ids_seen}"
            )

    def assert_id_not_called(self, msg_id: Union[str, SemanticPointer]):
        key = str(msg_id)
        if key in self.ids():
            raise AssertionError(f"Message with ID '{key}' was sent unexpectedly.")
