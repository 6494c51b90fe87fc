from typing import Any, Optional, Union

from ..catalog import MessageCatalog
from ..pointer import SemanticPointer
from .protocols import Renderer


class MessageBus:
    def __init__(self, catalog: MessageCatalog, renderer: Optional[Renderer] = None):
        self._catalog = catalog
        self._renderer = renderer

    def set_renderer(self, renderer: Renderer):
        self._renderer = renderer

    def render_to_string(self, msg_id: Union[str, SemanticPointer], **kwargs: Any) -> str:
        return self._catalog(msg_id, **kwargs)

    def _render(self, level: str, msg_id: Union[str, SemanticPointer], **kwargs: Any) -> None:
        if not self._renderer:
            return

        message = self._catalog(msg_id, **kwargs)
        self._renderer.render(message, level)

    def debug(self, msg_id: Union[str, SemanticPointer], **kwargs: Any) -> None:
        self._render("debug", msg_id, **kwargs)

    def info(self, msg_id: Union[str, SemanticPointer], **kwargs: Any) -> None:
        self._render("info", msg_id, **kwargs)

    def success(self, msg_id: Union[str, SemanticPointer], **kwargs: Any) -> None:
        self._render("success", msg_id, **kwargs)

    def warning(self, msg_id: Union[str, SemanticPointer], **kwargs: Any) -> None:
        self._render("warning", msg_id, **kwargs)

    def error(self, msg_id: Union[str, SemanticPointer], **kwargs: Any) -> None:
        self._render("error", msg_id, **kwargs)
