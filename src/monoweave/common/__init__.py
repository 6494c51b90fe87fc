from .catalog import MessageCatalog, DictCatalog, create_catalog
from .messaging.bus import MessageBus
from .messaging.protocols import Renderer
from .pointer import L, SemanticPointer

# --- Composition Root for monoweave's Core Services ---

# Global message catalog resolving L.* pointers to templates.
catalog = create_catalog()

# The global bus. Drivers attach a renderer at startup; until then it is silent.
bus = MessageBus(catalog)

__all__ = [
    "bus",
    "catalog",
    "L",
    "SemanticPointer",
    "MessageBus",
    "MessageCatalog",
    "DictCatalog",
    "Renderer",
    "create_catalog",
]
