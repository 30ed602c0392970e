"""
Tool registry — string-keyed lookup of tool adapters.

Each language and tool registers its behaviour once here; callers ask
for it by name instead of matching names at every call site.
"""

from __future__ import annotations

import logging
from typing import Any

from trustpin.adapters.base import ToolAdapter, UnlistedTool
from trustpin.core.errors import ErrorKind, ResolutionError

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry of tool adapters."""

    def __init__(self) -> None:
        self._adapters: dict[str, ToolAdapter] = {}

    def register(self, adapter: ToolAdapter) -> None:
        name = adapter.name
        if name in self._adapters:
            logger.warning("Overwriting existing tool adapter: %s", name)
        self._adapters[name] = adapter
        logger.debug("Registered tool adapter: %s", name)

    def unregister(self, name: str) -> None:
        self._adapters.pop(name, None)

    def get(self, name: str) -> ToolAdapter | None:
        return self._adapters.get(name)

    def require(self, name: str) -> ToolAdapter:
        """Look up an adapter or fail with ``unknown_tool``."""
        adapter = self._adapters.get(name)
        if adapter is None:
            raise ResolutionError(
                f"Unknown tool '{name}'. Known: {', '.join(self.list_tools())}",
                kind=ErrorKind.UNKNOWN_TOOL,
                tool=name,
            )
        return adapter

    def get_or_unlisted(self, name: str) -> ToolAdapter:
        """Registered adapter, or a feedless stand-in for verification."""
        adapter = self._adapters.get(name)
        if adapter is None:
            logger.debug("Tool %s not registered, verifying with pinned/calculated tiers only", name)
            return UnlistedTool(name)
        return adapter

    def list_tools(self) -> list[str]:
        return sorted(self._adapters)

    def describe(self) -> list[dict[str, Any]]:
        return [self._adapters[name].describe() for name in self.list_tools()]

    def __contains__(self, name: str) -> bool:
        return name in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)


def default_registry() -> ToolRegistry:
    """Registry with every built-in language and tool."""
    from trustpin.adapters.languages import LANGUAGE_ADAPTERS
    from trustpin.adapters.tools import TOOL_ADAPTERS

    registry = ToolRegistry()
    for adapter in (*LANGUAGE_ADAPTERS, *TOOL_ADAPTERS):
        registry.register(adapter)
    return registry
