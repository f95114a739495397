"""Tool registry: named descriptors advertised to the provider."""

from __future__ import annotations

import logging
from typing import Iterator

from ..errors import DuplicateNameError, NotFoundError
from .schema import ToolDescriptor, ToolSchema

logger = logging.getLogger(__name__)


class Registry:
    """Grows by registration only; names are unique."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolDescriptor] = {}

    def register(self, descriptor: ToolDescriptor) -> None:
        if descriptor.name in self._tools:
            raise DuplicateNameError(descriptor.name)
        self._tools[descriptor.name] = descriptor
        logger.debug("Registered tool %s", descriptor.name)

    def lookup(self, name: str) -> ToolDescriptor:
        try:
            return self._tools[name]
        except KeyError:
            raise NotFoundError(name) from None

    def export_schemas(self) -> list[ToolSchema]:
        """Schemas of every registered tool, in registration order."""
        return [descriptor.schema() for descriptor in self._tools.values()]

    def names(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(list(self._tools.values()))
