"""Tool definitions, registry and invocation pipeline."""

from .pipeline import invoke
from .registry import Registry
from .schema import ToolDescriptor, ToolSchema, TypeTag, make_tool

__all__ = ["Registry", "ToolDescriptor", "ToolSchema", "TypeTag", "invoke", "make_tool"]
