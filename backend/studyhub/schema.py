"""
Output-schema descriptions for structured generation.

A schema is a small tree of node objects (object, array, string, number,
enum). Engines declare the shape they expect; the generator client renders it
into whatever its provider understands and `validate` checks the parsed reply
against it, since a generator may ignore the constraint.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Tuple, Union

from .errors import SchemaViolation


@dataclass(frozen=True)
class StringSchema:
	kind: ClassVar[str] = "string"
	description: str | None = None
	nullable: bool = False


@dataclass(frozen=True)
class NumberSchema:
	kind: ClassVar[str] = "number"
	description: str | None = None
	nullable: bool = False


@dataclass(frozen=True)
class EnumSchema:
	kind: ClassVar[str] = "enum"
	values: Tuple[str, ...] = ()
	description: str | None = None
	nullable: bool = False


@dataclass(frozen=True)
class ArraySchema:
	kind: ClassVar[str] = "array"
	items: "SchemaNode" = field(default_factory=StringSchema)
	description: str | None = None
	nullable: bool = False


@dataclass(frozen=True)
class ObjectSchema:
	kind: ClassVar[str] = "object"
	properties: Dict[str, "SchemaNode"] = field(default_factory=dict)
	required: Tuple[str, ...] = ()
	description: str | None = None
	nullable: bool = False

	def __post_init__(self) -> None:
		unknown = [name for name in self.required if name not in self.properties]
		if unknown:
			raise ValueError(f"required fields without a property schema: {unknown}")


SchemaNode = Union[StringSchema, NumberSchema, EnumSchema, ArraySchema, ObjectSchema]


def nullable(node: SchemaNode) -> SchemaNode:
	return dataclasses.replace(node, nullable=True)


def validate(node: SchemaNode, value: Any, path: str = "$") -> Any:
	"""Check ``value`` against ``node`` and return it unchanged.

	Required object fields must be present and non-null (unless their own
	schema is nullable). Optional fields may be missing or null. Keys the
	schema does not mention are left alone.

	Raises:
		SchemaViolation: naming the JSON path of the first offending value.
	"""
	if value is None:
		if node.nullable:
			return None
		raise SchemaViolation("null is not allowed", path=path)

	if isinstance(node, StringSchema):
		if not isinstance(value, str):
			raise SchemaViolation(f"expected string, got {type(value).__name__}", path=path)
	elif isinstance(node, NumberSchema):
		if isinstance(value, bool) or not isinstance(value, (int, float)):
			raise SchemaViolation(f"expected number, got {type(value).__name__}", path=path)
	elif isinstance(node, EnumSchema):
		if value not in node.values:
			raise SchemaViolation(f"{value!r} is not one of {list(node.values)}", path=path)
	elif isinstance(node, ArraySchema):
		if not isinstance(value, list):
			raise SchemaViolation(f"expected array, got {type(value).__name__}", path=path)
		for idx, item in enumerate(value):
			validate(node.items, item, f"{path}[{idx}]")
	elif isinstance(node, ObjectSchema):
		if not isinstance(value, dict):
			raise SchemaViolation(f"expected object, got {type(value).__name__}", path=path)
		for name in node.required:
			if name not in value:
				raise SchemaViolation("required field is missing", path=f"{path}.{name}")
		for name, child in node.properties.items():
			if name not in value:
				continue
			if value[name] is None and name not in node.required:
				continue
			validate(child, value[name], f"{path}.{name}")
	else:
		raise TypeError(f"unsupported schema node: {node!r}")
	return value


__all__ = [
	"StringSchema",
	"NumberSchema",
	"EnumSchema",
	"ArraySchema",
	"ObjectSchema",
	"SchemaNode",
	"nullable",
	"validate",
]
