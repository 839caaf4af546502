import pytest

from studyhub.errors import SchemaViolation
from studyhub.schema import ArraySchema, EnumSchema, NumberSchema, ObjectSchema, StringSchema, nullable, validate


PERSON = ObjectSchema(
	properties={
		"name": StringSchema(),
		"age": NumberSchema(),
		"nickname": StringSchema(),
		"tags": ArraySchema(items=StringSchema()),
	},
	required=("name", "age"),
)


def test_valid_object_passes_unchanged():
	value = {"name": "An", "age": 16, "tags": ["a"], "extra": True}
	assert validate(PERSON, value) is value


def test_missing_required_field_names_the_path():
	with pytest.raises(SchemaViolation) as exc:
		validate(PERSON, {"name": "An"})
	assert exc.value.path == "$.age"


def test_null_required_field_is_rejected():
	with pytest.raises(SchemaViolation):
		validate(PERSON, {"name": None, "age": 3})


def test_optional_field_may_be_missing_or_null():
	validate(PERSON, {"name": "An", "age": 1, "nickname": None})
	validate(PERSON, {"name": "An", "age": 1})


def test_wrong_types_are_rejected():
	with pytest.raises(SchemaViolation):
		validate(PERSON, {"name": "An", "age": "old"})
	with pytest.raises(SchemaViolation):
		validate(PERSON, {"name": "An", "age": True})
	with pytest.raises(SchemaViolation) as exc:
		validate(PERSON, {"name": "An", "age": 1, "tags": ["ok", 2]})
	assert exc.value.path == "$.tags[1]"


def test_enum_values():
	speaker = EnumSchema(values=("Student", "AI"))
	assert validate(speaker, "AI") == "AI"
	with pytest.raises(SchemaViolation):
		validate(speaker, "Teacher")


def test_nullable_node_accepts_null():
	node = nullable(ObjectSchema(properties={"x": StringSchema()}, required=("x",)))
	assert validate(node, None) is None
	with pytest.raises(SchemaViolation):
		validate(ObjectSchema(), None)


def test_required_names_must_be_declared():
	with pytest.raises(ValueError):
		ObjectSchema(properties={"a": StringSchema()}, required=("b",))
