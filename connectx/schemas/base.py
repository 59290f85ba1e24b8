"""Shared pydantic base and payload validation helpers."""

from typing import Any, Dict, Iterable, List, Mapping, Type, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from connectx.core.exceptions import ValidationError


SchemaType = TypeVar("SchemaType", bound=BaseModel)


class CamelModel(BaseModel):
	"""Base schema: camelCase on the wire, snake_case in Python.

	Input accepts either spelling.
	"""

	model_config = ConfigDict(
		alias_generator=to_camel,
		populate_by_name=True,
		from_attributes=True,
	)


def format_errors(raw_errors: Iterable[Mapping[str, Any]]) -> List[Dict[str, str]]:
	"""Flatten pydantic/FastAPI error dicts into `[{field, message}]`.

	The leading "body" segment FastAPI adds to request-body locations is dropped.
	"""
	errors: List[Dict[str, str]] = []
	for err in raw_errors:
		loc = [str(part) for part in err.get("loc", ()) if part != "body"]
		errors.append({
			"field": ".".join(loc) or "body",
			"message": err.get("msg", "Invalid value"),
		})
	return errors


def validate_payload(schema: Type[SchemaType], data: Any) -> SchemaType:
	"""Validate a raw mapping against `schema`.

	Returns the typed model, or raises `ValidationError` listing every failing
	field. Already-validated instances pass through untouched.
	"""
	if isinstance(data, schema):
		return data
	try:
		return schema.model_validate(data)
	except PydanticValidationError as e:
		raise ValidationError(format_errors(e.errors())) from e
