"""Re-serialization of dynamically-typed values into concrete types.

A nested object inside a :class:`~daex_core.models.DynamicModel` is
decoded as plain JSON (``dict``/``list``/scalars) because its schema is
not known at decode time. :func:`convert` encodes such a value back to
its generic JSON form and validates it against the requested type,
raising :class:`~daex_core.exceptions.DeserializationError` on a shape
mismatch instead of handing back a half-filled object.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, TypeVar, Union

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from daex_core.exceptions import DeserializationError

T = TypeVar("T")


def convert(value: Any, target_type: type[T]) -> T:
    """Convert an already-decoded *value* into *target_type*.

    Args:
        value: A generic value (``dict``, ``list``, scalar) or any object
            pydantic can encode, including another model instance.
        target_type: The concrete type to produce -- a pydantic model, a
            dataclass, a ``TypedDict`` or any annotation
            :class:`pydantic.TypeAdapter` accepts (``list[Model]``, ...).

    Returns:
        The validated value of type *target_type*.

    Raises:
        DeserializationError: If *value* cannot be encoded, or its shape
            does not match *target_type* (missing required field, wrong
            type, ...).
    """
    generic = _to_generic(value, target_type)
    try:
        return _adapter(target_type).validate_python(generic)
    except ValidationError as exc:
        raise DeserializationError(
            f"Cannot convert value to {_type_name(target_type)}: {exc.error_count()} validation error(s)",
            target_type=target_type,
            errors=exc.errors(include_url=False),
        ) from exc


def convert_json(data: Union[str, bytes], target_type: type[T]) -> T:
    """Decode a JSON document directly into *target_type*.

    Raises:
        DeserializationError: If *data* is not valid JSON or does not
            match *target_type*.
    """
    try:
        return _adapter(target_type).validate_json(data)
    except ValidationError as exc:
        raise DeserializationError(
            f"Cannot decode JSON as {_type_name(target_type)}: {exc.error_count()} validation error(s)",
            target_type=target_type,
            errors=exc.errors(include_url=False),
        ) from exc


def _to_generic(value: Any, target_type: Any) -> Any:
    """Encode *value* to plain JSON-compatible data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    try:
        return to_jsonable_python(value, by_alias=True)
    except PydanticSerializationError as exc:
        raise DeserializationError(
            f"Cannot encode {type(value).__name__} for conversion to {_type_name(target_type)}: {exc}",
            target_type=target_type,
        ) from exc


@lru_cache(maxsize=256)
def _adapter(target_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target_type)


def _type_name(target_type: Any) -> str:
    return getattr(target_type, "__name__", None) or repr(target_type)
