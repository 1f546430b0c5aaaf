"""Conversion between wire JSON and pydantic records.

Request models may be built up incrementally, so their fields are optional at
the type level. Fields that the API needs are marked with `REQUIRED` through
`typing.Annotated` and checked by `Serializer.validate_required` before a
request is serialized.
"""

import json
from collections.abc import Iterator
from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict

from .exceptions import DeserializationError, ValidationError
from .log_config import logger
from .types import Decoder

ModelT = TypeVar("ModelT", bound=BaseModel)


class Required:
    """Marker for request fields that must be set before sending."""

    def __repr__(self) -> str:
        return "REQUIRED"


REQUIRED = Required()


class DecodeOptions(BaseModel):
    """Per-call options for decoding a response body.

    Attributes:
        decoders: Callables applied in order to the parsed JSON payload before
            it is validated against the target model.
    """

    decoders: tuple[Decoder, ...] = ()

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


DEFAULT_DECODE_OPTIONS = DecodeOptions()


def _missing_required(obj: BaseModel, prefix: str = "") -> Iterator[str]:
    for name, field in type(obj).model_fields.items():
        value = getattr(obj, name)
        path = f"{prefix}{field.alias or name}"
        if value is None:
            if any(isinstance(meta, Required) for meta in field.metadata):
                yield path
            continue
        if isinstance(value, BaseModel):
            yield from _missing_required(value, prefix=f"{path}.")


class Serializer:
    """Serializes request records and deserializes response bodies."""

    def validate_required(self, obj: BaseModel) -> None:
        """Checks that every `REQUIRED` field of `obj` (recursively) is set.

        Raises:
            ValidationError: If any required field is None.
        """
        missing = list(_missing_required(obj))
        if missing:
            logger.warning(
                f"{type(obj).__name__} failed required-field validation: {missing}"
            )
            raise ValidationError(type(obj).__name__, missing)

    def serialize(self, obj: BaseModel | None) -> bytes:
        """Validates and serializes a request record to JSON bytes.

        A missing body serializes to an empty payload.
        """
        if obj is None:
            return b""
        self.validate_required(obj)
        return obj.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")

    def deserialize(
        self,
        data: bytes,
        model: type[ModelT],
        options: DecodeOptions | None = None,
    ) -> ModelT:
        """Decodes JSON bytes into an instance of `model`.

        Raises:
            DeserializationError: If the body is not JSON or does not fit `model`.
        """
        options = options or DEFAULT_DECODE_OPTIONS
        try:
            payload: Any = json.loads(data) if data else None
        except ValueError as e:
            raise DeserializationError(
                f"Response body is not valid JSON for {model.__name__}: {e}"
            ) from e

        for decoder in options.decoders:
            payload = decoder(payload)

        try:
            return model.model_validate(payload)
        except pydantic.ValidationError as e:
            raise DeserializationError(
                f"Response body does not match {model.__name__}: {e}"
            ) from e
