"""
Body encoding and decoding.

``JSONCodec`` is built on pydantic so that the requested response type can
be anything pydantic validates: a ``BaseModel``, a dataclass, ``dict``,
``list[Model]``, or plain ``Any`` for untyped JSON.
"""

from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..exceptions import DecodingError
from ..models import EmptyResponse

T = TypeVar("T")


@lru_cache(maxsize=128)
def _adapter_for(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


class BodyCodec(ABC):
    """Encodes request bodies and decodes response bodies."""

    content_type: str

    @abstractmethod
    def encode(self, value: Any) -> bytes:
        """Serialize a request body."""

    @abstractmethod
    def decode(self, data: bytes, response_type: Type[T]) -> T:
        """Deserialize a response body; raise DecodingError on failure."""


class JSONCodec(BodyCodec):
    """Encodes request bodies to JSON and decodes response bodies from JSON."""

    content_type = "application/json"

    def encode(self, value: Any) -> bytes:
        """
        Serialize ``value`` to JSON bytes.

        Raw ``bytes`` are sent as-is.
        """
        if isinstance(value, bytes):
            return value
        return _adapter_for(Any).dump_json(value)

    def decode(self, data: bytes, response_type: Type[T]) -> T:
        """
        Decode ``data`` into ``response_type``.

        ``EmptyResponse`` needs no bytes at all; anything in the body is
        ignored.

        Raises:
            DecodingError: If the body is not valid JSON for ``response_type``
        """
        if response_type is EmptyResponse:
            return EmptyResponse()

        try:
            return _adapter_for(response_type).validate_json(data)
        except ValidationError as e:
            raise DecodingError(e) from e
        except TypeError as e:
            # Unhashable or unsupported response types end up here
            raise DecodingError(e) from e
