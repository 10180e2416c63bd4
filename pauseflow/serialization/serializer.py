import dataclasses
from typing import Any, Tuple

from pydantic import TypeAdapter

from ..exceptions import SerializationError

_JSON_TYPES = (str, int, float, bool, list, dict)


class PayloadSerializer:
    """
    Serialize a payload so it can be stored in a checkpoint.

    Returns:
        Tuple of (serialized_data, type_name, module_path)
    """

    @staticmethod
    def serialize(payload: Any) -> Tuple[Any, str | None, str | None]:
        if payload is None:
            return None, None, None

        payload_type = type(payload).__qualname__
        payload_module = type(payload).__module__

        if type(payload) in _JSON_TYPES:
            try:
                return TypeAdapter(Any).dump_python(payload, mode="json"), payload_type, "builtins"
            except Exception as e:
                raise SerializationError(f"Payload of type {payload_type} is not JSON compatible: {e}")

        if hasattr(payload, "model_dump") and callable(payload.model_dump):
            try:
                return payload.model_dump(mode="json"), payload_type, payload_module
            except Exception as e:
                raise SerializationError(f"Failed to serialize Pydantic model {payload_type}: {e}")

        if dataclasses.is_dataclass(payload):
            try:
                data = TypeAdapter(type(payload)).dump_python(payload, mode="json")
            except Exception as e:
                raise SerializationError(f"Failed to serialize dataclass {payload_type}: {e}")
            return data, payload_type, payload_module

        raise SerializationError(
            f"Cannot serialize payload of type '{payload_type}' from module '{payload_module}'"
        )
