import dataclasses
import importlib
from typing import Any

from pydantic import BaseModel, TypeAdapter

from ..exceptions import SerializationError


class PayloadDeserializer:
    """
    Reconstruct a payload from serialized data and its type metadata.

    Supports:
    - Pydantic models
    - Dataclasses
    - Plain JSON values
    """

    @staticmethod
    def resolve_type(payload_type: str, payload_module: str) -> type:
        try:
            target: Any = importlib.import_module(payload_module)
            for part in payload_type.split("."):
                target = getattr(target, part)
        except (ImportError, AttributeError) as e:
            raise SerializationError(
                f"Cannot locate type '{payload_type}' in module '{payload_module}': {e}"
            )
        return target

    @staticmethod
    def deserialize(
        data: Any,
        payload_type: str | None,
        payload_module: str | None,
    ) -> Any:
        if payload_type is None and payload_module is None:
            return data

        if not payload_type or not payload_module:
            raise SerializationError("Missing payload type or module metadata")

        if payload_module == "builtins":
            return data

        payload_class = PayloadDeserializer.resolve_type(payload_type, payload_module)
        try:
            if isinstance(payload_class, type) and issubclass(payload_class, BaseModel):
                return payload_class.model_validate(data)

            if dataclasses.is_dataclass(payload_class):
                return TypeAdapter(payload_class).validate_python(data)

            return payload_class(**data)

        except Exception as e:
            raise SerializationError(
                f"Failed to reconstruct payload '{payload_type}' from module '{payload_module}': {e}"
            )
