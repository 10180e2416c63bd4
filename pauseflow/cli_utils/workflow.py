"""Utility functions to load workflows and interpret CLI arguments."""

from __future__ import annotations

import json
import sys
from importlib import import_module
from importlib.util import module_from_spec, spec_from_file_location
from pathlib import Path
from types import ModuleType
from typing import Any, Iterable

from pydantic import BaseModel, ValidationError

from pauseflow.contracts import RequestInfoMessage
from pauseflow.graph import Workflow


def _load_module(module_ref: str) -> ModuleType:
    path = Path(module_ref).expanduser()
    if path.suffix == ".py":
        if not path.is_file():
            raise ValueError(f"Workflow file {path} does not exist")
        module_name = path.stem
        spec = spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ValueError(f"Cannot import workflow file {path}")
        module_obj = module_from_spec(spec)
        sys.modules[module_name] = module_obj
        spec.loader.exec_module(module_obj)
        return module_obj
    return import_module(module_ref)


def load_workflow(target: str) -> Workflow:
    """Resolve ``module:attribute`` (or ``path/to/file.py:attribute``) to a workflow.

    The attribute may be a ``Workflow`` or a callable returning one.
    """
    module_ref, sep, attribute = target.rpartition(":")
    if not sep or not module_ref or not attribute:
        raise ValueError(f"Expected MODULE:ATTRIBUTE, got '{target}'")

    module_obj = _load_module(module_ref)
    if not hasattr(module_obj, attribute):
        raise ValueError(f"'{attribute}' not found in {module_ref}")

    candidate = getattr(module_obj, attribute)
    if not isinstance(candidate, Workflow) and callable(candidate):
        candidate = candidate()
    if not isinstance(candidate, Workflow):
        raise ValueError(f"{target} is not a Workflow")
    return candidate


def coerce_input(workflow: Workflow, value: Any) -> Any:
    """Validate a decoded JSON object against the start executor's model types.

    The first pydantic model handled by the start executor that accepts
    ``value`` wins; anything else is passed through unchanged.
    """
    if not isinstance(value, dict):
        return value
    start = workflow.executors[workflow.start_executor_id]
    for input_type in start.input_types:
        if isinstance(input_type, type) and issubclass(input_type, BaseModel):
            try:
                return input_type.model_validate(value)
            except ValidationError:
                continue
    return value


def parse_value(raw: str) -> Any:
    """Decode ``raw`` as JSON, falling back to the plain string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def parse_responses(entries: Iterable[str]) -> dict[str, Any]:
    """Turn ``ID=VALUE`` arguments into a response mapping."""
    responses: dict[str, Any] = {}
    for entry in entries:
        request_id, sep, raw = entry.partition("=")
        if not sep or not request_id:
            raise ValueError(f"Expected REQUEST_ID=VALUE, got '{entry}'")
        responses[request_id.strip()] = parse_value(raw)
    return responses


def describe_request(request: RequestInfoMessage) -> str:
    """Human readable summary of a pending request."""
    prompt = getattr(request, "prompt", None)
    if isinstance(prompt, str) and prompt:
        return prompt
    fields = request.model_dump(mode="json", exclude={"request_id", "source_executor_id"})
    return json.dumps(fields) if fields else type(request).__name__
