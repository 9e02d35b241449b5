"""
Shared Handler Helpers
Request binding used by every resource blueprint.
"""

from typing import Type, TypeVar

from flask import request
from pydantic import ValidationError

from tracker_hub.api.errors import BindError
from tracker_hub.api.resources import Resource

R = TypeVar('R', bound=Resource)


def bind(resource_class: Type[R]) -> R:
    """
    Parse and validate the JSON request body.

    Args:
        resource_class: Resource type to bind into

    Returns:
        Validated resource

    Raises:
        BindError: If the body is not JSON or fails validation
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise BindError('Request body must be a JSON object')

    try:
        return resource_class.model_validate(payload)
    except ValidationError as e:
        raise BindError.from_validation(e) from e
