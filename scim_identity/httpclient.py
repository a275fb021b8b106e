"""
HTTP response decoding shared by the SCIM client.
"""

import logging
from typing import Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from .errors import InvalidResponseError, UnexpectedStatusError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def decode_response(
    response: requests.Response,
    model: Type[ModelT],
    expected_status: int,
    api_name: str = "SCIM",
) -> ModelT:
    """
    Decode a JSON response body into ``model``.

    Raises:
        UnexpectedStatusError: status code differs from ``expected_status``
        InvalidResponseError: body is not valid JSON for ``model``
    """
    if response.status_code != expected_status:
        raise UnexpectedStatusError(
            api_name,
            response.status_code,
            reason=response.reason or "",
            body=response.text,
        )

    try:
        return model.model_validate_json(response.content)
    except ValidationError as e:
        raise InvalidResponseError(api_name, str(e)) from e


def close_response(
    response: Optional[requests.Response],
    operation: str,
    log: Optional[logging.Logger] = None,
) -> None:
    """Release the connection; a failure here cannot affect an already-read body."""
    if response is None:
        return

    try:
        response.close()
    except Exception as e:
        (log or logger).error(f"failed to close {operation} response body: {e}")
