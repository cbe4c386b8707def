"""Helpers shared by the API routers."""
from typing import Optional, Type, TypeVar

from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

RequestModel = TypeVar("RequestModel", bound=BaseModel)


def body_or_empty(body: Optional[RequestModel], model: Type[RequestModel]) -> RequestModel:
    """Treat a missing JSON body as ``{}`` so the model's own validators report what is missing."""
    if body is not None:
        return body
    try:
        return model()
    except ValidationError as exc:
        raise RequestValidationError(exc.errors())
