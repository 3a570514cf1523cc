import json
from typing import Any, Callable, Dict, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from aurora.core.exceptions import SoftFailure
from aurora.core.logger import get_logger

logger = get_logger("payload")

ModelT = TypeVar("ModelT", bound=BaseModel)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def read_payload(request: Request) -> Dict[str, Any]:
    """Request body as a dict. JSON and form posts are both accepted; an empty body reads as ``{}``."""
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type in FORM_CONTENT_TYPES:
        form = await request.form()
        return dict(form)

    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        logger.info("Rejected unparseable body on %s", request.url.path)
        raise SoftFailure("Invalid request body")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SoftFailure("Invalid request body")
    return data


def body_of(model: Type[ModelT]) -> Callable[[Request], Any]:
    """Dependency that validates the request body into ``model``."""
    async def dependency(request: Request) -> ModelT:
        data = await read_payload(request)
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            logger.info("Rejected body on %s: %d validation errors", request.url.path, exc.error_count())
            raise SoftFailure("Invalid request body")
    return dependency
