"""Coercion of untyped submissions into store input."""

from typing import Any

from starlette.datastructures import FormData
from starlette.exceptions import HTTPException
from starlette.requests import Request

from devevent.errors import BadRequestError, FieldValidationError

LIST_FIELDS = ("agenda", "tags")


def split_delimited(value: str) -> list[str]:
    """Split a comma-delimited string, trimming items and dropping empty ones."""
    value = value.strip()
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def coerce_list_fields(fields: dict[str, Any]) -> dict[str, Any]:
    for key in LIST_FIELDS:
        if isinstance(fields.get(key), str):
            fields[key] = split_delimited(fields[key])
    return fields


def form_to_fields(form: FormData) -> dict[str, Any]:
    """Flatten form data; repeated list-field keys become a list."""
    fields: dict[str, Any] = {}
    for key in form.keys():
        values = form.getlist(key)
        for value in values:
            if not isinstance(value, str):
                raise FieldValidationError.for_field(key, "expected a text value")
        if key in LIST_FIELDS and len(values) > 1:
            fields[key] = [v.strip() for v in values if v.strip()]
        else:
            fields[key] = values[-1]
    return coerce_list_fields(fields)


async def read_submission(request: Request) -> dict[str, Any]:
    """Read a JSON object or form body into a plain field mapping."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError as e:
            raise BadRequestError("Invalid JSON body") from e
        if not isinstance(data, dict):
            raise BadRequestError("Expected a JSON object")
        return coerce_list_fields(dict(data))

    try:
        form = await request.form()
    except (HTTPException, ValueError) as e:
        raise BadRequestError("Invalid form data") from e
    return form_to_fields(form)
