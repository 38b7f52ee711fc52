"""Profile payload checks run before a makerspace may become (or stay) active."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from src.core.errors import ValidationError
from src.schemas.makerspace import WEEKDAYS, MakerspaceProfile


REQUIRED_PROFILE_FIELDS = (
    "type",
    "usage",
    "name",
    "email",
    "number",
    "inChargeName",
    "timings",
    "city",
    "state",
    "address",
    "zipcode",
    "country",
)
LIST_PROFILE_FIELDS = ("usage", "imageLinks", "logoImageLinks")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _error_fields(exc: PydanticValidationError) -> list[str]:
    fields: list[str] = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error.get("loc", ()))
        if path and path not in fields:
            fields.append(path)
    return fields


def validate_profile(payload: Any) -> MakerspaceProfile:
    """Validate a full profile, reporting every offending field of the first failing stage.

    Stages run in order: required fields, list-typed fields, weekday timings,
    then the remaining shape through ``MakerspaceProfile``.
    """

    if not isinstance(payload, Mapping):
        raise ValidationError("Makerspace profile must be a JSON object")

    missing = [name for name in REQUIRED_PROFILE_FIELDS if _is_blank(payload.get(name))]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)

    not_lists = [
        name
        for name in LIST_PROFILE_FIELDS
        if payload.get(name) is not None and not isinstance(payload.get(name), list)
    ]
    if not_lists:
        raise ValidationError(f"Fields must be arrays: {', '.join(not_lists)}", fields=not_lists)

    timings = payload["timings"]
    if not isinstance(timings, Mapping):
        raise ValidationError("Timings must be an object with days of the week", fields=["timings"])
    missing_days = [day for day in WEEKDAYS if _is_blank(timings.get(day))]
    if missing_days:
        raise ValidationError(
            f"Missing timings for: {', '.join(missing_days)}",
            fields=[f"timings.{day}" for day in missing_days],
        )

    try:
        return MakerspaceProfile.model_validate(dict(payload))
    except PydanticValidationError as exc:
        fields = _error_fields(exc)
        raise ValidationError(f"Invalid makerspace profile: {', '.join(fields)}", fields=fields) from exc
