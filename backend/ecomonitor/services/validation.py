"""Input normalisation shared by the alert services."""
from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ecomonitor.core.exceptions import AlertValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_input(model_cls: type[ModelT], data: ModelT | dict[str, Any] | None) -> ModelT:
    """Coerce ``data`` into ``model_cls`` or raise :class:`AlertValidationError`."""

    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data or {})
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'payload'}: {error['msg']}" for error in exc.errors()
        )
        raise AlertValidationError(f"Invalid {model_cls.__name__}: {details}") from exc
