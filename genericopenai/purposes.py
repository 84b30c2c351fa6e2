from __future__ import annotations

from enum import Enum
from typing import Mapping, Sequence


class Purpose(str, Enum):
    CHAT = "chat"
    FEEDBACK = "feedback"
    SINGLEPROMPT = "singleprompt"
    TRANSLATE = "translate"
    ITT = "itt"
    QUESTIONGENERATION = "questiongeneration"
    AGENT = "agent"

    @classmethod
    def from_value(cls, value: str | Purpose) -> Purpose:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as exc:
            raise ValueError(f"Unknown purpose: {value}") from exc


def validate_catalog(catalog: Mapping[Purpose, Sequence[str]], owner: str) -> dict[Purpose, tuple[str, ...]]:
    """Check a purpose catalog and return it normalised to tuples.

    Every purpose must be present; lists may be empty. Model ids must be
    non-empty strings.
    """
    missing = [purpose.value for purpose in Purpose if purpose not in catalog]
    if missing:
        raise TypeError(f"{owner} catalog is missing purposes: {', '.join(missing)}")

    normalised: dict[Purpose, tuple[str, ...]] = {}
    for purpose in Purpose:
        models = catalog[purpose]
        if isinstance(models, str):
            raise TypeError(f"{owner} catalog entry for {purpose.value} must be a sequence of model ids")
        for model in models:
            if not isinstance(model, str) or not model:
                raise TypeError(f"{owner} catalog entry for {purpose.value} contains an invalid model id")
        normalised[purpose] = tuple(models)
    return normalised
