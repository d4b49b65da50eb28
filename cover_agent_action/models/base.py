"""Base model for the values passed between pipeline stages."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model, hashable so instances can be de-duplicated as keys."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)
