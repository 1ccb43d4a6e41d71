"""Base models for camelCase serialization."""

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic.alias_generators import to_camel


class CamelCaseModel(BaseModel):
    """Base model using camelCase JSON serialization, matching the wire format."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class FrozenModel(CamelCaseModel):
    """CamelCaseModel that cannot be mutated after construction."""

    model_config = ConfigDict(frozen=True)
