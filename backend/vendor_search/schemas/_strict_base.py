"""Schema baselines: strict requests, camelCase-aliased DTOs."""

from pydantic import BaseModel, ConfigDict


class CamelModel(BaseModel):
    """Response DTO base; fields carry camelCase aliases and accept either name."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)


class StrictRequestModel(BaseModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, use_enum_values=True)
