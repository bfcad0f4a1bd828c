"""Site context models."""

from pydantic import BaseModel, ConfigDict, Field


class SiteContext(BaseModel):
    """The physical site a piece of work pertains to."""

    model_config = ConfigDict(frozen=True)

    site_id: str = Field(..., description="Site identifier")
    site_name: str = Field(..., description="Human readable site name")
    location: str | None = Field(default=None, description="Optional location line")
