"""Pydantic request models for API endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class EventRequest(BaseModel):
    """Schedule text to turn into a calendar event."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(min_length=1)
    now_iso: str | None = Field(default=None, alias="nowIso")
    dry_run: bool = Field(default=False, alias="dryRun")
