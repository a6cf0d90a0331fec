"""Pydantic response models for location endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class LocationResponse(BaseModel):
    id: int
    name: str
    category: str
    lat: float | None
    lng: float | None


class LocationDistanceResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_name: str = Field(alias="from")
    to_name: str = Field(alias="to")
    distance_km: float | None
    method: str
