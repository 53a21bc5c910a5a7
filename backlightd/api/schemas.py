from __future__ import annotations
from pydantic import BaseModel, Field


class SimLuxRequest(BaseModel):
    lux: int = Field(ge=0)


class SimEnableRequest(BaseModel):
    enabled: bool
