from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class AdvisoryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    locality: Optional[str] = Field(default=None, max_length=200)
    crop_type: Optional[str] = Field(default=None, alias="cropType", max_length=100)
    growth_stage: Optional[str] = Field(default=None, alias="growthStage", max_length=100)
    soil_type: Optional[str] = Field(default=None, alias="soilType", max_length=100)
    message: Optional[str] = Field(default=None, max_length=2000)


class AdvisoryResponse(BaseModel):
    message: str
    data: dict[str, Any]
    audio: Optional[str] = None
