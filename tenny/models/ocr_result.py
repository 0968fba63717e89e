from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tenny.models.transaction import LineItem


class ExtractedData(BaseModel):
    total: Optional[float] = None
    date: Optional[str] = None
    merchant: Optional[str] = None
    items: List[LineItem] = Field(default_factory=list)

    @property
    def missing_fields(self) -> List[str]:
        return [f for f in ("total", "date", "merchant") if getattr(self, f) in (None, "")]


class OcrResult(BaseModel):
    """Response of POST /api/ocr/process."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = ""
    extracted_data: ExtractedData = Field(default_factory=ExtractedData, alias="extractedData")
    confidence: float = Field(default=0.0, ge=0, le=1)
    processing_time: float = Field(default=0.0, alias="processingTime")  # seconds
    source: Optional[str] = None
