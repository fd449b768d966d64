"""
Insight and Report Schemas
"""

from typing import Optional
from pydantic import Field, model_validator

from api.schemas.common import ApiModel, UtcDatetime


class TranslateTermRequest(ApiModel):
    term: str = Field(..., min_length=1, max_length=500)


class TranslateTermResponse(ApiModel):
    plain_language: str
    explanation: str


class ReportGenerateRequest(ApiModel):
    """Schema for requesting a provider report"""
    period_start: UtcDatetime
    period_end: UtcDatetime
    report_type: Optional[str] = Field(None, max_length=30)

    @model_validator(mode="after")
    def check_period(self):
        if self.period_end < self.period_start:
            raise ValueError("periodEnd must not be before periodStart")
        return self
