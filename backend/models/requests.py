from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from models.responses import AnalysisResult


class ScoreRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resume: str = Field("", max_length=50000, description="Plain text resume content")
    job_description: str = Field("", max_length=10000, alias="jobDescription", description="Job description text")


class RewriteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resume: str = Field("", max_length=50000)
    job_description: str = Field("", max_length=10000, alias="jobDescription")
    analysis: AnalysisResult | None = None
    selected_gaps: list[str] | None = Field(None, alias="selectedGaps")


class AuditRequest(BaseModel):
    resume: str = Field("", max_length=50000)
    job_description: str = Field("", max_length=10000)
    user_locale: str = "en-AU"
    max_suggestions: int = Field(20, ge=1, le=50)
    model: str | None = None
    temperature: float = Field(0.2, ge=0.0, le=1.0)


class CoverageRequest(BaseModel):
    text: str = ""
    analysis: AnalysisResult


class ApplyGapRequest(BaseModel):
    text: str = Field(..., min_length=1)
    keyword: str = Field(..., min_length=1)
    impact: Literal["high", "medium", "low"]
    has_experience: bool = True
    role: str | None = None
