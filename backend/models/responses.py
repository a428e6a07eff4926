from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

Importance = Literal["critical", "high", "medium"]
Risk = Literal["low", "medium", "high"]


class Gap(BaseModel):
    """A job description keyword that the resume does not contain.

    Carries exactly one evidence schema per deployment:
        risk schema:       risk + points
        confidence schema: confidence + reasoning + jd_quote
    Fields of the inactive schema stay ``None`` and are dropped on output.
    """
    keyword: str = Field(..., min_length=1)
    importance: Importance = "medium"
    risk: Risk | None = None
    points: int | None = None
    confidence: float | None = Field(None, ge=0.4, le=1.0)
    reasoning: list[str] | None = None
    jd_quote: str | None = Field(None, max_length=200)

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_keyword(cls, value):
        if isinstance(value, str):
            return {"keyword": value}
        return value


class KeywordCoverage(BaseModel):
    score: int = Field(0, ge=0, le=100)
    matched_keywords: list[str] = []
    missing_keywords: list[Gap] = []


class LanguageAlignment(BaseModel):
    score: float = Field(0, ge=0, le=50)


class Telemetry(BaseModel):
    model_config = ConfigDict(extra="allow")

    tokens_used: int = 0
    model: str = ""
    temperature: float = 0.0
    notes: str = "Deterministic pass"


class AnalysisResult(BaseModel):
    overall_score: int = Field(0, ge=0, le=100)
    keyword_coverage: KeywordCoverage = KeywordCoverage()
    language_alignment: LanguageAlignment = LanguageAlignment()
    telemetry: Telemetry | None = None


class Change(BaseModel):
    keyword: str = ""
    location: str = ""
    before: str | None = None
    after: str | None = None


class RewriteResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., min_length=1)
    changes: list[Change] = []
    new_score: int = Field(0, ge=0, le=100, alias="newScore")


class CoverageResponse(BaseModel):
    matched_keywords: list[str] = []
    total: int = 0
    percentage: int = 0


class ApplyGapResponse(BaseModel):
    text: str
    keyword: str
    impact: str
    line_index: int
    inserted: str


class ExtractResponse(BaseModel):
    text: str
    filename: str
