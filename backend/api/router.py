from fastapi import APIRouter, File, Request, Response, UploadFile
from slowapi import Limiter
from slowapi.util import get_remote_address

from config import settings
from models.requests import ApplyGapRequest, AuditRequest, CoverageRequest, RewriteRequest, ScoreRequest
from models.responses import (
    AnalysisResult,
    ApplyGapResponse,
    CoverageResponse,
    ExtractResponse,
    RewriteResult,
)
from services import file_parser, gap_walker, resume_rewriter, resume_scorer
from services.errors import BadRequestError, MissingInputError

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def _require(**fields: str) -> None:
    """MISSING_INPUT listing every blank required field."""
    missing = [name for name, value in fields.items() if not value or not value.strip()]
    if missing:
        raise MissingInputError(missing)


def _check_job_description_length(job_description: str) -> None:
    if settings.enforce_min_job_description and len(job_description) < settings.min_job_description_length:
        raise BadRequestError(
            f"Job description is too short (minimum {settings.min_job_description_length} characters)"
        )


@router.get("/health")
async def health():
    return {
        "status": "ok",
        "gemini_configured": bool(settings.gemini_api_key),
        "gap_schema": settings.gap_schema,
    }


@router.options("/score", status_code=204)
@router.options("/rewrite", status_code=204)
@router.options("/audit", status_code=204)
async def preflight():
    return Response(status_code=204)


@router.post("/score", response_model=AnalysisResult, response_model_exclude_none=True)
@limiter.limit(settings.rate_limit)
async def score(request: Request, body: ScoreRequest):
    _require(resume=body.resume, jobDescription=body.job_description)
    _check_job_description_length(body.job_description)
    return await resume_scorer.score(body.resume, body.job_description)


@router.post("/rewrite", response_model=RewriteResult, response_model_exclude_none=True)
@limiter.limit(settings.rate_limit)
async def rewrite(request: Request, body: RewriteRequest):
    _require(resume=body.resume, jobDescription=body.job_description)
    return await resume_rewriter.rewrite(
        body.resume,
        body.job_description,
        analysis=body.analysis,
        selected_gaps=body.selected_gaps,
    )


@router.post("/audit")
@limiter.limit(settings.rate_limit)
async def audit(request: Request, body: AuditRequest):
    _require(job_description=body.job_description, resume=body.resume)
    return await resume_scorer.audit(
        body.resume,
        body.job_description,
        user_locale=body.user_locale,
        max_suggestions=body.max_suggestions,
        model=body.model,
        temperature=body.temperature,
    )


@router.post("/extract", response_model=ExtractResponse)
async def extract(resume_file: UploadFile = File(...)):
    content = await resume_file.read()
    filename = resume_file.filename or ""
    return ExtractResponse(text=file_parser.extract_resume_text(content, filename), filename=filename)


@router.post("/coverage", response_model=CoverageResponse)
async def coverage(body: CoverageRequest):
    result = gap_walker.recompute_coverage(body.text, body.analysis)
    return CoverageResponse(matched_keywords=result.matched, total=result.total, percentage=result.percentage)


@router.post("/gaps/apply", response_model=ApplyGapResponse)
async def apply_gap(body: ApplyGapRequest):
    try:
        text, applied = gap_walker.apply_keyword(
            body.text, body.keyword, body.impact, body.has_experience, body.role
        )
    except gap_walker.GapWalkerError as e:
        raise BadRequestError(str(e))
    return ApplyGapResponse(
        text=text,
        keyword=applied.keyword,
        impact=applied.impact,
        line_index=applied.line_index,
        inserted=applied.text,
    )
