"""Scoring pipeline: prompt -> Gemini -> normalized AnalysisResult."""

import logging

from config import settings
from models.responses import AnalysisResult
from services import analysis_normalizer, gemini_client, prompt_builder

logger = logging.getLogger(__name__)


async def score(resume_text: str, job_description: str) -> AnalysisResult:
    """Score keyword alignment between a resume and a job description.

    Malformed model output is surfaced as NON_JSON_RESPONSE; a guessed
    score would be silently wrong.
    """
    logger.info("Scoring - JD length: %d, resume length: %d", len(job_description), len(resume_text))

    prompt = prompt_builder.build_scoring_prompt(resume_text, job_description, settings.gap_schema)
    response = await gemini_client.complete_json(
        prompt,
        temperature=settings.scoring_temperature,
        max_output_tokens=settings.scoring_max_tokens,
    )

    raw = analysis_normalizer.parse_json_object(response.text)
    result = analysis_normalizer.normalize_analysis(
        raw,
        gap_schema=settings.gap_schema,
        telemetry={
            "tokens_used": response.tokens_used,
            "model": response.model,
            "temperature": response.temperature,
            "notes": "Deterministic pass",
        },
    )

    logger.info(
        "Analysis complete. Score: %d, matched: %d, missing: %d",
        result.overall_score,
        len(result.keyword_coverage.matched_keywords),
        len(result.keyword_coverage.missing_keywords),
    )
    return result


async def audit(
    resume_text: str,
    job_description: str,
    user_locale: str = "en-AU",
    max_suggestions: int = 20,
    model: str | None = None,
    temperature: float | None = None,
) -> dict:
    """Deterministic ATS audit: the model's report with telemetry injected."""
    temperature = settings.audit_temperature if temperature is None else temperature
    response = await gemini_client.complete_json(
        prompt_builder.build_audit_payload(resume_text, job_description, user_locale, max_suggestions),
        temperature=temperature,
        max_output_tokens=settings.audit_max_tokens,
        model=model,
        system_instruction=prompt_builder.build_audit_prompt(),
    )

    report = analysis_normalizer.parse_json_object(response.text)
    report["telemetry"] = analysis_normalizer.merge_telemetry(
        {
            "tokens_used": response.tokens_used,
            "model": response.model,
            "temperature": response.temperature,
            "notes": "Deterministic pass",
        },
        report.get("telemetry"),
    ).model_dump()
    return report
