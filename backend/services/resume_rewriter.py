"""Rewrite pipeline: fold selected keywords into the resume.

Always returns a usable RewriteResult. When the model's output cannot be
used, the keywords are inserted into the skills section deterministically.
"""

import json
import logging
from typing import Any

from config import settings
from models.responses import AnalysisResult, Change, RewriteResult
from services import gemini_client, prompt_builder
from services.errors import LLMUpstreamError, RewriteFailedError
from services.resume_text import append_to_skills

logger = logging.getLogger(__name__)

DEFAULT_PRIOR_SCORE = 60
NO_OP_SCORE_BUMP = 5
REWRITE_SCORE_BUMP = 15
MIN_REWRITE_CHARS = 100
SHORT_TEXT_NOTE = (
    "\n\n[Note: AI optimization returned an incomplete resume. "
    "Your original resume is shown above. Please try again.]"
)


def _bump(prior_score: int | None, points: int) -> int:
    base = DEFAULT_PRIOR_SCORE if prior_score is None else prior_score
    return min(100, max(0, base + points))


def select_keywords(
    analysis: AnalysisResult | None,
    selected_gaps: list[str] | None,
    limit: int,
) -> list[str]:
    """First `limit` keywords: the user's selection, else the analysis' gaps."""
    if selected_gaps:
        candidates = selected_gaps
    elif analysis is not None:
        candidates = [gap.keyword for gap in analysis.keyword_coverage.missing_keywords]
    else:
        candidates = []

    keywords: list[str] = []
    seen: set[str] = set()
    for keyword in candidates:
        keyword = keyword.strip()
        if keyword and keyword.lower() not in seen:
            seen.add(keyword.lower())
            keywords.append(keyword)
    return keywords[:limit]


def fallback_rewrite(resume_text: str, keywords: list[str], prior_score: int | None) -> RewriteResult:
    """Insert keywords into the skills section (or a new one at the end)."""
    new_text, line_index, location = append_to_skills(resume_text, keywords)
    after = new_text.split("\n")[line_index]
    return RewriteResult(
        text=new_text,
        changes=[Change(keyword=", ".join(keywords), location=location, after=after)],
        new_score=_bump(prior_score, REWRITE_SCORE_BUMP),
    )


def _parse_changes(value: Any) -> list[Change]:
    if not isinstance(value, list):
        return []
    changes = []
    for item in value:
        if not isinstance(item, dict):
            continue
        fields = {k: item.get(k) for k in ("keyword", "location", "before", "after")}
        if not isinstance(fields["keyword"], str) or not fields["keyword"].strip():
            continue
        changes.append(Change(
            keyword=fields["keyword"].strip(),
            location=fields["location"] if isinstance(fields["location"], str) else "",
            before=fields["before"] if isinstance(fields["before"], str) else None,
            after=fields["after"] if isinstance(fields["after"], str) else None,
        ))
    return changes


def _parse_score(value: Any, prior_score: int | None) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return _bump(prior_score, REWRITE_SCORE_BUMP)
    return min(100, max(0, round(value)))


def normalize_rewrite(
    text: str,
    resume_text: str,
    keywords: list[str],
    prior_score: int | None,
) -> RewriteResult:
    """Validate the model's rewrite JSON, falling back where it is unusable."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning("Rewrite JSON parse error: %s; first 200 chars: %r", e, (text or "")[:200])
        return fallback_rewrite(resume_text, keywords, prior_score)

    if not isinstance(data, dict) or not isinstance(data.get("text"), str) or not data["text"].strip():
        logger.warning("Rewrite response missing text, applying fallback")
        return fallback_rewrite(resume_text, keywords, prior_score)

    rewritten = data["text"]
    if len(rewritten.strip()) < min(MIN_REWRITE_CHARS, len(resume_text.strip())):
        logger.warning("Rewrite text suspiciously short (%d chars), keeping original", len(rewritten))
        return RewriteResult(
            text=resume_text + SHORT_TEXT_NOTE,
            changes=[],
            new_score=_bump(prior_score, REWRITE_SCORE_BUMP),
        )

    return RewriteResult(
        text=rewritten,
        changes=_parse_changes(data.get("changes")),
        new_score=_parse_score(data.get("newScore"), prior_score),
    )


async def rewrite(
    resume_text: str,
    job_description: str,
    analysis: AnalysisResult | None = None,
    selected_gaps: list[str] | None = None,
) -> RewriteResult:
    """Rewrite the resume to include the selected (or top missing) keywords."""
    prior_score = analysis.overall_score if analysis is not None else None
    keywords = select_keywords(analysis, selected_gaps, settings.max_rewrite_keywords)

    if not keywords:
        logger.info("No keywords to add, returning resume unchanged")
        return RewriteResult(
            text=resume_text,
            changes=[Change(keyword="", location="No missing keywords to add")],
            new_score=_bump(prior_score, NO_OP_SCORE_BUMP),
        )

    logger.info("Rewriting resume with %d keywords: %s", len(keywords), ", ".join(keywords))
    prompt = prompt_builder.build_rewrite_prompt(resume_text, job_description, keywords)
    try:
        response = await gemini_client.complete_json(
            prompt,
            temperature=settings.rewrite_temperature,
            max_output_tokens=settings.rewrite_max_tokens,
        )
    except LLMUpstreamError as e:
        logger.error("Rewrite request failed: %s (upstream status %s)", e.code, e.status)
        raise RewriteFailedError(upstream=e.code, status=e.status) from e

    result = normalize_rewrite(response.text, resume_text, keywords, prior_score)
    logger.info("Returning rewrite with score: %d, changes: %d", result.new_score, len(result.changes))
    return result
