"""Turn raw scoring JSON from the LLM into a consistent AnalysisResult.

Rules applied to every response:
1. Parse the text as a JSON object (NON_JSON_RESPONSE otherwise)
2. Canonicalize matched/missing keywords, dropping duplicates and any
   missing keyword that is also matched
3. Populate each Gap's evidence fields for the deployment's schema
   (rule-based risk, or clamped confidence + reasoning + JD quote)
4. Recompute overall_score from keyword counts instead of trusting the model
5. Merge generated telemetry over whatever the model emitted
"""

import json
import logging
import math
import re
from typing import Any

from models.responses import (
    AnalysisResult,
    Gap,
    KeywordCoverage,
    LanguageAlignment,
    Telemetry,
)
from services.errors import NonJsonResponseError

logger = logging.getLogger(__name__)

IMPORTANCE_LEVELS = ("critical", "high", "medium")

DEFAULT_CONFIDENCE = 0.7
MIN_CONFIDENCE = 0.4
MAX_CONFIDENCE = 1.0
MAX_JD_QUOTE_CHARS = 200
DEFAULT_REASONING = [
    "The job description lists this as a requirement.",
    "The resume does not mention this phrase.",
]
DEFAULT_JD_QUOTE = "Referenced in the job description."


def _words(*alternatives: str) -> re.Pattern:
    """Case-insensitive alternation bounded by non-word characters."""
    return re.compile(r"(?<!\w)(?:" + "|".join(alternatives) + r")(?!\w)", re.IGNORECASE)


# ---------------------------------------------------------------------------
# HIGH RISK: claims that need verifiable experience behind them
# ---------------------------------------------------------------------------
_HIGH_RISK_PATTERNS: list[re.Pattern] = [
    # Seniority levels
    _words(r"principal", r"lead", r"director", r"head of", r"vp", r"chief", r"senior", r"sr\."),
    # Role titles
    _words(r"system lead", r"team lead", r"design lead", r"[a-z]+ manager", r"[a-z]+ architect"),
    # Years of experience
    _words(r"\d+\+?\s*(?:years?|yrs?)"),
    # Deep domain expertise
    _words(r"domain expert", r"subject matter expert", r"specialist in"),
    # Credentials
    _words(r"certified", r"certification", r"certifications", r"accredited", r"accreditation", r"licensed"),
]

# ---------------------------------------------------------------------------
# LOW RISK: easy to add with basic familiarity
# ---------------------------------------------------------------------------
_LOW_RISK_PATTERNS: list[re.Pattern] = [
    # Common tools
    _words(r"figma", r"sketch", r"adobe", r"photoshop", r"illustrator", r"xd", r"invision",
           r"miro", r"notion", r"jira", r"confluence", r"excel"),
    # Basic design and process practices
    _words(r"prototyping", r"wireframing", r"user research", r"usability testing", r"a/b testing"),
    # Soft skills
    _words(r"collaboration", r"communication", r"teamwork", r"agile", r"scrum"),
    # General UX concepts
    _words(r"user-centered", r"human-centered", r"design thinking", r"user experience", r"ux", r"ui"),
    # Common methodologies
    _words(r"iterative", r"responsive", r"mobile-first", r"accessibility"),
    # Business models
    _words(r"b2b", r"b2c", r"saas", r"marketplace"),
]

RISK_POINTS = {"high": 5, "medium": 3, "low": 2}


def parse_json_object(text: str) -> dict[str, Any]:
    """Parse model output that must be a JSON object."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        logger.error("Failed to parse LLM response as JSON: %s; first 200 chars: %r", e, (text or "")[:200])
        raise NonJsonResponseError(raw=text or "")
    if not isinstance(data, dict):
        logger.error("LLM response is JSON but not an object: %s", type(data).__name__)
        raise NonJsonResponseError(raw=text)
    return data


def classify_risk(keyword: str) -> tuple[str, int]:
    """Rule-based risk of claiming a keyword. Returns (risk, points)."""
    if any(p.search(keyword) for p in _HIGH_RISK_PATTERNS):
        return "high", RISK_POINTS["high"]
    if any(p.search(keyword) for p in _LOW_RISK_PATTERNS):
        return "low", RISK_POINTS["low"]
    return "medium", RISK_POINTS["medium"]


def normalize_importance(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in IMPORTANCE_LEVELS:
        return value.strip().lower()
    return "medium"


def normalize_confidence(value: Any) -> float:
    """Clamp into [0.4, 1.0]; absent, non-numeric or outside 0-1 becomes 0.7."""
    if isinstance(value, bool):
        return DEFAULT_CONFIDENCE
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if math.isnan(confidence) or not 0.0 <= confidence <= 1.0:
        return DEFAULT_CONFIDENCE
    return round(min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, confidence)), 2)


def normalize_reasoning(value: Any) -> list[str]:
    """Two or three non-empty bullets."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return list(DEFAULT_REASONING)
    bullets = [item.strip() for item in value if isinstance(item, str) and item.strip()]
    if not bullets:
        return list(DEFAULT_REASONING)
    if len(bullets) == 1:
        bullets.append(DEFAULT_REASONING[1])
    return bullets[:3]


def normalize_jd_quote(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        return DEFAULT_JD_QUOTE
    quote = value.strip()
    if len(quote) > MAX_JD_QUOTE_CHARS:
        quote = quote[:MAX_JD_QUOTE_CHARS - 3].rstrip() + "..."
    return quote


def keyword_text(entry: Any) -> str:
    """The keyword string of a bare string or ``{"keyword": ...}`` entry."""
    if isinstance(entry, str):
        return entry.strip()
    if isinstance(entry, dict) and isinstance(entry.get("keyword"), str):
        return entry["keyword"].strip()
    return ""


def normalize_gap(entry: Any, gap_schema: str = "risk") -> Gap | None:
    """Build a fully populated Gap, or None when the entry has no keyword."""
    keyword = keyword_text(entry)
    if not keyword:
        return None
    fields = entry if isinstance(entry, dict) else {}
    importance = normalize_importance(fields.get("importance"))

    if gap_schema == "confidence":
        return Gap(
            keyword=keyword,
            importance=importance,
            confidence=normalize_confidence(fields.get("confidence")),
            reasoning=normalize_reasoning(fields.get("reasoning")),
            jd_quote=normalize_jd_quote(fields.get("jd_quote")),
        )

    risk, points = classify_risk(keyword)
    return Gap(keyword=keyword, importance=importance, risk=risk, points=points)


def _clamp_number(value: Any, low: float, high: float, default: float = 0) -> float:
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number):
        return default
    return min(high, max(low, number))


def coverage_percent(matched: int, total: int) -> int:
    """round(100 * matched / total); 0 for an empty keyword set."""
    if total <= 0:
        return 0
    return round(100 * matched / total)


def merge_telemetry(generated: dict[str, Any], emitted: Any = None) -> Telemetry:
    """Generated values win for the required fields; extra model fields survive."""
    merged = dict(emitted) if isinstance(emitted, dict) else {}
    merged.update(generated)
    return Telemetry(**merged)


def normalize_analysis(
    raw: dict[str, Any],
    gap_schema: str = "risk",
    telemetry: dict[str, Any] | None = None,
) -> AnalysisResult:
    """Validate and repair the scoring JSON into an AnalysisResult."""
    coverage_raw = raw.get("keyword_coverage")
    if not isinstance(coverage_raw, dict):
        coverage_raw = {}

    matched_raw = coverage_raw.get("matched_keywords")
    missing_raw = coverage_raw.get("missing_keywords")
    lists_present = isinstance(matched_raw, list) and isinstance(missing_raw, list)

    matched: list[str] = []
    seen: set[str] = set()
    for entry in matched_raw if isinstance(matched_raw, list) else []:
        keyword = keyword_text(entry)
        if keyword and keyword.lower() not in seen:
            seen.add(keyword.lower())
            matched.append(keyword)

    gaps: list[Gap] = []
    for entry in missing_raw if isinstance(missing_raw, list) else []:
        gap = normalize_gap(entry, gap_schema)
        if gap is None or gap.keyword.lower() in seen:
            continue
        seen.add(gap.keyword.lower())
        gaps.append(gap)

    total = len(matched) + len(gaps)
    if lists_present and total > 0:
        overall_score = coverage_percent(len(matched), total)
        coverage_score = overall_score
    else:
        logger.warning("Keyword lists incomplete, keeping model-reported scores")
        overall_score = round(_clamp_number(raw.get("overall_score"), 0, 100))
        coverage_score = round(_clamp_number(coverage_raw.get("score"), 0, 100))

    alignment_raw = raw.get("language_alignment")
    alignment_score = _clamp_number(
        alignment_raw.get("score") if isinstance(alignment_raw, dict) else None, 0, 50
    )

    return AnalysisResult(
        overall_score=overall_score,
        keyword_coverage=KeywordCoverage(
            score=coverage_score,
            matched_keywords=matched,
            missing_keywords=gaps,
        ),
        language_alignment=LanguageAlignment(score=alignment_score),
        telemetry=merge_telemetry(telemetry, raw.get("telemetry")) if telemetry is not None else None,
    )
