"""Walk the user through missing keywords one at a time.

Placement is a best-effort heuristic over plain text lines, not a
guarantee of grammatical output:

    score(line) = 2 if it starts with a bullet marker
                + 1 per experience/seniority/domain term it contains
                + 1 if it is longer than 40 characters

The highest-scoring line wins (first one on ties). With no positive
score the line after a summary/profile/about/objective heading is used,
else line index 2.
"""

import logging
import re
from dataclasses import dataclass, field

from models.responses import AnalysisResult, Gap
from services.analysis_normalizer import coverage_percent
from services.resume_text import append_to_skills, find_keyword_spans, highlight_markup, is_bullet

logger = logging.getLogger(__name__)

IMPACT_LEVELS = ("high", "medium", "low")
SUMMARY_INSERT_INDEX = 3
DEFAULT_INSERT_INDEX = 2
LONG_LINE_CHARS = 40

EXPERIENCE_TERMS: tuple[str, ...] = (
    # Ownership verbs
    "led", "managed", "designed", "developed", "built", "launched", "delivered",
    "created", "improved", "implemented", "owned", "drove",
    # Seniority
    "senior", "lead", "principal", "manager", "director", "head",
    # Domain nouns
    "experience", "product", "platform", "users", "customers", "stakeholders",
    "research", "strategy", "team", "teams",
)
_TERM_PATTERNS = [re.compile(rf"(?<!\w){re.escape(t)}(?!\w)", re.IGNORECASE) for t in EXPERIENCE_TERMS]

_SUMMARY_HEADING_RE = re.compile(
    r"^\s*(?:professional\s+|career\s+)?(?:summary|profile|about(?:\s+me)?|objective)\s*:?\s*$",
    re.IGNORECASE,
)
_ROLE_RE = re.compile(r"designer|lead|senior|consultant|developer|engineer|manager|director", re.IGNORECASE)


class GapWalkerError(ValueError):
    """An edit that cannot be applied to the current document."""


@dataclass
class InsertionPoint:
    line_index: int
    text: str
    score: int


@dataclass
class Role:
    title: str
    line_index: int


@dataclass
class ImpactOption:
    impact: str
    line_index: int
    suggested: str
    original: str | None = None


@dataclass
class AppliedKeyword:
    keyword: str
    text: str
    impact: str
    line_index: int


@dataclass
class Coverage:
    matched: list[str] = field(default_factory=list)
    total: int = 0

    @property
    def percentage(self) -> int:
        return coverage_percent(len(self.matched), self.total)


def score_line(line: str) -> int:
    score = 0
    if is_bullet(line):
        score += 2
    score += sum(1 for pattern in _TERM_PATTERNS if pattern.search(line))
    if len(line) > LONG_LINE_CHARS:
        score += 1
    return score


def extract_roles(text: str) -> list[Role]:
    """Lines that look like job titles (short, non-bullet, role words)."""
    roles = []
    for index, line in enumerate(text.split("\n")):
        trimmed = line.strip()
        if trimmed and len(trimmed) < 100 and not is_bullet(trimmed) and _ROLE_RE.search(trimmed):
            roles.append(Role(title=trimmed, line_index=index))
    return roles


def _role_block(lines: list[str], role: str) -> tuple[int, int]:
    """Line range [start, end) of the entries under a role title."""
    start = next((i for i, line in enumerate(lines) if role in line), -1)
    if start == -1:
        return 0, len(lines)
    end = next(
        (i for i in range(start + 1, len(lines)) if lines[i][:1].isupper()),
        len(lines),
    )
    return start + 1, end


def _default_line(lines: list[str]) -> int:
    for i, line in enumerate(lines):
        if _SUMMARY_HEADING_RE.match(line):
            return min(i + 1, len(lines) - 1)
    return min(DEFAULT_INSERT_INDEX, max(len(lines) - 1, 0))


def locate_insertion_point(text: str, role: str | None = None) -> InsertionPoint:
    """Best line to carry a new keyword, in document order on ties."""
    lines = text.split("\n")
    start, end = _role_block(lines, role) if role else (0, len(lines))

    best_index, best_score = -1, 0
    for i in range(start, end):
        line_score = score_line(lines[i])
        if line_score > best_score:
            best_index, best_score = i, line_score

    if best_index == -1:
        best_index = _default_line(lines)
    return InsertionPoint(line_index=best_index, text=lines[best_index], score=best_score)


def best_bullet(text: str, role: str | None = None) -> InsertionPoint | None:
    """Highest-scoring bullet line, or None when there is no bullet."""
    lines = text.split("\n")
    start, end = _role_block(lines, role) if role else (0, len(lines))

    best = None
    for i in range(start, end):
        if not is_bullet(lines[i]):
            continue
        line_score = score_line(lines[i])
        if best is None or line_score > best.score:
            best = InsertionPoint(line_index=i, text=lines[i], score=line_score)
    return best


def incorporate(line: str, keyword: str) -> str:
    """Append ", incorporating <keyword>" ahead of any trailing period."""
    body = line.rstrip()
    if body.endswith("."):
        return f"{body[:-1]}, incorporating {keyword}."
    return f"{body}, incorporating {keyword}"


def summary_sentence(keyword: str, has_experience: bool = True) -> str:
    if has_experience:
        return f"Professional with hands-on experience in {keyword}."
    return f"Professional with a growing interest in {keyword}."


def impact_options(
    text: str,
    keyword: str,
    has_experience: bool = True,
    role: str | None = None,
) -> dict[str, ImpactOption | None]:
    """Proposed edits per impact level; high is None without an experience bullet."""
    high = None
    if has_experience:
        point = best_bullet(text, role)
        if point is not None:
            high = ImpactOption(
                impact="high",
                line_index=point.line_index,
                original=point.text.strip(),
                suggested=incorporate(point.text, keyword).strip(),
            )

    lines = text.split("\n")
    return {
        "high": high,
        "medium": ImpactOption(
            impact="medium",
            line_index=min(SUMMARY_INSERT_INDEX, len(lines)),
            suggested=summary_sentence(keyword, has_experience),
        ),
        "low": ImpactOption(impact="low", line_index=-1, suggested=keyword),
    }


def apply_keyword(
    text: str,
    keyword: str,
    impact: str,
    has_experience: bool = True,
    role: str | None = None,
) -> tuple[str, AppliedKeyword]:
    """Apply one keyword at the given impact level. Returns (new_text, applied)."""
    if impact not in IMPACT_LEVELS:
        raise GapWalkerError(f"Unknown impact level: {impact}")

    if impact == "low":
        new_text, line_index, _ = append_to_skills(text, [keyword])
        return new_text, AppliedKeyword(keyword, keyword, impact, line_index)

    option = impact_options(text, keyword, has_experience, role)[impact]
    if option is None:
        raise GapWalkerError("No experience bullet to attach this keyword to")

    lines = text.split("\n")
    if impact == "high":
        indent = lines[option.line_index][: len(lines[option.line_index]) - len(lines[option.line_index].lstrip())]
        lines[option.line_index] = indent + option.suggested
    else:
        lines.insert(option.line_index, option.suggested)
    return "\n".join(lines), AppliedKeyword(keyword, option.suggested, impact, option.line_index)


def all_keywords(analysis: AnalysisResult) -> list[str]:
    """matched ∪ missing, de-duplicated case-insensitively, matched first."""
    keywords: list[str] = []
    seen: set[str] = set()
    coverage = analysis.keyword_coverage
    for keyword in coverage.matched_keywords + [gap.keyword for gap in coverage.missing_keywords]:
        if keyword.lower() not in seen:
            seen.add(keyword.lower())
            keywords.append(keyword)
    return keywords


def recompute_coverage(text: str, analysis: AnalysisResult) -> Coverage:
    """Keywords found in the edited text by case-insensitive containment."""
    keywords = all_keywords(analysis)
    lowered = text.lower()
    matched = [kw for kw in keywords if kw.lower() in lowered]
    return Coverage(matched=matched, total=len(keywords))


class GapWalker:
    """Session state for stepping through an analysis' missing keywords.

    current_gap_index only moves forward; once it equals the number of
    gaps the walk is done.
    """

    def __init__(self, analysis: AnalysisResult, resume_text: str):
        self.analysis = analysis
        self.text = resume_text
        self.current_gap_index = 0
        self.applied_keywords: list[AppliedKeyword] = []

    @property
    def gaps(self) -> list[Gap]:
        return self.analysis.keyword_coverage.missing_keywords

    @property
    def is_done(self) -> bool:
        return self.current_gap_index >= len(self.gaps)

    @property
    def current_gap(self) -> Gap | None:
        return None if self.is_done else self.gaps[self.current_gap_index]

    def _require_gap(self) -> Gap:
        gap = self.current_gap
        if gap is None:
            raise GapWalkerError("All keywords have been reviewed")
        return gap

    def options(self, has_experience: bool = True, role: str | None = None) -> dict[str, ImpactOption | None]:
        return impact_options(self.text, self._require_gap().keyword, has_experience, role)

    def apply(self, impact: str, has_experience: bool = True, role: str | None = None) -> AppliedKeyword:
        gap = self._require_gap()
        self.text, applied = apply_keyword(self.text, gap.keyword, impact, has_experience, role)
        self.applied_keywords.append(applied)
        logger.debug("Applied %r at %s impact (line %d)", gap.keyword, impact, applied.line_index)
        self.current_gap_index += 1
        return applied

    def skip(self) -> None:
        self._require_gap()
        self.current_gap_index += 1

    def edit(self, text: str) -> None:
        """Replace the document with user-edited text."""
        self.text = text

    def coverage(self) -> Coverage:
        return recompute_coverage(self.text, self.analysis)

    def highlights(self) -> list[tuple[int, int, str]]:
        """Spans of applied keywords in the current text."""
        return find_keyword_spans(self.text, [a.keyword for a in self.applied_keywords])

    def marked_text(self, open_tag: str = "<mark>", close_tag: str = "</mark>") -> str:
        return highlight_markup(self.text, [a.keyword for a in self.applied_keywords], open_tag, close_tag)

    def roles(self) -> list[Role]:
        """Roles the user can pick to steer insertion into that role's block."""
        return extract_roles(self.text)
