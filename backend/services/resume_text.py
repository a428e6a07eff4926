"""Line-level helpers for plain-text resumes: bullets, skills section and keyword spans."""

import re

# Bullet markers: standard + expanded unicode set
BULLET_MARKERS = frozenset("•-–—►▪✓*○◆⚫→▸▹◇■□●")

_NUMBERED_BULLET_RE = re.compile(r"^\d{1,2}[.)]\s")


def is_bullet(line: str) -> bool:
    """True for lines starting with a bullet marker or a short number."""
    stripped = line.strip()
    if not stripped:
        return False
    return stripped[0] in BULLET_MARKERS or bool(_NUMBERED_BULLET_RE.match(stripped))


def find_skills_line(lines: list[str]) -> int:
    """Index of the first line mentioning "skills" (any case), or -1."""
    for i, line in enumerate(lines):
        if "skills" in line.lower():
            return i
    return -1


def append_to_skills(text: str, keywords: list[str]) -> tuple[str, int, str]:
    """Add keywords to the resume's skills section.

    If a skills line exists, the keywords are appended to it when it
    carries items inline ("Skills: Figma, Sketch"), otherwise to the line
    that follows the heading. With no following line they go inline on the
    heading itself. Without any skills line a new ``SKILLS:`` section is
    appended at the end.

    Returns (new_text, line_index, location) where line_index is the line
    that received the keywords.
    """
    joined = ", ".join(keywords)
    lines = text.split("\n")
    idx = find_skills_line(lines)

    if idx == -1:
        new_text = text.rstrip() + f"\n\nSKILLS:\n{joined}"
        return new_text, len(new_text.split("\n")) - 1, "New SKILLS section at end of resume"

    heading = lines[idx]
    _, sep, inline_items = heading.partition(":")
    has_inline_items = bool(sep and inline_items.strip())

    if has_inline_items:
        target = idx
        lines[idx] = f"{heading.rstrip().rstrip('.;,')}, {joined}"
    elif idx + 1 < len(lines) and lines[idx + 1].strip():
        target = idx + 1
        lines[target] = f"{lines[target].rstrip().rstrip('.;,')}, {joined}"
    else:
        target = idx
        lines[idx] = f"{heading.rstrip().rstrip(':')}: {joined}"
    return "\n".join(lines), target, f"Skills section (line {target + 1})"


def keyword_pattern(keyword: str) -> re.Pattern:
    """Case-insensitive literal match that respects word edges.

    Lookarounds stand in for ``\\b`` so keywords that begin or end with
    punctuation ("C++", ".NET", "A/B testing") still match.
    """
    return re.compile(rf"(?<!\w){re.escape(keyword)}(?!\w)", re.IGNORECASE)


def find_keyword_spans(text: str, keywords: list[str]) -> list[tuple[int, int, str]]:
    """Non-overlapping (start, end, keyword) spans, longest keywords first."""
    taken: list[tuple[int, int, str]] = []
    unique = {kw.strip().lower(): kw.strip() for kw in keywords if kw and kw.strip()}
    for keyword in sorted(unique.values(), key=len, reverse=True):
        for match in keyword_pattern(keyword).finditer(text):
            start, end = match.span()
            if any(start < t_end and t_start < end for t_start, t_end, _ in taken):
                continue
            taken.append((start, end, keyword))
    return sorted(taken)


def highlight_markup(text: str, keywords: list[str], open_tag: str = "<mark>", close_tag: str = "</mark>") -> str:
    """Wrap every keyword occurrence in open_tag/close_tag."""
    parts = []
    cursor = 0
    for start, end, _ in find_keyword_spans(text, keywords):
        parts.append(text[cursor:start])
        parts.append(f"{open_tag}{text[start:end]}{close_tag}")
        cursor = end
    parts.append(text[cursor:])
    return "".join(parts)
