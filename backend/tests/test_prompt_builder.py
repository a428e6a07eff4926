from services.prompt_builder import (
    build_audit_payload,
    build_audit_prompt,
    build_rewrite_prompt,
    build_scoring_prompt,
)

from conftest import SAMPLE_JD, SAMPLE_RESUME


def test_scoring_prompt_embeds_inputs_and_rules():
    prompt = build_scoring_prompt(SAMPLE_RESUME, SAMPLE_JD)
    assert SAMPLE_RESUME in prompt
    assert SAMPLE_JD in prompt
    assert "15-20" in prompt
    assert "multi-word phrases" in prompt
    assert "exact phrases" in prompt.lower()
    assert "fabricate" in prompt.lower()
    assert '"matched_keywords"' in prompt
    assert '"missing_keywords"' in prompt


def test_scoring_prompt_risk_schema():
    prompt = build_scoring_prompt(SAMPLE_RESUME, SAMPLE_JD, gap_schema="risk")
    assert '"risk"' in prompt
    assert '"points"' in prompt
    assert '"confidence"' not in prompt


def test_scoring_prompt_confidence_schema():
    prompt = build_scoring_prompt(SAMPLE_RESUME, SAMPLE_JD, gap_schema="confidence")
    assert '"confidence"' in prompt
    assert '"reasoning"' in prompt
    assert '"jd_quote"' in prompt
    assert '"risk"' not in prompt


def test_scoring_prompt_is_deterministic():
    assert build_scoring_prompt("a resume", "a jd") == build_scoring_prompt("a resume", "a jd")


def test_rewrite_prompt_keeps_first_five_keywords_in_order():
    keywords = ["usability testing", "design systems", "A/B testing", "SaaS", "Figma", "accessibility"]
    prompt = build_rewrite_prompt(SAMPLE_RESUME, SAMPLE_JD, keywords)
    for kw in keywords[:5]:
        assert f"- {kw}" in prompt
    assert "- accessibility" not in prompt
    assert prompt.index("usability testing") < prompt.index("design systems")


def test_rewrite_prompt_rules_and_schema():
    prompt = build_rewrite_prompt(SAMPLE_RESUME, SAMPLE_JD, ["design systems"])
    assert "Never fabricate" in prompt
    assert "Preserve all original content" in prompt
    assert '"text"' in prompt
    assert '"changes"' in prompt
    assert '"newScore"' in prompt


def test_rewrite_prompt_truncates_jd_context():
    jd = "x" * 1500
    prompt = build_rewrite_prompt(SAMPLE_RESUME, jd, ["design systems"])
    assert "x" * 1000 in prompt
    assert "x" * 1001 not in prompt


def test_audit_prompt_and_payload():
    prompt = build_audit_prompt()
    assert "No invention" in prompt
    assert '"truth_audit"' in prompt
    payload = build_audit_payload(SAMPLE_RESUME, SAMPLE_JD, user_locale="en-GB", max_suggestions=5)
    assert '"user_locale": "en-GB"' in payload
    assert '"max_suggestions": 5' in payload
