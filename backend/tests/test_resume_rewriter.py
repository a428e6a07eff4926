import pytest

from models.responses import AnalysisResult, Gap, KeywordCoverage
from services.errors import LLMTimeoutError, LLMUpstreamError, RewriteFailedError
from services.resume_rewriter import (
    SHORT_TEXT_NOTE,
    fallback_rewrite,
    normalize_rewrite,
    rewrite,
    select_keywords,
)

from conftest import SAMPLE_JD, SAMPLE_RESUME, llm_response

REWRITTEN = SAMPLE_RESUME.replace("Figma, Sketch, Prototyping", "Figma, Sketch, Prototyping, design systems")


def _analysis(score=62, missing=("design systems", "usability testing")):
    return AnalysisResult(
        overall_score=score,
        keyword_coverage=KeywordCoverage(
            matched_keywords=["Figma"],
            missing_keywords=[Gap(keyword=kw, risk="medium", points=3) for kw in missing],
        ),
    )


# --- Keyword selection ---

def test_select_keywords_prefers_selected_gaps():
    assert select_keywords(_analysis(), ["SaaS", "Figma"], limit=5) == ["SaaS", "Figma"]


def test_select_keywords_falls_back_to_missing_keywords():
    assert select_keywords(_analysis(), None, limit=5) == ["design systems", "usability testing"]


def test_select_keywords_truncates_in_caller_order():
    gaps = ["a", "b", "c", "d", "e", "f"]
    assert select_keywords(None, gaps, limit=5) == ["a", "b", "c", "d", "e"]


def test_select_keywords_drops_blanks_and_duplicates():
    assert select_keywords(None, ["a", " ", "A", "b"], limit=5) == ["a", "b"]


# --- No-op path ---

@pytest.mark.asyncio
async def test_no_keywords_returns_original_without_llm(fake_llm):
    result = await rewrite(SAMPLE_RESUME, SAMPLE_JD, analysis=_analysis(score=70, missing=()), selected_gaps=[])
    assert result.text == SAMPLE_RESUME
    assert result.new_score == 75
    assert len(result.changes) == 1
    fake_llm.assert_not_awaited()


@pytest.mark.asyncio
async def test_no_analysis_and_no_gaps_uses_default_prior(fake_llm):
    result = await rewrite(SAMPLE_RESUME, SAMPLE_JD)
    assert result.new_score == 65
    fake_llm.assert_not_awaited()


# --- LLM path ---

@pytest.mark.asyncio
async def test_rewrite_uses_model_output(fake_llm):
    fake_llm.return_value = llm_response({
        "text": REWRITTEN,
        "newScore": 81,
        "changes": [{"keyword": "design systems", "location": "Skills"}, "junk", {"location": "no keyword"}],
    })
    result = await rewrite(SAMPLE_RESUME, SAMPLE_JD, analysis=_analysis(), selected_gaps=["design systems"])

    assert result.text == REWRITTEN
    assert result.new_score == 81
    assert [c.keyword for c in result.changes] == ["design systems"]
    prompt = fake_llm.call_args.args[0]
    assert "- design systems" in prompt


@pytest.mark.asyncio
async def test_rewrite_defaults_missing_score(fake_llm):
    fake_llm.return_value = llm_response({"text": REWRITTEN, "changes": "not a list"})
    result = await rewrite(SAMPLE_RESUME, SAMPLE_JD, analysis=_analysis(score=62))
    assert result.new_score == 77
    assert result.changes == []


@pytest.mark.asyncio
async def test_rewrite_clamps_score(fake_llm):
    fake_llm.return_value = llm_response({"text": REWRITTEN, "newScore": 140, "changes": []})
    result = await rewrite(SAMPLE_RESUME, SAMPLE_JD, analysis=_analysis())
    assert result.new_score == 100


@pytest.mark.asyncio
async def test_unparseable_output_applies_fallback(fake_llm):
    fake_llm.return_value = llm_response("Sure! Here is your resume: {")
    result = await rewrite(SAMPLE_RESUME, SAMPLE_JD, analysis=_analysis(score=62))

    assert "Figma, Sketch, Prototyping, design systems, usability testing" in result.text
    assert len(result.text) >= len(SAMPLE_RESUME)
    assert result.new_score == 77
    assert len(result.changes) == 1
    assert result.changes[0].keyword == "design systems, usability testing"


@pytest.mark.asyncio
async def test_upstream_errors_become_rewrite_failure(fake_llm):
    fake_llm.side_effect = LLMUpstreamError(status=503, body="unavailable")
    with pytest.raises(RewriteFailedError) as exc_info:
        await rewrite(SAMPLE_RESUME, SAMPLE_JD, selected_gaps=["design systems"])
    assert exc_info.value.status_code == 500
    assert exc_info.value.code == "SERVER_ERROR"
    assert exc_info.value.extra == {"upstream": "LLM_UPSTREAM_ERROR", "status": 503}


@pytest.mark.asyncio
async def test_timeout_becomes_rewrite_failure(fake_llm):
    fake_llm.side_effect = LLMTimeoutError()
    with pytest.raises(RewriteFailedError) as exc_info:
        await rewrite(SAMPLE_RESUME, SAMPLE_JD, selected_gaps=["design systems"])
    assert exc_info.value.extra["upstream"] == "TIMEOUT"


# --- normalize_rewrite ---

def test_missing_text_applies_fallback():
    result = normalize_rewrite('{"changes": []}', SAMPLE_RESUME, ["SaaS"], prior_score=None)
    assert "SaaS" in result.text
    assert result.new_score == 75


def test_short_text_keeps_original_with_note():
    result = normalize_rewrite('{"text": "Jane Smith", "newScore": 90}', SAMPLE_RESUME, ["SaaS"], prior_score=50)
    assert result.text == SAMPLE_RESUME + SHORT_TEXT_NOTE
    assert result.changes == []
    assert result.new_score == 65


def test_short_resume_accepts_short_rewrite():
    resume = "Jane Smith, designer. Skills: Figma"
    rewritten = "Jane Smith, designer. Skills: Figma, SaaS"
    result = normalize_rewrite(f'{{"text": "{rewritten}"}}', resume, ["SaaS"], prior_score=50)
    assert result.text == rewritten


def test_fallback_without_skills_section_appends_one():
    resume = "Jane Smith\nProduct Designer at Canva\n- Designed the editor"
    result = fallback_rewrite(resume, ["design systems", "SaaS"], prior_score=95)
    assert result.text.startswith(resume)
    assert result.text.endswith("SKILLS:\ndesign systems, SaaS")
    assert result.new_score == 100
    assert result.changes[0].location == "New SKILLS section at end of resume"


def test_scenario_inline_skills_fallback():
    resume = "Experienced UX designer. Skills: Figma, Sketch."
    result = fallback_rewrite(resume, ["usability testing"], prior_score=None)
    assert result.text == "Experienced UX designer. Skills: Figma, Sketch, usability testing"
    assert result.new_score == 75
