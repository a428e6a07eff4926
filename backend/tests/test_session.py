"""Tests for the session controller's view state machine."""

from unittest.mock import AsyncMock

import pytest

from models.responses import AnalysisResult, Gap, KeywordCoverage, RewriteResult
from services.errors import LLMUpstreamError, UploadRejectedError
from services.session import InvalidTransitionError, SessionController, SessionError, SessionState

from conftest import SAMPLE_JD, SAMPLE_RESUME

ANALYSIS = AnalysisResult(
    overall_score=50,
    keyword_coverage=KeywordCoverage(
        score=50,
        matched_keywords=["Figma"],
        missing_keywords=[Gap(keyword="usability testing", risk="low", points=2)],
    ),
)


def _controller(scorer_result=ANALYSIS, rewriter_result=None):
    scorer = AsyncMock(return_value=scorer_result)
    rewriter = AsyncMock(return_value=rewriter_result or RewriteResult(text="rewritten resume", new_score=70))
    return SessionController(scorer=scorer, rewriter=rewriter), scorer, rewriter


@pytest.mark.asyncio
async def test_full_flow():
    session, scorer, rewriter = _controller()
    session.set_resume(SAMPLE_RESUME)
    assert session.state is SessionState.INPUT

    await session.analyze(SAMPLE_JD)
    assert session.state is SessionState.RESULTS
    scorer.assert_awaited_once_with(SAMPLE_RESUME, SAMPLE_JD)
    assert session.walker.current_gap.keyword == "usability testing"

    session.walker.apply("low")
    result = await session.optimize(["usability testing"])
    assert session.state is SessionState.COMPARISON
    assert result.text == "rewritten resume"
    assert "usability testing" in rewriter.call_args.args[0]
    assert rewriter.call_args.kwargs["selected_gaps"] == ["usability testing"]

    session.back_to_editing()
    assert session.state is SessionState.RESULTS


@pytest.mark.asyncio
async def test_short_job_description_rejected_before_scoring():
    session, scorer, _ = _controller()
    session.set_resume(SAMPLE_RESUME)
    with pytest.raises(SessionError):
        await session.analyze("too short")
    assert session.state is SessionState.INPUT
    assert "minimum 200 characters" in session.error
    scorer.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_resume_rejected():
    session, scorer, _ = _controller()
    with pytest.raises(SessionError):
        await session.analyze(SAMPLE_JD)
    scorer.assert_not_awaited()


@pytest.mark.asyncio
async def test_failed_analysis_returns_to_input():
    session, scorer, _ = _controller()
    scorer.side_effect = LLMUpstreamError(status=500, body="boom")
    session.set_resume(SAMPLE_RESUME)
    with pytest.raises(LLMUpstreamError):
        await session.analyze(SAMPLE_JD)
    assert session.state is SessionState.INPUT
    assert session.error.startswith("Analysis failed")
    assert session.analysis is None


@pytest.mark.asyncio
async def test_optimize_requires_results():
    session, _, rewriter = _controller()
    with pytest.raises(InvalidTransitionError):
        await session.optimize()
    rewriter.assert_not_awaited()


@pytest.mark.asyncio
async def test_reset_discards_state():
    session, _, _ = _controller()
    session.set_resume(SAMPLE_RESUME)
    await session.analyze(SAMPLE_JD)
    await session.optimize()
    session.reset()
    assert session.state is SessionState.INPUT
    assert session.analysis is None
    assert session.walker is None
    assert session.rewrite_result is None
    assert session.resume_text == ""


def test_back_to_editing_from_input_is_invalid():
    session, _, _ = _controller()
    with pytest.raises(InvalidTransitionError):
        session.back_to_editing()


def test_short_upload_rejected_before_core():
    session, scorer, _ = _controller()
    with pytest.raises(UploadRejectedError):
        session.load_upload(b"x" * 90, "resume.txt")
    assert session.resume_text == ""
    assert "too short" in session.error
    scorer.assert_not_awaited()


def test_valid_upload_sets_resume():
    session, _, _ = _controller()
    text = session.load_upload(SAMPLE_RESUME.encode("utf-8"), "resume.txt")
    assert text == SAMPLE_RESUME.strip()
    assert session.resume_text == text
    assert session.filename == "resume.txt"


@pytest.mark.asyncio
async def test_analyze_from_results_keeps_job_description():
    session, scorer, rewriter = _controller()
    session.set_resume(SAMPLE_RESUME)
    await session.analyze(SAMPLE_JD)

    with pytest.raises(InvalidTransitionError):
        await session.analyze("x" * 250)
    assert session.state is SessionState.RESULTS
    assert session.job_description == SAMPLE_JD
    scorer.assert_awaited_once()

    await session.optimize()
    assert rewriter.call_args.args[1] == SAMPLE_JD


@pytest.mark.asyncio
async def test_rejected_job_description_is_not_stored():
    session, _, _ = _controller()
    session.set_resume(SAMPLE_RESUME)
    with pytest.raises(SessionError):
        await session.analyze("too short")
    assert session.job_description == ""


@pytest.mark.asyncio
async def test_unexpected_scorer_error_returns_to_input():
    session, scorer, _ = _controller()
    scorer.side_effect = RuntimeError("boom")
    session.set_resume(SAMPLE_RESUME)
    with pytest.raises(RuntimeError):
        await session.analyze(SAMPLE_JD)
    assert session.state is SessionState.INPUT
    assert session.error == "Analysis failed. Please try again."
    assert session.analysis is None

    scorer.side_effect = None
    await session.analyze()
    assert session.state is SessionState.RESULTS
