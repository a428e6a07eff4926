"""Single owner of a user's session state.

Views form a finite state machine:

    input ──analyze──► analyzing ──ok──► results ──optimize──► comparison
      ▲                    │                ▲                       │
      └──────failure───────┘                └─────back_to_editing───┘

reset() returns to ``input`` from anywhere and discards all state.
"""

import logging
from enum import Enum
from typing import Awaitable, Callable

from config import settings
from models.responses import AnalysisResult, RewriteResult
from services import file_parser, resume_rewriter, resume_scorer
from services.errors import ApiError
from services.gap_walker import GapWalker

logger = logging.getLogger(__name__)

Scorer = Callable[[str, str], Awaitable[AnalysisResult]]
Rewriter = Callable[..., Awaitable[RewriteResult]]


class SessionState(str, Enum):
    INPUT = "input"
    ANALYZING = "analyzing"
    RESULTS = "results"
    COMPARISON = "comparison"


_TRANSITIONS: dict[SessionState, set[SessionState]] = {
    SessionState.INPUT: {SessionState.ANALYZING},
    SessionState.ANALYZING: {SessionState.RESULTS, SessionState.INPUT},
    SessionState.RESULTS: {SessionState.COMPARISON},
    SessionState.COMPARISON: {SessionState.RESULTS},
}


class SessionError(ValueError):
    """Input the session refuses before any request is made."""


class InvalidTransitionError(RuntimeError):
    pass


class SessionController:
    def __init__(self, scorer: Scorer | None = None, rewriter: Rewriter | None = None):
        self._scorer = scorer or resume_scorer.score
        self._rewriter = rewriter or resume_rewriter.rewrite
        self.state = SessionState.INPUT
        self.resume_text = ""
        self.filename = ""
        self.job_description = ""
        self.analysis: AnalysisResult | None = None
        self.walker: GapWalker | None = None
        self.rewrite_result: RewriteResult | None = None
        self.error = ""

    def _transition(self, target: SessionState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(f"Cannot go from {self.state.value} to {target.value}")
        logger.debug("Session %s -> %s", self.state.value, target.value)
        self.state = target

    def load_upload(self, content: bytes, filename: str) -> str:
        """Accept an uploaded resume file; rejected files leave state untouched."""
        try:
            text = file_parser.extract_resume_text(content, filename)
        except ApiError as e:
            self.error = e.message
            raise
        self.set_resume(text, filename)
        return text

    def set_resume(self, text: str, filename: str = "pasted-resume.txt") -> None:
        self.resume_text = text
        self.filename = filename
        self.error = ""

    async def analyze(self, job_description: str | None = None) -> AnalysisResult:
        if SessionState.ANALYZING not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(f"Cannot analyze from {self.state.value}")
        if job_description is None:
            job_description = self.job_description
        if not self.resume_text.strip() or len(job_description) < settings.min_job_description_length:
            self.error = (
                "Please upload a resume and paste a job description "
                f"(minimum {settings.min_job_description_length} characters)"
            )
            raise SessionError(self.error)

        self.job_description = job_description
        self.error = ""
        self._transition(SessionState.ANALYZING)
        try:
            analysis = await self._scorer(self.resume_text, self.job_description)
        except ApiError as e:
            logger.warning("Analysis failed: %s", e.code)
            self.error = f"Analysis failed. Please try again. Error: {e.message}"
            self._transition(SessionState.INPUT)
            raise
        except Exception:
            logger.exception("Analysis failed unexpectedly")
            self.error = "Analysis failed. Please try again."
            self._transition(SessionState.INPUT)
            raise

        self.analysis = analysis
        self.walker = GapWalker(analysis, self.resume_text)
        self.rewrite_result = None
        self._transition(SessionState.RESULTS)
        return analysis

    async def optimize(self, selected_gaps: list[str] | None = None) -> RewriteResult:
        if self.state is not SessionState.RESULTS or self.walker is None:
            raise InvalidTransitionError(f"Cannot optimize from {self.state.value}")
        result = await self._rewriter(
            self.walker.text,
            self.job_description,
            analysis=self.analysis,
            selected_gaps=selected_gaps,
        )
        self.rewrite_result = result
        self._transition(SessionState.COMPARISON)
        return result

    def back_to_editing(self) -> None:
        self._transition(SessionState.RESULTS)

    def reset(self) -> None:
        self.state = SessionState.INPUT
        self.resume_text = ""
        self.filename = ""
        self.job_description = ""
        self.analysis = None
        self.walker = None
        self.rewrite_result = None
        self.error = ""
