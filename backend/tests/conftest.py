"""Shared test configuration, fixtures and sample documents."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from api.router import limiter
from services.gemini_client import LLMResponse

SAMPLE_RESUME = """Jane Smith
jane.smith@email.com | Sydney

Summary
Experienced UX designer focused on research-driven product design.

Experience

Product Designer, Atlassian
2019 - Present
• Designed onboarding flows for a B2B platform used by 50,000 users.
• Led discovery workshops with product managers and engineers
- Ran weekly design critiques

Skills
Figma, Sketch, Prototyping
"""

SAMPLE_JD = """Senior Product Designer

We are looking for a Product Designer to join our growth team. You will own
end-to-end design for self-serve onboarding, run usability testing with
customers, and partner with product managers on A/B testing. Requirements:
Figma, prototyping, design systems, usability testing, 5+ years experience
in SaaS product design, and strong stakeholder communication.
"""


def llm_response(payload, tokens_used: int = 1234) -> LLMResponse:
    """Fake gateway response; dicts are serialized, strings passed through."""
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return LLMResponse(text=text, model="gemini-2.5-flash", temperature=0.1, tokens_used=tokens_used)


@pytest.fixture
def fake_llm():
    """Patch the gateway; set ``fake_llm.return_value`` to an LLMResponse."""
    with patch("services.gemini_client.complete_json", new_callable=AsyncMock) as mock:
        yield mock


@pytest.fixture(autouse=True)
def _disable_rate_limit():
    limiter.enabled = False
    yield
    limiter.enabled = True
