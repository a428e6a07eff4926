"""All prompt templates for Gemini API calls."""

import json

# Keyword phrases the scorer must extract from every JD
KEYWORD_TARGET = "15-20"
MAX_PROMPT_KEYWORDS = 5
JD_CONTEXT_CHARS = 1000

_RISK_GAP_SCHEMA = """{
        "keyword": "<exact phrase from JD>",
        "importance": "critical|high|medium",
        "risk": "placeholder",
        "points": 0
      }"""

_CONFIDENCE_GAP_SCHEMA = """{
        "keyword": "<exact phrase from JD>",
        "importance": "critical|high|medium",
        "confidence": <number 0.4-1.0, how certain you are this is a genuine gap>,
        "reasoning": ["<short evidence bullet>", "<short evidence bullet>", "<optional third bullet>"],
        "jd_quote": "<sentence from the JD that asks for this, max 200 characters>"
      }"""


def build_scoring_prompt(resume_text: str, job_description: str, gap_schema: str = "risk") -> str:
    """Call A: keyword alignment scoring.

    The missing-keyword entries follow the deployment's gap schema. Risk
    values are placeholders; they are assigned by rule after the call.
    """
    gap_entry = _CONFIDENCE_GAP_SCHEMA if gap_schema == "confidence" else _RISK_GAP_SCHEMA

    return f"""You are an expert at analyzing job descriptions and resumes for keyword alignment and language matching.

TASK: Analyze how well this resume matches the job description's language and terminology.

JOB DESCRIPTION:
---
{job_description}
---

RESUME:
---
{resume_text}
---

CRITICAL: Be consistent in your keyword extraction. Extract the most specific, multi-word phrases rather than single words when possible. Focus on exact phrases from the JD.

Respond with ONLY valid JSON (no markdown, no code fences) in this exact structure:
{{
  "overall_score": <integer 0-100>,
  "keyword_coverage": {{
    "score": <integer 0-100>,
    "matched_keywords": [
      "<exact phrase from JD that appears in resume>"
    ],
    "missing_keywords": [
      {gap_entry}
    ]
  }},
  "language_alignment": {{
    "score": <number 0-50>
  }}
}}

Rules for keyword extraction:
1. Extract {KEYWORD_TARGET} total keywords/phrases from the JD
2. Prefer multi-word phrases over single words (e.g., "AI-driven insights" not just "AI")
3. Extract exact phrases as they appear in the JD
4. A phrase goes in matched_keywords OR missing_keywords, never both
5. Focus on: required skills, specific methodologies, tools, domain expertise, and key responsibilities
6. Do not fabricate: never report a keyword as matched unless the resume actually contains it, and never invent requirements the JD does not state
7. Be consistent - extract the same keywords every time for the same JD"""


def build_rewrite_prompt(resume_text: str, job_description: str, keywords: list[str]) -> str:
    """Call B: incorporate selected keywords into the resume.

    Only the first MAX_PROMPT_KEYWORDS keywords, in caller order, are used.
    """
    keywords = keywords[:MAX_PROMPT_KEYWORDS]
    keywords_text = "\n".join(f"- {kw}" for kw in keywords)

    return f"""You are an expert resume editor. Rewrite this resume to naturally incorporate the keywords below.

KEYWORDS TO ADD (exact multi-word phrases from the job description, chosen from the {KEYWORD_TARGET} phrases extracted from it):
{keywords_text}

HARD RULES:
- Never fabricate experience, titles, companies, dates, or metrics that are not in the resume
- Only reframe existing content or append truthful content
- Preserve all original content
- Keep the same resume structure and section order
- Use each keyword as the exact phrase given, do not split it into single words

JOB DESCRIPTION (for context):
---
{job_description[:JD_CONTEXT_CHARS]}
---

CURRENT RESUME:
---
{resume_text}
---

Respond with ONLY valid JSON (no markdown, no code fences) in this exact structure:
{{
  "text": "<the complete modified resume>",
  "changes": [
    {{
      "keyword": "<keyword added>",
      "location": "<section or line where it was added>",
      "before": "<original line, if one was changed>",
      "after": "<modified line>"
    }}
  ],
  "newScore": <integer 0-100, estimated keyword match after the changes>
}}"""


def build_audit_prompt() -> str:
    """System instruction for the deterministic ATS audit."""
    return """You are an ATS-style reviewer and resume editor. Be concise, specific, and deterministic.
Follow these hard rules exactly:

- No invention. Never create experience, titles, companies, dates, or metrics not present in the resume.
- Truth audit first. Every suggested phrase gets one of: Verifiable, Reframed, Risky.
- Explain every change with a one-line rationale tied to a JD requirement.
- Zero keyword dumping. Rewrites must read naturally.
- Write in the spelling conventions of user_locale.
- Deterministic tone. No coaching fluff.

Method (fixed):
1) Parse JD: extract exact title, team/domain hints, requirements.
   Classify terms into: Core, Technical, Research & Validation, Domain, Leadership.
   Prefer exact multi-word phrases from the JD over single words.
2) Parse Resume: segment (Summary, Roles, Bullets, Skills, Certs). Extract claims and metrics.
3) Match & Score: semantic match allowed via synonyms. Weights:
   Core 3.0, Technical 2.5, Research 2.0, Domain 2.0, Leadership 1.5.
   Output coverage per category and overall coverage_score 0-100.
4) Gap Detection: rank gaps by impact. Only include items plausibly supported by resume or safely reframable.
5) Honesty Audit: mark each proposal as Verifiable | Reframed | Risky.
   If Risky include a confirmation_question.
6) Rewrite Suggestions: for each gap (at most max_suggestions), output one tight sentence or mini-bullet.
7) Ethics & Safety: bias/privacy/overclaim/explainability flags + mitigation.
8) Explain Like a Reviewer: "how_ats_reads_this" notes, and 3-5 item executive_summary.
9) Telemetry: tokens_used (approx ok), model, temperature, notes.

Guardrails:
- Never alter dates, companies, locations, or titles.
- Output strict JSON object only (no markdown).

Respond in this JSON schema:
{
  "analysis_title": string,
  "job_title": string,
  "coverage": {
    "overall_score": number,
    "by_category": {
      "core": {"score": number, "hits": string[], "misses": string[]},
      "technical": {"score": number, "hits": string[], "misses": string[]},
      "research_validation": {"score": number, "hits": string[], "misses": string[]},
      "domain": {"score": number, "hits": string[], "misses": string[]},
      "leadership": {"score": number, "hits": string[], "misses": string[]}
    },
    "top_gaps": [
      {"term": string, "category": string, "impact": "high"|"medium"|"low", "jd_quote": string}
    ]
  },
  "truth_audit": [
    {
      "proposed_claim": string,
      "evidence_snippets": [{"resume_section": string, "text": string}],
      "truth_level": "Verifiable" | "Reframed" | "Risky",
      "risk_reason": string,
      "confirmation_question": string
    }
  ],
  "suggestions": [
    {
      "id": string,
      "target_section": "Summary" | "Experience: <Company>" | "Skills" | "Certifications",
      "insert_after": string,
      "rewrite": string,
      "rationale": string,
      "maps_to_jd": string[],
      "truth_level": "Verifiable" | "Reframed" | "Risky",
      "expected_coverage_delta": number,
      "category": "core" | "technical" | "research_validation" | "domain" | "leadership"
    }
  ],
  "ethics_flags": [
    {"type": "bias" | "privacy" | "overclaim" | "explainability", "issue": string, "mitigation": string}
  ],
  "explainers": {
    "how_ats_reads_this": string[],
    "executive_summary": string[]
  },
  "telemetry": {
    "tokens_used": number,
    "model": string,
    "temperature": number,
    "notes": "Deterministic pass"
  }
}"""


def build_audit_payload(
    resume_text: str,
    job_description: str,
    user_locale: str = "en-AU",
    max_suggestions: int = 20,
) -> str:
    """User turn for the ATS audit: the inputs as a JSON document."""
    return json.dumps({
        "user_locale": user_locale,
        "max_suggestions": max_suggestions,
        "job_description": job_description,
        "resume": resume_text,
    })
