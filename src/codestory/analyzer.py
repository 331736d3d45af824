"""Analyzer -- ask the LLM for a structured explanation of a code snippet.

Builds the prompt and the strict JSON schema, sends one Responses API
request and coerces whatever comes back into a :class:`CodeAnalysis`.
Annotation line numbers are passed through untouched; the normalizer owns
their validation.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from .errors import AnalysisError
from .llm import DEFAULT_MODEL
from .models import ISSUE_CATEGORIES, SEVERITIES, CodeAnalysis, IssueItem, Issues
from .normalizer import count_lines

logger = logging.getLogger(__name__)

# Max source chars sent to the LLM per request.
MAX_CODE_CHARS = 20000
MAX_OUTPUT_TOKENS = 2000

DEFAULT_LANGUAGE = "auto"
DEFAULT_SKILL_LEVEL = "beginner"
DEFAULT_PROVIDER = "openai"
SUPPORTED_PROVIDERS = ("openai",)

_TONE_INSTRUCTIONS = {
    "expert": (
        "Use precise technical language. "
        "It is okay to mention concepts like complexity, code smells, SOLID, or design patterns. "
        "Be concise and assume the reader writes code daily. "
        "Focus more on risks, edge cases, and design flaws than on basic syntax."
    ),
    "intermediate": (
        "Use a mix of plain language and technical terms. "
        "Briefly explain any advanced concepts you introduce. "
        "Focus on logic, data flow, and common pitfalls."
    ),
    "beginner": (
        "Use plain, everyday language with minimal jargon. "
        "When you must use a technical term, define it briefly. "
        "Focus on what the code does and why, not on formal theory."
    ),
}

_INSTRUCTIONS_TEMPLATE = """\
You are an expert software engineer and teacher.
The user may not be a professional programmer, but has high technical acumen.
The users want to understand it like a realistic story of what the code does.

Your job:
1. Explain what the code is TRYING to do overall in plain language.
2. Break it into a step-by-step walkthrough of the major phases.
3. Identify plot holes and obstacles:
   - performance issues
   - security risks
   - maintainability problems (hard to read, fragile, etc.)
4. Suggest concrete "reroutes to success" (specific improvements).
For every issue you report, assign a severity level: low, medium, high, or critical.
Use "critical" only for problems that could cause data loss, major security breaches, or production outages.
After listing issues, provide a single short "risk overview" sentence describing the overall risk level \
(for example: "Low", "Medium", or "High") and the main reasons.

You are working in HIGH-LEVEL WALKTHROUGH MODE:
- Aim for roughly 8-20 steps for typical snippets of 50-150 lines.
- Each step should describe one clear logical action or phase in the code.
- Keep each step focused; do not mix imports, configuration, and main logic into a single step \
unless the code is extremely small.

For each walkthrough step, map it to the lines of code it MOSTLY describes.
Return this mapping in an "annotations" array, where each item has:
- step_index: the 0-based index into the walkthrough array,
- start_line and end_line: 1-based inclusive line numbers in the original code,
- note: a short optional comment about this mapping (can be an empty string).

ANNOTATION RULES:
- The code between CODE START and CODE END has exactly {line_count} lines.
- All start_line and end_line values MUST be between 1 and {line_count}, inclusive.
- Keep start_line/end_line as TIGHT as possible: only include lines that are actually described by that step.
- Avoid large ranges that mix unrelated concepts. For example, do NOT include environment-variable \
or secret configuration lines inside an "import" step.
- Configuration of environment variables, secrets, URLs, ports, and other important settings \
should typically have its OWN step (and its own line range).
- It is better to have more, smaller ranges than a few giant ones that cover the whole file.
- Try to provide at least one annotation for EVERY walkthrough step; if you are uncertain, \
choose your best-guess line span.

The user's declared language is: "{language}".
The user's skill level is: "{skill_level}".
Adapt your explanation style according to this description:
{tone}"""

_USER_PROMPT_TEMPLATE = """\
Analyze the following code and return JSON that matches the provided schema.

CODE START
{code}
CODE END"""


# ---------------------------------------------------------------------------
# Prompt & schema
# ---------------------------------------------------------------------------

def tone_instructions(skill_level: str) -> str:
    return _TONE_INSTRUCTIONS.get(skill_level, _TONE_INSTRUCTIONS["beginner"])


def build_instructions(*, line_count: int, language: str, skill_level: str) -> str:
    return _INSTRUCTIONS_TEMPLATE.format(
        line_count=line_count,
        language=language,
        skill_level=skill_level,
        tone=tone_instructions(skill_level),
    )


def _issue_list_schema(description: str, subject: str) -> dict[str, Any]:
    return {
        "type": "array",
        "description": description,
        "items": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "message": {
                    "type": "string",
                    "description": f"Short description of the {subject} issue.",
                },
                "severity": {
                    "type": "string",
                    "description": "Severity level of this issue: low, medium, high, or critical.",
                },
                "explanation": {
                    "type": "string",
                    "description": "Optional extra detail about why this is a problem.",
                },
            },
            "required": ["message", "severity", "explanation"],
        },
    }


def analysis_schema() -> dict[str, Any]:
    """Strict JSON schema the model's answer must follow."""
    return {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "summary": {
                "type": "string",
                "description": "A short paragraph explaining what this code is trying to do in plain language.",
            },
            "walkthrough": {
                "type": "array",
                "description": "A step-by-step explanation of the code execution as ordered bullet points.",
                "items": {"type": "string"},
            },
            "risk_overview": {
                "type": "string",
                "description": 'Short description of the overall risk level (e.g., "Low", "Medium", or "High") and why.',
            },
            "issues": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "performance": _issue_list_schema(
                        "Potential performance issues or inefficiencies in the code.",
                        "performance",
                    ),
                    "security": _issue_list_schema(
                        "Potential security risks, unsafe patterns, or missing validation.",
                        "security",
                    ),
                    "maintainability": _issue_list_schema(
                        "Maintainability or readability problems that make the code harder to understand or change.",
                        "maintainability",
                    ),
                },
                "required": list(ISSUE_CATEGORIES),
            },
            "suggestions": {
                "type": "array",
                "description": "Concrete suggestions for improving the code, phrased in practical terms.",
                "items": {"type": "string"},
            },
            "annotations": {
                "type": "array",
                "description": "Mapping from walkthrough steps to line ranges in the original code.",
                "items": {
                    "type": "object",
                    "additionalProperties": False,
                    "properties": {
                        "step_index": {
                            "type": "integer",
                            "description": "0-based index into the walkthrough array for this annotation.",
                        },
                        "start_line": {
                            "type": "integer",
                            "description": "1-based starting line number (inclusive) in the original code.",
                        },
                        "end_line": {
                            "type": "integer",
                            "description": "1-based ending line number (inclusive) in the original code.",
                        },
                        "note": {
                            "type": "string",
                            "description": "Short optional note about this mapping. Can be an empty string.",
                        },
                    },
                    "required": ["step_index", "start_line", "end_line", "note"],
                },
            },
        },
        "required": [
            "summary",
            "walkthrough",
            "risk_overview",
            "issues",
            "suggestions",
            "annotations",
        ],
    }


def build_request(
    code: str,
    *,
    language: str,
    skill_level: str,
    model: str,
) -> dict[str, Any]:
    """Responses API payload for one analysis."""
    line_count = count_lines(code)
    return {
        "model": model,
        "instructions": build_instructions(
            line_count=line_count, language=language, skill_level=skill_level
        ),
        "input": [
            {
                "role": "user",
                "content": [
                    {"type": "input_text", "text": _USER_PROMPT_TEMPLATE.format(code=code)},
                ],
            }
        ],
        "text": {
            "format": {
                "type": "json_schema",
                "name": "CodeAnalysis",
                "strict": True,
                "schema": analysis_schema(),
            }
        },
        "max_output_tokens": MAX_OUTPUT_TOKENS,
    }


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
    if cleaned.endswith("```"):
        cleaned = cleaned.rsplit("```", 1)[0]
    return cleaned


def extract_payload(response: Mapping[str, Any]) -> dict[str, Any]:
    """Pull the analysis JSON object out of a Responses API body."""
    outputs = response.get("output") or []
    message = next(
        (
            item for item in outputs
            if isinstance(item, Mapping) and isinstance(item.get("content"), list) and item["content"]
        ),
        None,
    )
    if message is None:
        logger.error("Unexpected response structure from OpenAI: %s", response)
        raise AnalysisError("Could not extract analysis result from model response.")

    for item in message["content"]:
        if not isinstance(item, Mapping):
            continue
        for key in ("json", "output_json"):
            if isinstance(item.get(key), Mapping):
                return dict(item[key])

    chunks = [
        item["text"]
        for item in message["content"]
        if isinstance(item, Mapping)
        and item.get("type") == "output_text"
        and isinstance(item.get("text"), str)
    ]
    if chunks:
        combined = "".join(chunks)
        try:
            data = json.loads(_strip_fences(combined))
        except json.JSONDecodeError as exc:
            logger.error("Failed to parse combined output_text as JSON: %s", exc)
        else:
            if isinstance(data, dict):
                return data

    logger.error("No JSON content found in model response: %s", message)
    raise AnalysisError("Model did not return JSON content as expected.")


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _text_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [_text(v) for v in value if v is not None]


def _issue_list(value: Any) -> list[IssueItem]:
    if not isinstance(value, list):
        return []
    items: list[IssueItem] = []
    for raw in value:
        if isinstance(raw, str):
            items.append(IssueItem(message=raw))
            continue
        if not isinstance(raw, Mapping):
            continue
        severity = _text(raw.get("severity") or "medium").strip().lower()
        items.append(IssueItem(
            message=_text(raw.get("message")),
            severity=severity if severity in SEVERITIES else "medium",
            explanation=_text(raw.get("explanation") or ""),
        ))
    return items


def parse_analysis(data: Any) -> CodeAnalysis:
    """Coerce a loosely-typed model payload into a CodeAnalysis.

    Never raises; missing fields become empty values.
    """
    if not isinstance(data, Mapping):
        data = {}
    issues = data.get("issues")
    if not isinstance(issues, Mapping):
        issues = {}
    annotations = data.get("annotations")
    return CodeAnalysis(
        summary=_text(data.get("summary")),
        walkthrough=_text_list(data.get("walkthrough")),
        risk_overview=_text(data.get("risk_overview")),
        issues=Issues(**{name: _issue_list(issues.get(name)) for name in ISSUE_CATEGORIES}),
        suggestions=_text_list(data.get("suggestions")),
        annotations=[
            dict(a) for a in annotations if isinstance(a, Mapping)
        ] if isinstance(annotations, list) else [],
    )


def unconfigured_provider_analysis(provider: str) -> CodeAnalysis:
    """Placeholder answer for providers the server cannot call."""
    return CodeAnalysis(
        summary=f'The provider "{provider}" is not configured on the server yet.',
        risk_overview="No analysis performed. Configure this provider on the backend to enable it.",
        suggestions=[
            f'Add an adapter implementation for provider "{provider}" on the server.',
            "Configure the corresponding API key as an environment variable.",
        ],
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

async def analyze_code(
    code: str,
    *,
    llm_client: object,
    language: str | None = None,
    skill_level: str | None = None,
    provider: str | None = None,
    model: str | None = None,
) -> CodeAnalysis:
    """Analyze *code* and return a structured explanation."""
    safe_code = _text(code)[:MAX_CODE_CHARS]
    safe_language = language or DEFAULT_LANGUAGE
    safe_skill_level = skill_level or DEFAULT_SKILL_LEVEL
    safe_provider = (provider or DEFAULT_PROVIDER).lower()
    safe_model = model or getattr(llm_client, "model", None) or DEFAULT_MODEL

    if safe_provider not in SUPPORTED_PROVIDERS:
        logger.info("Provider %r requested but not configured.", safe_provider)
        return unconfigured_provider_analysis(safe_provider)

    request = build_request(
        safe_code,
        language=safe_language,
        skill_level=safe_skill_level,
        model=safe_model,
    )
    logger.debug(
        "Analyzing %d char(s) of %s code with %s.", len(safe_code), safe_language, safe_model
    )
    response = await llm_client.create_response(request)  # type: ignore[attr-defined]
    return parse_analysis(extract_payload(response))
