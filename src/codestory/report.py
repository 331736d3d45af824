"""Plain-text exports of an analysis (the UI's copy buttons, the CLI)."""

from __future__ import annotations

from .models import CodeAnalysis, Issues

_CATEGORY_TITLES = (
    ("performance", "Performance"),
    ("security", "Security"),
    ("maintainability", "Maintainability"),
)


def issues_text(issues: Issues) -> str:
    """Issues grouped by category, one ``[SEVERITY]`` bullet per item."""
    parts: list[str] = []
    for name, title in _CATEGORY_TITLES:
        items = getattr(issues, name)
        if not items:
            continue
        parts.append(f"{title}:")
        for item in items:
            line = f"  - [{item.severity.upper()}] {item.message}"
            if item.explanation:
                line += f" — {item.explanation}"
            parts.append(line)
        parts.append("")
    return "\n".join(parts)


def summary_text(analysis: CodeAnalysis) -> str:
    return "\n".join(["Summary:", analysis.summary])


def risk_text(analysis: CodeAnalysis) -> str:
    return "\n".join([
        "Summary:",
        analysis.summary,
        "",
        "Risk overview:",
        analysis.risk_overview,
    ])


def suggestions_text(analysis: CodeAnalysis) -> str:
    return "\n".join(["Suggestions:", "", *(f"- {s}" for s in analysis.suggestions)])


def full_report(analysis: CodeAnalysis) -> str:
    """Everything in one document, in the order the UI shows it."""
    return "\n".join([
        "Summary:",
        analysis.summary,
        "",
        "Risk overview:",
        analysis.risk_overview,
        "",
        "Step-by-step walkthrough:",
        "",
        *(f"{i}. {step}" for i, step in enumerate(analysis.walkthrough, start=1)),
        "",
        "Issues:",
        "",
        issues_text(analysis.issues),
        suggestions_text(analysis),
    ])


def report_sections(analysis: CodeAnalysis) -> dict[str, str]:
    return {
        "summary": summary_text(analysis),
        "risk": risk_text(analysis),
        "issues": "\n".join(["Issues:", "", issues_text(analysis.issues)]),
        "suggestions": suggestions_text(analysis),
        "full": full_report(analysis),
    }
