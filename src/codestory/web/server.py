"""FastAPI server: analysis API plus the single-page code viewer."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from ..aligner import align
from ..analyzer import analyze_code
from ..errors import CodeStoryError
from ..llm import DEFAULT_MODEL
from ..models import AnalyzeRequest, CodeAnalysis
from ..report import report_sections
from ._ui_html import UI_HTML

logger = logging.getLogger(__name__)

app = FastAPI(title="codestory", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Set by start_server() before uvicorn starts.
_llm_client: object | None = None  # LLMClient, optional


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


# ---------------------------------------------------------------------------
# UI
# ---------------------------------------------------------------------------

@app.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    return HTMLResponse(UI_HTML)


# ---------------------------------------------------------------------------
# API endpoints
# ---------------------------------------------------------------------------

@app.get("/api/health")
async def health() -> JSONResponse:
    model = getattr(_llm_client, "model", None)
    get_stats = getattr(_llm_client, "get_stats", None)
    stats = await get_stats() if get_stats is not None else {"total_calls": 0, "retries": 0}
    return JSONResponse({
        "status": "ok",
        "llm_configured": _llm_client is not None,
        "model": model or DEFAULT_MODEL,
        "llm_stats": stats,
    })


@app.post("/analyze")
@app.post("/api/analyze")
async def analyze_endpoint(req: AnalyzeRequest) -> JSONResponse:
    """Analyze a snippet and return the explanation with its line alignment.

    The alignment is built against the code exactly as submitted, which is
    what the page draws in its code view.
    """
    if not isinstance(req.code, str) or not req.code:
        return _error(400, 'Missing or invalid "code" in request body.')

    provider = (req.provider or "openai").lower()
    if provider == "openai" and _llm_client is None:
        return _error(503, "No LLM client configured. Set OPENAI_API_KEY to enable analysis.")

    try:
        analysis = await analyze_code(
            req.code,
            llm_client=_llm_client,
            language=req.language,
            skill_level=req.skill_level,
            provider=provider,
            model=req.model,
        )
    except CodeStoryError as exc:
        logger.error("Error in /analyze: %s", exc)
        return _error(500, "Something went wrong while analyzing the code.")

    alignment = align(req.code, len(analysis.walkthrough), analysis.annotations)
    payload = analysis.model_dump()
    payload["alignment"] = alignment.to_payload()
    return JSONResponse(payload)


@app.post("/api/report")
async def report_endpoint(analysis: CodeAnalysis) -> JSONResponse:
    """Plain-text exports of a previously returned analysis."""
    sections = report_sections(analysis)
    return JSONResponse({"text": sections["full"], "sections": sections})


# ---------------------------------------------------------------------------
# Server launcher
# ---------------------------------------------------------------------------

def start_server(
    host: str = "127.0.0.1",
    port: int = 4000,
    llm_client: object | None = None,
) -> None:
    """Start the analysis server."""
    import uvicorn

    global _llm_client
    _llm_client = llm_client

    uvicorn.run(app, host=host, port=port)
