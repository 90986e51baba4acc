import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from config import configure_logging, get_settings
from llm import fallback_plan
from llm_router import generate_slide_html, plan_presentation, remix_slide_html
from slide_html import error_slide_html
from slide_schema import (
    ErrorResponse,
    HtmlResponse,
    PlanFailure,
    PlanItem,
    PlanRequest,
    RemixRequest,
    SlideRequest,
)

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Flash Slides", version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


PLAN_MISSING = "缺少 script 参数"
SLIDE_MISSING = "缺少 fullScript 或 context 参数"
REMIX_MISSING = "缺少 originalHtml 或 direction 参数"

_MISSING_BY_PATH = {
    "/api/plan": PLAN_MISSING,
    "/api/slide": SLIDE_MISSING,
    "/api/remix": REMIX_MISSING,
}


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content=ErrorResponse(error=message).model_dump())


@app.exception_handler(RequestValidationError)
async def invalid_body(request: Request, exc: RequestValidationError):
    logger.warning("Rejected %s body: %s", request.url.path, exc.errors())
    return _bad_request(_MISSING_BY_PATH.get(request.url.path, "请求参数无效"))


@app.get("/health")
def health():
    return {"ok": True, "provider": get_settings().llm_provider}


# Plain `def` handlers run in the threadpool, so a client fanning out N
# slide requests gets them served concurrently even though the SDKs block.

@app.post("/api/plan", response_model=list[PlanItem])
def plan(body: PlanRequest):
    if not body.script.strip():
        return _bad_request(PLAN_MISSING)
    try:
        items = plan_presentation(body.script)
    except Exception:
        logger.exception("Plan API error")
        failure = PlanFailure(error="规划失败", fallback=fallback_plan())
        return JSONResponse(status_code=500, content=failure.model_dump())
    logger.info("Planned %d slides for a %d-char script", len(items), len(body.script))
    return items


@app.post("/api/slide", response_model=HtmlResponse)
def slide(body: SlideRequest):
    if not body.full_script.strip() or body.context is None:
        return _bad_request(SLIDE_MISSING)
    try:
        html = generate_slide_html(body.full_script, body.context)
    except Exception:
        logger.exception("Slide API error (phase=%r)", body.context.phase)
        return JSONResponse(
            status_code=500,
            content=HtmlResponse(html=error_slide_html()).model_dump(),
        )
    return HtmlResponse(html=html)


@app.post("/api/remix", response_model=HtmlResponse)
def remix(body: RemixRequest):
    if not body.original_html or not body.direction:
        return _bad_request(REMIX_MISSING)
    try:
        html = remix_slide_html(body.original_html, body.direction)
    except Exception:
        logger.exception("Remix API error (direction=%r)", body.direction)
        return HtmlResponse(html=body.original_html)
    return HtmlResponse(html=html)


# ---- Built front-end (optional) ---------------------------------------------

STATIC_DIR = Path(get_settings().static_dir).resolve()

if (STATIC_DIR / "index.html").exists():

    @app.get("/{full_path:path}", include_in_schema=False)
    def spa(full_path: str):
        target = (STATIC_DIR / full_path).resolve()
        if full_path and target.is_file() and STATIC_DIR in target.parents:
            return FileResponse(target)
        return FileResponse(STATIC_DIR / "index.html")


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logger.info("API server listening on http://localhost:%d", settings.port)
    uvicorn.run("main:app", host=settings.host, port=settings.port)
