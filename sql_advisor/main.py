import asyncio

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sql_advisor.api.routes import analyze
from sql_advisor.core.config import get_settings

settings = get_settings()

app = FastAPI(title=settings.app_name, version=settings.app_version)


@app.middleware("http")
async def request_timeout_middleware(request: Request, call_next):
    # Must stay above LLM_TIMEOUT_SEC.
    timeout_sec = max(settings.api_request_timeout_sec, settings.llm_timeout_sec + 5)
    try:
        return await asyncio.wait_for(call_next(request), timeout=timeout_sec)
    except asyncio.TimeoutError:
        return JSONResponse(
            status_code=504,
            content={"detail": f"Request timeout after {timeout_sec}s"},
        )


origins = list(settings.cors_allow_origins)
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if "*" in origins else origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(analyze.router, tags=["analyze"])
