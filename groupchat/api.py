"""FastAPI surface: text generation for participants backed by a real provider."""

from __future__ import annotations

from typing import Awaitable, Callable, Dict, List, Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from .agents import build_messages
from .errors import ConfigurationMissing, InvalidArgument
from .llm import generate_with_provider
from .switchboard import REAL_PROVIDERS

GenerateFn = Callable[[str, Optional[str], str, List[Dict[str, str]]], Awaitable[str]]


class GenerateRequest(BaseModel):
    provider: Optional[str] = None
    model: Optional[str] = None
    system: Optional[str] = None
    context: Optional[str] = None
    prompt: Optional[str] = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


def create_app(
    generate_fn: Optional[GenerateFn] = None,
    env: Optional[Mapping[str, str]] = None,
) -> FastAPI:
    """Build the API app.

    `generate_fn` defaults to the LangChain-backed provider call; `env`
    defaults to the process environment and is where API keys are looked up.
    """
    generate = generate_fn or generate_with_provider
    app = FastAPI(title="Group Chat Generation API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
        return _error(exc.status_code, message)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return _error(400, "Invalid request body")

    @app.get("/")
    async def root():
        return {"status": "ok", "service": "Group Chat Generation API"}

    @app.post("/generate")
    async def generate_text(body: GenerateRequest):
        if body.provider not in REAL_PROVIDERS:
            return _error(400, "Invalid provider. Must be 'openai' or 'anthropic'")
        if not body.model:
            return _error(400, "Model is required")
        if not body.prompt:
            return _error(400, "Prompt is required")

        api_key = config.api_key_for(body.provider, env)
        if not api_key:
            return _error(401, f"API key for {body.provider} is not configured")

        messages = build_messages(body.system, body.context, body.prompt)
        try:
            content = await generate(body.provider, api_key, body.model, messages)
        except ConfigurationMissing as e:
            return _error(401, str(e))
        except InvalidArgument as e:
            return _error(400, str(e))
        except Exception as e:
            logger.exception(f"generate_failed | provider={body.provider} model={body.model}")
            return _error(500, str(e) or "Unknown error occurred")
        return {"ok": True, "content": content}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("groupchat.api:app", host="0.0.0.0", port=8001, reload=True)
