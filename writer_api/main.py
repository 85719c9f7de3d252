import logging
import time
import uuid
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from writer_api.config import load_settings
from writer_api.llm_client import ProviderClient
from writer_api.orchestrator import GenerateOrchestrator

settings = load_settings()

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

log = logging.getLogger(__name__)

app = FastAPI(title="writer-assistant")
app.state.provider_client = ProviderClient(settings)
app.state.orchestrator = GenerateOrchestrator(app.state.provider_client, default_api_key=settings.openai_api_key)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = str(uuid.uuid4())
    start = time.time()
    request.state.request_id = rid
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        dur_ms = int((time.time() - start) * 1000)
        log.info(
            "rid=%s method=%s path=%s status=%s dur_ms=%d",
            rid,
            request.method,
            request.url.path,
            getattr(response, "status_code", "?"),
            dur_ms,
        )


def get_orchestrator(request: Request) -> GenerateOrchestrator:
    return request.app.state.orchestrator


def get_provider_client(request: Request) -> ProviderClient:
    return request.app.state.provider_client


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/llm/status")
def llm_status_endpoint(client: ProviderClient = Depends(get_provider_client)) -> Dict[str, Any]:
    return client.status()


@app.post("/generate")
@app.post("/api/generate")
async def generate_endpoint(
    request: Request,
    orchestrator: GenerateOrchestrator = Depends(get_orchestrator),
):
    """Proxy a writing action to the model provider.

    The body is read raw so that malformed JSON degrades instead of failing
    validation; the provider call runs in the threadpool since it blocks.
    """
    raw = await request.body()
    status_code, payload = await run_in_threadpool(orchestrator.handle, raw)
    return JSONResponse(status_code=status_code, content=payload)
