from __future__ import annotations
import json
import logging
from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict

from writer_api.fallback import generate_demo_text, is_demo_text
from writer_api.llm_client import Completion, ProviderClient

log = logging.getLogger(__name__)


class GenerateRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    prompt: str = ""
    text: str = ""
    tone: str = "casual"
    action: str
    apiKey: str = ""


def _parse_body(raw_body: bytes) -> Dict[str, Any]:
    if not raw_body:
        return {}
    try:
        body = json.loads(raw_body)
    except (ValueError, UnicodeDecodeError) as exc:
        log.warning("generate: unparsable request body treated as empty: %s", exc)
        return {}
    if not isinstance(body, dict):
        log.warning("generate: non-object request body treated as empty")
        return {}
    # JSON null means "not provided"
    return {k: v for k, v in body.items() if v is not None}


def envelope_for(completion: Completion) -> Dict[str, Any]:
    """Map a tagged completion onto the response body the editor expects."""
    result = completion.text
    if completion.error_kind == "quota":
        return {
            "result": result,
            "error": "OpenAI API quota exceeded",
            "details": completion.detail,
            "quotaExceeded": True,
            "isDemoMode": True,
        }
    if completion.error_kind in ("transport", "unexpected"):
        return {
            "result": result,
            "error": "Failed to generate text",
            "details": completion.detail,
            "isDemoMode": True,
        }
    if completion.degraded or is_demo_text(result):
        return {
            "result": result,
            "isDemoMode": True,
            "message": "Using demo mode due to API limitations",
        }
    return {"result": result}


class GenerateOrchestrator:
    """Handles the /generate proxy call.

    Every input yields a 200 response with a populated ``result``, except a
    body without ``action``, which is the single 400.
    """

    def __init__(self, client: ProviderClient, default_api_key: str = "") -> None:
        self.client = client
        self.default_api_key = default_api_key

    def handle(self, raw_body: bytes) -> Tuple[int, Dict[str, Any]]:
        try:
            body = _parse_body(raw_body)
            if not body.get("action"):
                return 400, {"error": "Missing required field: action"}

            req = GenerateRequest.model_validate(body)
            credential = req.apiKey or self.default_api_key or ""
            log.info(
                "generate: action=%s tone=%s text_chars=%d has_prompt=%s has_api_key=%s",
                req.action,
                req.tone,
                len(req.text),
                bool(req.prompt.strip()),
                bool(credential),
            )
            completion = self.client.complete(credential, req.prompt, req.text, req.tone or "casual", req.action)
            envelope = envelope_for(completion)
        except Exception as exc:
            log.exception("generate: failed to process request")
            return 200, {
                "result": generate_demo_text("", "continue"),
                "error": "Failed to process request",
                "details": str(exc),
                "isDemoMode": True,
            }
        if is_demo_text(envelope["result"]):
            envelope["isDemoMode"] = True
        return 200, envelope
