from __future__ import annotations
import logging
import time
from typing import Any, Callable, Dict, List, Literal, Optional

import requests
from pydantic import BaseModel

from writer_api.config import Settings
from writer_api.fallback import generate_demo_text
from writer_api.llm_prompts import build_messages
from writer_api.retry import QuotaExceededError, RetryExhaustedError, with_retry

log = logging.getLogger(__name__)

ErrorKind = Literal["quota", "transport", "unexpected"]


class ProviderError(Exception):
    pass


class TransportError(ProviderError):
    """Network failure or a non-quota HTTP error from the provider. Retryable."""


class DeadlineExceededError(TransportError):
    pass


class ResponseFormatError(ProviderError):
    """Provider answered 2xx but the body had no usable completion."""


class Completion(BaseModel):
    """Result of one completion: model text, or fallback text tagged with the reason."""

    text: str
    degraded: bool = False
    error_kind: Optional[ErrorKind] = None
    detail: Optional[str] = None

    @classmethod
    def ok(cls, text: str) -> "Completion":
        return cls(text=text)

    @classmethod
    def fallback(cls, text: str, kind: Optional[ErrorKind], detail: Optional[str] = None) -> "Completion":
        return cls(text=text, degraded=True, error_kind=kind, detail=detail)


def _is_quota_payload(status_code: int, payload: Any) -> bool:
    if status_code == 429:
        return True
    if not isinstance(payload, dict):
        return False
    err = payload.get("error")
    if not isinstance(err, dict):
        return False
    if err.get("type") == "insufficient_quota" or err.get("code") == "insufficient_quota":
        return True
    msg = str(err.get("message") or "").lower()
    return "exceeded your current quota" in msg or "billing" in msg


def classify_response(resp: Any) -> str:
    """Return the completion text from a provider response or raise the matching error."""
    status = int(getattr(resp, "status_code", 0) or 0)
    if not 200 <= status < 300:
        try:
            payload = resp.json()
        except Exception:
            payload = None
        if _is_quota_payload(status, payload):
            raise QuotaExceededError()
        reason = getattr(resp, "reason", "") or ""
        raise TransportError(f"OpenAI API error: {status} {reason}".strip())
    try:
        data = resp.json()
        content = data["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise ResponseFormatError(f"Unexpected response body: {exc!r}") from exc
    if not isinstance(content, str) or not content:
        raise ResponseFormatError("Response contained no message content")
    return content


class ProviderClient:
    """OpenAI chat-completions client that always resolves to usable text.

    Transport failures are retried with backoff inside an overall deadline;
    quota failures are not. Every failure degrades to demo text, tagged with
    the reason so callers can tell the cases apart.
    """

    def __init__(
        self,
        settings: Settings,
        http: Any = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self._http = http if http is not None else requests
        self._sleep = sleep
        self._clock = clock

    def status(self) -> Dict[str, Any]:
        has_token = bool(self.settings.openai_api_key)
        return {
            "provider": "openai",
            "model": self.settings.model,
            "has_token": has_token,
            "using": "openai" if has_token else "demo",
        }

    def build_body(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        return {
            "model": self.settings.model,
            "messages": messages,
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_tokens,
        }

    def _send(self, credential: str, body: Dict[str, Any], deadline_at: float) -> str:
        remaining = deadline_at - self._clock()
        if remaining <= 0:
            raise DeadlineExceededError("Provider deadline exceeded")
        headers = {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
        }
        timeout = min(self.settings.timeout_secs, remaining)
        try:
            resp = self._http.post(self.settings.openai_endpoint, headers=headers, json=body, timeout=timeout)
        except requests.Timeout as exc:
            raise TransportError(f"Provider request timed out after {timeout:.1f}s") from exc
        except requests.RequestException as exc:
            raise TransportError(f"Provider request failed: {exc}") from exc
        return classify_response(resp)

    def _bounded_sleep(self, deadline_at: float) -> Callable[[float], None]:
        def _sleep(delay: float) -> None:
            if delay >= deadline_at - self._clock():
                raise DeadlineExceededError("Provider deadline exceeded before next retry")
            self._sleep(delay)

        return _sleep

    def complete(
        self,
        credential: str,
        prompt: str,
        text: str,
        tone: str,
        action: str,
        deadline: Optional[float] = None,
    ) -> Completion:
        """Never raises; see Completion for how failures are reported."""
        if not credential:
            log.warning("llm: no API key available, using demo mode")
            return Completion.fallback(generate_demo_text(text, action), None, "No API key configured")

        try:
            body = self.build_body(build_messages(prompt, text, tone, action))
            budget = self.settings.deadline_secs if deadline is None else deadline
            deadline_at = self._clock() + budget
            content = with_retry(
                lambda: self._send(credential, body, deadline_at),
                max_attempts=self.settings.retry_max_attempts,
                initial_delay=self.settings.retry_initial_delay,
                max_delay=self.settings.retry_max_delay,
                retryable=lambda exc: isinstance(exc, TransportError)
                and not isinstance(exc, DeadlineExceededError),
                sleep=self._bounded_sleep(deadline_at),
            )
        except QuotaExceededError as exc:
            log.warning("llm: quota exceeded, using demo mode: %s", exc)
            return Completion.fallback(generate_demo_text(text, action), "quota", str(exc))
        except (TransportError, RetryExhaustedError) as exc:
            log.warning("llm: provider call failed, using demo mode: %s", exc)
            return Completion.fallback(generate_demo_text(text, action), "transport", str(exc))
        except Exception as exc:
            log.exception("llm: unexpected error during completion")
            return Completion.fallback(generate_demo_text(text, action), "unexpected", str(exc))
        return Completion.ok(content)
