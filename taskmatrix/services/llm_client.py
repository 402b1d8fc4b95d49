from __future__ import annotations

from typing import Optional, Protocol

from openai import APITimeoutError, OpenAI, OpenAIError

from taskmatrix.domain.result import Err, Ok, Result


class TransportError(Exception):
    def __init__(self, message: str, *, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out


class ClassifierTransport(Protocol):
    def complete(self, prompt: str) -> Result[str, TransportError]:
        ...


class OpenAITransport:
    """Single-shot chat completion against an OpenAI-compatible endpoint.

    The request is bounded by ``timeout`` seconds and never retried; a
    timeout is reported like any other transport failure.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        timeout: float = 15.0,
    ) -> None:
        self.model = model
        self._client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )

    def complete(self, prompt: str) -> Result[str, TransportError]:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0,
            )
        except APITimeoutError as exc:
            return Err(TransportError(f"request timed out: {exc}", timed_out=True))
        except OpenAIError as exc:
            return Err(TransportError(f"{type(exc).__name__}: {exc}"))

        if not response.choices:
            return Err(TransportError("response contained no choices"))
        return Ok(response.choices[0].message.content or "")
