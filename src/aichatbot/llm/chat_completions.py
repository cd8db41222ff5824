"""Shared HTTP client for OpenAI-compatible chat completion APIs."""

import logging
from typing import Any, Optional

import httpx

from .base import AIMessage, AIResponse, ModelInfo, ProviderClient, RequestOptions, TokenUsage
from .errors import (
    AuthError,
    BadRequestError,
    InvalidResponseError,
    ProviderError,
    RateLimitedError,
    UnavailableError,
    UnknownProviderError,
)
from .pricing import calculate_cost

logger = logging.getLogger(__name__)


class ChatCompletionClient(ProviderClient):
    """Talks to one ``/chat/completions`` endpoint over HTTP.

    Subclasses provide the provider identity, extra headers, the pricing
    table and the model catalog mapping. The client never retries; every
    failure is raised as a typed ``ProviderError``.
    """

    display_name = "Provider"
    pricing: dict[str, tuple[float, float]] = {}
    baseline_model = ""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        default_model: str,
        max_tokens: int = 4000,
        temperature: float = 0.7,
        timeout: float = 60.0,
        health_check_timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError(f"An API key is required for {self.display_name}")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._default_model = default_model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.health_check_timeout = health_check_timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._build_headers(),
            timeout=timeout,
            transport=transport,
        )

    def _build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    @property
    def default_model(self) -> str:
        return self._default_model

    def set_default_model(self, model: str) -> None:
        logger.info(f"{self.display_name} default model changed to {model}")
        self._default_model = model

    async def send_message(
        self,
        messages: list[AIMessage],
        options: Optional[RequestOptions] = None,
    ) -> AIResponse:
        """Create a chat completion."""
        if not messages:
            raise BadRequestError(
                "Bad request: at least one message is required",
                provider=self.provider.value,
            )

        options = options or RequestOptions()
        payload = self._build_payload(messages, options)

        logger.debug(
            f"{self.display_name} request: model={payload['model']} "
            f"messages={len(messages)} max_tokens={payload['max_tokens']}"
        )

        data = await self._request("POST", "/chat/completions", json=payload)
        response = self._convert_response(data, payload["model"])

        logger.debug(
            f"{self.display_name} response: model={response.model} "
            f"total_tokens={response.usage.total_tokens}"
        )
        return response

    def _build_payload(self, messages: list[AIMessage], options: RequestOptions) -> dict:
        payload: dict[str, Any] = {
            "model": options.model or self.default_model,
            "messages": [message.to_dict() for message in messages],
            "max_tokens": options.max_tokens or self.max_tokens,
            "temperature": (
                options.temperature if options.temperature is not None else self.temperature
            ),
            "stream": False,
        }

        # Sampling penalties are only sent when explicitly requested
        if options.top_p is not None:
            payload["top_p"] = options.top_p
        if options.frequency_penalty is not None:
            payload["frequency_penalty"] = options.frequency_penalty
        if options.presence_penalty is not None:
            payload["presence_penalty"] = options.presence_penalty

        return payload

    def _convert_response(self, data: Any, requested_model: str) -> AIResponse:
        """Convert the raw completion body to an AIResponse.

        Raises:
            InvalidResponseError: If the body does not have the completion shape
        """
        choices = data.get("choices") if isinstance(data, dict) else None
        choice = choices[0] if isinstance(choices, list) and choices else None
        message = choice.get("message") if isinstance(choice, dict) else None

        if not isinstance(message, dict) or not message:
            raise self._invalid_response("no usable completion choice")

        content = message.get("content")
        if content is not None and not isinstance(content, str):
            raise self._invalid_response("message content is not text")

        usage = data.get("usage") or {}
        if not isinstance(usage, dict):
            raise self._invalid_response("usage is not an object")

        prompt_tokens = self._token_count(usage, "prompt_tokens")
        completion_tokens = self._token_count(usage, "completion_tokens")
        total_tokens = self._token_count(usage, "total_tokens")

        model = data.get("model")
        return AIResponse(
            content=content or "",
            usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=total_tokens or prompt_tokens + completion_tokens,
            ),
            model=model if isinstance(model, str) and model else requested_model,
        )

    def _token_count(self, usage: dict, key: str) -> int:
        # Missing counts are zero; anything but a non-negative int is malformed
        value = usage.get(key) or 0
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise self._invalid_response(f"{key} is {value!r}")
        return value

    def _invalid_response(self, detail: str) -> InvalidResponseError:
        logger.error(f"Invalid response from {self.display_name} API: {detail}")
        return InvalidResponseError(
            f"Invalid response from {self.display_name} API: {detail}",
            provider=self.provider.value,
        )

    async def get_models(self) -> list[ModelInfo]:
        """List the provider's model catalog."""
        data = await self._request("GET", "/models")
        entries = data.get("data", []) if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise self._invalid_response("model catalog is not a list")

        try:
            return [self._convert_model(entry) for entry in entries]
        except (AttributeError, KeyError, TypeError) as e:
            raise self._invalid_response(f"malformed model entry ({e})") from e

    def _convert_model(self, entry: dict) -> ModelInfo:
        return ModelInfo(id=entry["id"], name=entry.get("name"), provider=self.provider)

    def calculate_cost(
        self, prompt_tokens: int, completion_tokens: int, model: Optional[str] = None
    ) -> float:
        return calculate_cost(
            self.pricing, self.baseline_model, prompt_tokens, completion_tokens, model
        )

    async def health_check(self) -> bool:
        """Probe the model listing endpoint with a short timeout."""
        try:
            await self._request("GET", "/models", timeout=self.health_check_timeout)
            return True
        except Exception as e:
            logger.warning(f"{self.display_name} health check failed: {e}")
            return False

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Issue one HTTP request and decode the JSON body.

        Raises:
            ProviderError: A typed error describing the failure
        """
        kwargs: dict[str, Any] = {}
        if json is not None:
            kwargs["json"] = json
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            error = self._error_for_status(e.response)
            logger.error(
                f"{self.display_name} {method} {path} failed with HTTP "
                f"{e.response.status_code}: {error.message}"
            )
            raise error from e
        except httpx.TimeoutException as e:
            logger.error(f"{self.display_name} {method} {path} timed out")
            raise UnavailableError(
                f"{self.display_name} request timed out",
                provider=self.provider.value,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"{self.display_name} {method} {path} transport error: {e}")
            raise UnknownProviderError(
                f"{self.display_name} API error: {e}",
                provider=self.provider.value,
            ) from e
        except ValueError as e:
            # Body was not valid JSON
            raise UnknownProviderError(
                f"{self.display_name} API error: malformed response body",
                provider=self.provider.value,
            ) from e

    def _error_for_status(self, response: httpx.Response) -> ProviderError:
        """Map an HTTP error status to a typed error."""
        status = response.status_code
        provider = self.provider.value

        if status == 401:
            return AuthError(
                f"Invalid {self.display_name} API key", provider=provider, status_code=status
            )
        if status == 429:
            return RateLimitedError(
                "Rate limit exceeded. Please try again later.",
                provider=provider,
                status_code=status,
            )
        if status == 400:
            detail = _extract_error_message(response) or "Invalid request"
            return BadRequestError(
                f"Bad request: {detail}", provider=provider, status_code=status
            )
        if status >= 500:
            return UnavailableError(
                f"{self.display_name} service is temporarily unavailable",
                provider=provider,
                status_code=status,
            )
        return UnknownProviderError(
            f"{self.display_name} API error: HTTP {status}",
            provider=provider,
            status_code=status,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()


def _extract_error_message(response: httpx.Response) -> Optional[str]:
    """Pull ``error.message`` out of an error body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return error.get("message")
        if isinstance(error, str):
            return error
    return None
