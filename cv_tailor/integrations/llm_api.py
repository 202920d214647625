"""Structured text generation over an OpenAI-compatible chat API"""

import json
from typing import Any, Dict, List, Optional, Protocol, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..core.errors import GenerationError, TransientError
from ..utils.config import LLMConfig, get_settings
from ..utils.helpers import extract_json_object, truncate_text
from ..utils.logger import llm_logger

M = TypeVar("M", bound=BaseModel)

DEFAULT_SYSTEM_PROMPT = (
    "You are a precise assistant that answers only with a single JSON object "
    "matching the requested schema. Do not add commentary."
)


class StructuredGenerator(Protocol):
    """Anything that turns a prompt into a validated schema instance"""

    async def generate(self, prompt: str, schema: Type[M], system_prompt: Optional[str] = None) -> M:
        ...


class LLMAPI:
    """Chat-completions client returning pydantic models"""

    def __init__(self, config: Optional[LLMConfig] = None, client: Optional[httpx.AsyncClient] = None):
        self.config = config or get_settings().llm
        self.api_key = self.config.api_key
        self.base_url = self.config.base_url.rstrip("/")
        self.model = self.config.model
        self.max_retries = self.config.max_retries

        self.client = client or httpx.AsyncClient(
            timeout=self.config.timeout,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json"
            }
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Send one chat-completions request"""
        llm_logger.info(f"Sending chat completion request: {self.model}")

        try:
            response = await self.client.post(f"{self.base_url}/chat/completions", json=payload)
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            llm_logger.error(f"LLM API HTTP error: {status} - {truncate_text(e.response.text, 500)}")
            # Rate limits and server errors are worth another attempt
            if status == 429 or status >= 500:
                raise TransientError(f"LLM API request failed: {status}",
                                     context={"source": "llm_api", "status_code": status})
            raise GenerationError(f"LLM API request failed: {status}",
                                  context={"source": "llm_api", "status_code": status})
        except httpx.RequestError as e:
            llm_logger.error(f"LLM API request error: {e}")
            raise TransientError(f"Network request failed: {e}", context={"source": "llm_api"})
        except ValueError as e:
            raise GenerationError(f"LLM API returned a non-JSON body: {e}", context={"source": "llm_api"})

        llm_logger.info(f"LLM API response received, usage: {result.get('usage', {})}")
        return result

    async def _make_request(self, messages: List[Dict[str, str]], **kwargs) -> Dict[str, Any]:
        """Send a request, retrying rate limits, server errors and network failures"""
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": kwargs.get("temperature", self.config.temperature),
            "max_tokens": kwargs.get("max_tokens", self.config.max_tokens),
            "response_format": {"type": "json_object"},
            "stream": False
        }

        retrying = AsyncRetrying(
            retry=retry_if_exception_type(TransientError),
            stop=stop_after_attempt(max(1, self.max_retries)),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True
        )
        async for attempt in retrying:
            with attempt:
                result = await self._post(payload)
        return result

    @staticmethod
    def _schema_instructions(schema: Type[BaseModel]) -> str:
        return (
            "Respond with a JSON object that validates against this JSON schema:\n"
            f"{json.dumps(schema.model_json_schema(by_alias=True), ensure_ascii=False)}"
        )

    async def generate(self, prompt: str, schema: Type[M], system_prompt: Optional[str] = None) -> M:
        """Run a prompt and validate the reply against schema"""
        messages = [
            {"role": "system", "content": f"{system_prompt or DEFAULT_SYSTEM_PROMPT}\n\n{self._schema_instructions(schema)}"},
            {"role": "user", "content": prompt}
        ]

        response = await self._make_request(messages)

        try:
            content = response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise GenerationError("LLM API response has no message content", context={"source": "llm_api"})

        data = extract_json_object(content or "")
        if not isinstance(data, dict):
            llm_logger.error(f"Could not parse JSON from reply: {truncate_text(content or '', 500)}")
            raise GenerationError("Reply is not a JSON object",
                                  context={"source": "llm_api", "schema": schema.__name__})

        try:
            return schema.model_validate(data)
        except ValidationError as e:
            llm_logger.error(f"Reply does not match {schema.__name__}: {e.error_count()} errors")
            errors = e.errors(include_url=False, include_context=False, include_input=False)
            raise GenerationError(f"Reply does not match {schema.__name__}",
                                  context={"source": "llm_api", "schema": schema.__name__, "errors": errors})

    async def close(self):
        await self.client.aclose()


# Global API instance
_api_instance: Optional[LLMAPI] = None


def get_llm_api() -> LLMAPI:
    """Return the shared LLMAPI instance"""
    global _api_instance
    if _api_instance is None:
        _api_instance = LLMAPI()
    return _api_instance


async def close_llm_api():
    global _api_instance
    if _api_instance:
        await _api_instance.close()
        _api_instance = None
