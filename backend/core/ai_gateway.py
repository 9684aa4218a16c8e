"""
AI gateway client wrapper (OpenAI-compatible chat and image endpoints).
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from core.config import (
    AI_GATEWAY_BASE_URL,
    AI_GATEWAY_API_KEY,
    AI_REQUEST_TIMEOUT,
)

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class AIGatewayError(Exception):
    """Raised when a gateway call fails or returns an unusable response."""
    pass


@dataclass(frozen=True)
class GeneratedImage:
    """One image payload returned by the image model."""
    base64: str
    media_type: str = "image/png"


class AIGatewayClient:
    """Client for structured text, plain text and image generation."""

    def __init__(
        self,
        base_url: str = AI_GATEWAY_BASE_URL,
        api_key: str = AI_GATEWAY_API_KEY,
        timeout: float = AI_REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST to the gateway and return the decoded JSON body."""
        url = f"{self.base_url}{path}"
        try:
            response = self.client.post(url, json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise AIGatewayError(
                f"AI gateway error {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise AIGatewayError(f"AI gateway error: {e}") from e

    @staticmethod
    def _message_text(result: Dict[str, Any]) -> str:
        try:
            content = result["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise AIGatewayError(f"Malformed chat completion: {e}") from e
        return content or ""

    @staticmethod
    def _messages(system: Optional[str], prompt: str) -> List[Dict[str, str]]:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    def generate_object(
        self,
        model: str,
        system: str,
        prompt: str,
        schema: Type[SchemaT],
        temperature: float,
    ) -> SchemaT:
        """Generate output matching ``schema``; raises AIGatewayError otherwise."""
        payload = {
            "model": model,
            "messages": self._messages(system, prompt),
            "temperature": temperature,
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": schema.__name__,
                    "schema": schema.model_json_schema(by_alias=True),
                },
            },
        }
        content = self._message_text(self._post("/chat/completions", payload))

        try:
            return schema.model_validate(json.loads(content))
        except json.JSONDecodeError as e:
            raise AIGatewayError(f"Response is not valid JSON: {e}") from e
        except ValidationError as e:
            raise AIGatewayError(
                f"Response does not match {schema.__name__}: {e.error_count()} errors"
            ) from e

    def generate_text(
        self,
        model: str,
        system: Optional[str],
        prompt: str,
        temperature: float,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Generate plain text."""
        payload: Dict[str, Any] = {
            "model": model,
            "messages": self._messages(system, prompt),
            "temperature": temperature,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens
        return self._message_text(self._post("/chat/completions", payload))

    def generate_image(
        self,
        model: str,
        prompt: str,
        temperature: Optional[float] = None,
    ) -> List[GeneratedImage]:
        """Generate images; the list may be empty when the model returns none."""
        payload: Dict[str, Any] = {
            "model": model,
            "prompt": prompt,
            "n": 1,
            "response_format": "b64_json",
        }
        if temperature is not None:
            payload["temperature"] = temperature

        result = self._post("/images/generations", payload)

        images = []
        for item in result.get("data") or []:
            b64 = item.get("b64_json")
            if b64:
                images.append(GeneratedImage(base64=b64, media_type=item.get("media_type", "image/png")))
        return images


# Global AI gateway client instance
ai_gateway = AIGatewayClient()
