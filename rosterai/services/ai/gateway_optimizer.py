"""
Optimizer backed by an OpenAI-compatible chat-completions inference gateway.
Spoken to over plain REST (no vendor SDK).
"""

import logging
from typing import Optional

import httpx

from rosterai.core.config import settings
from rosterai.services.scheduling.errors import (
    MalformedOptimizerOutput,
    OptimizerCapacityError,
    OptimizerError,
    OptimizerQuotaError,
    OptimizerTimeoutError,
)
from rosterai.services.scheduling.optimizer import BaseOptimizer
from rosterai.services.scheduling.types import OptimizerResult, SchedulingContext

from .prompts import build_system_prompt, build_user_prompt
from .response_parser import parse_completion


logger = logging.getLogger(__name__)


class GatewayOptimizer(BaseOptimizer):
    """Sends the scheduling context to the gateway and parses the JSON plan it returns."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        url: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.AI_GATEWAY_API_KEY
        self.model = model or settings.AI_MODEL
        self.url = url or settings.AI_GATEWAY_URL
        self.temperature = temperature if temperature is not None else settings.AI_TEMPERATURE
        self.max_tokens = max_tokens or settings.AI_MAX_TOKENS
        self.timeout = timeout or settings.AI_TIMEOUT_SECONDS
        self.http_client = http_client

    def provider_name(self) -> str:
        return f"gateway/{self.model}"

    def _post(self, payload: dict) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        if self.http_client is not None:
            return self.http_client.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        return httpx.post(self.url, json=payload, headers=headers, timeout=self.timeout)

    def optimize(self, context: SchedulingContext) -> OptimizerResult:
        if not self.api_key:
            raise OptimizerError("AI_GATEWAY_API_KEY not set")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": build_system_prompt(context.optimization_goal)},
                {"role": "user", "content": build_user_prompt(context)},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

        logger.info(
            f"Calling optimizer {self.provider_name()} with {len(context.employees)} employees, "
            f"{len(context.shifts)} shifts, {len(context.dates)} days"
        )

        try:
            response = self._post(payload)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error(f"Optimizer request timed out after {self.timeout}s: {e}")
            raise OptimizerTimeoutError() from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"Optimizer gateway HTTP error: {status} - {e.response.text}")
            if status == 429:
                raise OptimizerCapacityError() from e
            if status == 402:
                raise OptimizerQuotaError() from e
            raise OptimizerError(f"Optimizer gateway error: {status}") from e
        except httpx.HTTPError as e:
            logger.error(f"Optimizer gateway transport error: {e}")
            raise OptimizerError(f"Optimizer gateway unreachable: {e}") from e

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Optimizer gateway returned an unexpected body: {response.text[:2000]}")
            raise MalformedOptimizerOutput(
                f"Unexpected optimizer response shape: {e}", raw_content=response.text
            ) from e

        try:
            result = parse_completion(content)
        except MalformedOptimizerOutput as e:
            logger.error(f"Failed to parse optimizer response. Raw content: {e.raw_content}")
            raise

        logger.info(f"Optimizer returned {len(result.recommendations)} raw recommendations")
        return result
