"""
Client for the plan-generation assistant (OpenAI Assistants API).

A request is a short conversation: create a thread, post the prompt, start a
run with the configured assistant, poll the run until it completes, then read
the assistant's reply. Polling uses a fixed interval and a fixed number of
attempts; running out of attempts is a timeout. Every failure is raised as an
LLMError subclass so the caller can fall back.
"""

from typing import Any, Dict, Optional
import asyncio
import json
import logging
import os
import re

from openai import AsyncOpenAI, APIConnectionError, APIError, RateLimitError

from ..config import get_settings
from ..exceptions import (
    LLMError,
    LLMRateLimitError,
    LLMResponseInvalidError,
    LLMServiceUnavailableError,
    LLMTimeoutError,
)


logger = logging.getLogger(__name__)

TERMINAL_FAILURE_STATUSES = {"failed", "cancelled", "expired", "incomplete"}


def extract_json(response: str) -> Dict[str, Any]:
    """Parse a JSON object out of an assistant reply.

    Tries the raw text, then fenced code blocks, then the outermost braces.
    """
    try:
        parsed = json.loads(response)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    json_pattern = r'```(?:json)?\s*\n?([\s\S]*?)\n?```'
    for match in re.findall(json_pattern, response):
        try:
            parsed = json.loads(match)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    start_idx = response.find('{')
    end_idx = response.rfind('}')
    if start_idx != -1 and end_idx > start_idx:
        try:
            parsed = json.loads(response[start_idx:end_idx + 1])
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            pass

    raise LLMResponseInvalidError(
        message="Could not parse JSON from assistant response",
        raw_response=response,
    )


class AssistantClient:
    """
    Thin async wrapper over the Assistants thread/run protocol.

    Usage:
        client = AssistantClient()
        text = await client.run(prompt)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        assistant_id: Optional[str] = None,
        poll_interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        settings = get_settings()
        self.assistant_id = assistant_id or settings.openai_assistant_id
        if not self.assistant_id:
            raise LLMServiceUnavailableError(
                message="OPENAI_ASSISTANT_ID not configured",
                details={"configuration_missing": "openai_assistant_id"},
            )

        if client is None:
            api_key = api_key or settings.openai_api_key or os.environ.get("OPENAI_API_KEY")
            if not api_key:
                raise LLMServiceUnavailableError(
                    message="OPENAI_API_KEY not configured",
                    details={"configuration_missing": "openai_api_key"},
                )
            client = AsyncOpenAI(api_key=api_key)

        self.client = client
        self.poll_interval = (
            poll_interval if poll_interval is not None else settings.assistant_poll_interval_seconds
        )
        self.max_attempts = max_attempts or settings.assistant_max_poll_attempts
        self._logger = logger

    async def run(self, prompt: str) -> str:
        """Send one prompt and return the assistant's text reply."""
        try:
            thread = await self.client.beta.threads.create()
            await self.client.beta.threads.messages.create(
                thread_id=thread.id,
                role="user",
                content=prompt,
            )
            run = await self.client.beta.threads.runs.create(
                thread_id=thread.id,
                assistant_id=self.assistant_id,
            )
            self._logger.info(f"Assistant run {run.id} started on thread {thread.id}")

            await self._wait_for_completion(thread.id, run.id)

            messages = await self.client.beta.threads.messages.list(thread_id=thread.id)
            return self._first_assistant_text(messages.data)

        except RateLimitError as e:
            raise LLMRateLimitError(retry_after=getattr(e, "retry_after", None))
        except APIConnectionError as e:
            raise LLMServiceUnavailableError(message=f"Connection to LLM service failed: {e}")
        except APIError as e:
            status = getattr(e, "status_code", 500)
            raise LLMError(message=f"LLM API error: {e}", details={"status_code": status})

    async def run_json(self, prompt: str) -> Dict[str, Any]:
        """Send one prompt and parse the reply as a JSON object."""
        return extract_json(await self.run(prompt))

    async def _wait_for_completion(self, thread_id: str, run_id: str) -> None:
        status = "queued"
        for attempt in range(1, self.max_attempts + 1):
            await asyncio.sleep(self.poll_interval)
            run = await self.client.beta.threads.runs.retrieve(run_id=run_id, thread_id=thread_id)
            status = run.status
            self._logger.debug(f"Assistant status: {status} (attempt {attempt}/{self.max_attempts})")

            if status == "completed":
                return
            if status in TERMINAL_FAILURE_STATUSES:
                last_error = getattr(run, "last_error", None)
                raise LLMError(
                    message=f"Assistant run {status}",
                    details={"run_id": run_id, "last_error": str(last_error) if last_error else None},
                )

        raise LLMTimeoutError(
            timeout_seconds=self.poll_interval * self.max_attempts,
            details={"run_id": run_id, "last_status": status},
        )

    @staticmethod
    def _first_assistant_text(messages) -> str:
        for message in messages:
            if message.role != "assistant":
                continue
            for block in message.content:
                text = getattr(block, "text", None)
                if text is not None:
                    return text.value
        raise LLMResponseInvalidError(message="Assistant returned no text message")
