"""Conversation loop driving tool-call round trips, plus the prompt entry point."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum
from typing import cast

from hats_agent.client import LLMClient
from hats_agent.config import Settings, load_settings
from hats_agent.errors import PromptDecodeError, ToolArgumentError, ToolExecutionError
from hats_agent.tools import available_tools, execute_tool_call
from hats_agent.types import Message, Tool

logger = logging.getLogger(__name__)


class LoopState(Enum):
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"


class Conversation:
    """One prompt's worth of message history and tool-round bookkeeping.

    The history only ever grows. Network calls are made strictly one after
    another: the follow-up request is built only after every tool result of the
    previous round has been appended.
    """

    def __init__(
        self,
        client: LLMClient,
        messages: Sequence[Message],
        *,
        tools: Sequence[Tool] | None = None,
        max_tool_rounds: int = 1,
    ) -> None:
        if max_tool_rounds < 1:
            raise ValueError("max_tool_rounds must be at least 1")
        self._client = client
        self._messages: list[Message] = list(messages)
        self._tools = list(tools) if tools is not None else available_tools()
        self._max_tool_rounds = max_tool_rounds
        self.state = LoopState.AWAITING_MODEL
        self.tool_rounds = 0

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    async def run(self) -> str:
        """Drive the conversation to a final textual answer."""
        if self.state is LoopState.DONE:
            raise RuntimeError("conversation already finished")

        reply: Message | None = None
        result = ""
        while self.state is not LoopState.DONE:
            if self.state is LoopState.AWAITING_MODEL:
                reply = await self._client.chat_completion(self._messages, self._tools)
                if reply.tool_calls:
                    self.state = LoopState.EXECUTING_TOOLS
                else:
                    result = reply.content or ""
                    self.state = LoopState.DONE

            elif self.state is LoopState.EXECUTING_TOOLS:
                self._execute_round(cast(Message, reply))
                if self.tool_rounds >= self._max_tool_rounds:
                    # Final answer; tools are not offered again.
                    result = await self._client.chat_completion_text(self._messages)
                    self.state = LoopState.DONE
                else:
                    self.state = LoopState.AWAITING_MODEL

        return result

    def _execute_round(self, reply: Message) -> None:
        calls = reply.tool_calls or []
        self.tool_rounds += 1
        logger.info("Tool round %d: executing %d call(s)", self.tool_rounds, len(calls))

        # tool_calls must be sent back verbatim so results can be correlated
        self._messages.append(
            Message(role="assistant", content=reply.content or "", tool_calls=calls)
        )
        for call in calls:
            try:
                output = execute_tool_call(call)
            except (ToolArgumentError, ToolExecutionError) as exc:
                logger.info("Tool %s (%s) failed: %s", call.function.name, call.id, exc)
                output = f"Error: {exc}"
            self._messages.append(Message.tool_result(call.id, output))


async def run_prompt(
    client: LLMClient,
    prompt: str,
    *,
    system_prompt: str | None = None,
    tools: Sequence[Tool] | None = None,
    max_tool_rounds: int = 1,
) -> str:
    """Answer ``prompt`` with tools available, returning the final text."""
    messages = [Message.user(prompt)]
    if system_prompt:
        messages.insert(0, Message.system(system_prompt))
    conversation = Conversation(client, messages, tools=tools, max_tool_rounds=max_tool_rounds)
    return await conversation.run()


async def process_prompt(
    prompt: str | bytes,
    trigger_id: int | str | None = None,
    *,
    client: LLMClient | None = None,
    settings: Settings | None = None,
) -> str:
    """Entry point for trigger handlers: prompt in, result text out.

    ``trigger_id`` is opaque here and only used for logging; encoding the
    result for downstream consumers is the caller's job.
    """
    if isinstance(prompt, bytes):
        try:
            prompt = prompt.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise PromptDecodeError(str(exc)) from exc

    settings = settings or load_settings()
    client = client or LLMClient(settings.model, settings=settings)
    logger.info(
        "Processing prompt for trigger %s with %s/%s",
        trigger_id,
        client.config.provider.value,
        client.config.model,
    )

    if not settings.enable_tools:
        return await client.chat_completion_text([Message.user(prompt)])

    return await run_prompt(
        client,
        prompt,
        system_prompt=settings.system_prompt,
        max_tool_rounds=settings.max_tool_rounds,
    )
