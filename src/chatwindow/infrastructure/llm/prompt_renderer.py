"""Render an assembled context into chat messages."""

import logging

from chatwindow.domain.entities import AssembledContext
from chatwindow.infrastructure.llm.templates import create_jinja_env

logger = logging.getLogger(__name__)


class PromptRenderer:
    """Jinja2-based renderer for AssembledContext.

    Produces OpenAI-format messages: a system message holding the system
    prompt, participants and memory archive, and a user message holding
    the chat log followed by the current message.
    """

    def __init__(self) -> None:
        self._jinja_env = create_jinja_env()
        self._system_template = self._jinja_env.get_template("system_prompt.j2")
        self._user_template = self._jinja_env.get_template("user_message.j2")

    def render_system_prompt(self, context: AssembledContext) -> str:
        """Render the system message content.

        Args:
            context: Assembled context.

        Returns:
            Rendered system prompt string.
        """
        return self._system_template.render(
            system_prompt=context.system_prompt,
            participants_context=context.participants_context,
            memory_context=context.memory_context,
        ).rstrip("\n")

    def render_user_message(self, context: AssembledContext) -> str:
        """Render the user message content.

        Args:
            context: Assembled context.

        Returns:
            Chat log (if any) followed by the current message.
        """
        return self._user_template.render(
            serialized_history=context.serialized_history,
            current_message=context.current_message,
        ).rstrip("\n")

    def render(self, context: AssembledContext) -> list[dict[str, str]]:
        """Render the full message list.

        Args:
            context: Assembled context.

        Returns:
            [{"role": "system", ...}, {"role": "user", ...}]
        """
        messages = [
            {"role": "system", "content": self.render_system_prompt(context)},
            {"role": "user", "content": self.render_user_message(context)},
        ]
        logger.debug(
            "Rendered prompt: system=%d chars, user=%d chars",
            len(messages[0]["content"]),
            len(messages[1]["content"]),
        )
        return messages
