"""Context assembly use case."""

import logging

from chatwindow.domain.entities import (
    AssembledContext,
    ContextInput,
    SelectionMetadata,
)
from chatwindow.domain.services.history_selector import select_and_serialize_history
from chatwindow.domain.services.memory_formatter import (
    format_memories_context,
    select_memories_within_budget,
)
from chatwindow.domain.services.participant_formatter import (
    format_participants_context,
)
from chatwindow.domain.services.protocols import TokenCounter
from chatwindow.domain.services.time_format import TimeFormatter, TimeGapConfig
from chatwindow.domain.services.token_budget import compute_budget

logger = logging.getLogger(__name__)


class ContextAssembler:
    """Assembles the context window for one conversational turn.

    The pipeline is fixed: compute the budget from the system prompt,
    current message and memories, spend what is left on current-channel
    history (then cross-channel history), and package the result. Running
    out of budget degrades to less history; it is never an error.
    """

    def __init__(
        self,
        counter: TokenCounter,
        time_formatter: TimeFormatter,
        *,
        time_gap: TimeGapConfig | None = None,
        fast_estimate: bool = False,
    ) -> None:
        """Initialize the assembler.

        Args:
            counter: Token counter.
            time_formatter: Timestamp formatter.
            time_gap: Optional gap-marker threshold for the chat log.
            fast_estimate: Price unmeasured history entries with the
                character approximation instead of the counter.
        """
        self._counter = counter
        self._time_formatter = time_formatter
        self._time_gap = time_gap
        self._fast_estimate = fast_estimate

    def build_context(self, context_input: ContextInput) -> AssembledContext:
        """Build the context for a turn.

        Args:
            context_input: Prompt parts and candidate content.

        Returns:
            AssembledContext.
        """
        memories = list(context_input.memories)
        memories_dropped = 0
        if context_input.max_memory_tokens is not None and memories:
            selection = select_memories_within_budget(
                memories,
                context_input.max_memory_tokens,
                self._counter,
                self._time_formatter,
            )
            memories = selection.memories
            memories_dropped = selection.dropped
            if memories_dropped > 0:
                logger.debug(
                    "Dropped %d memories to fit memory cap %d",
                    memories_dropped,
                    context_input.max_memory_tokens,
                )

        participants_context = format_participants_context(
            context_input.participants,
            context_input.active_persona_name,
            time_formatter=self._time_formatter,
        )
        memory_context = format_memories_context(memories, self._time_formatter)

        # The participants block is rendered into the system prompt.
        system_prompt_for_budget = (
            f"{context_input.system_prompt}\n\n{participants_context}"
            if participants_context
            else context_input.system_prompt
        )
        budget = compute_budget(
            context_input.context_window_tokens,
            system_prompt_for_budget,
            context_input.current_message,
            memories,
            counter=self._counter,
            time_formatter=self._time_formatter,
        )

        selection = select_and_serialize_history(
            context_input.history,
            context_input.speaker_name,
            budget.history_budget,
            context_input.cross_channel_groups,
            counter=self._counter,
            time_formatter=self._time_formatter,
            time_gap=self._time_gap,
            fast_estimate=self._fast_estimate,
        )
        budget = budget.with_history_usage(selection.history_tokens_used)

        logger.info(
            "Token budget: total=%d, system=%d, current=%d, memories=%d, "
            "historyBudget=%d, historyUsed=%d",
            budget.context_window_tokens,
            budget.system_prompt_tokens,
            budget.current_message_tokens,
            budget.memory_tokens,
            budget.history_budget,
            budget.history_tokens_used,
        )
        if selection.messages_included > 0:
            logger.info(
                "Including %d history messages (%d tokens, budget: %d)",
                selection.messages_included,
                budget.history_tokens_used,
                budget.history_budget,
            )
        if selection.messages_dropped > 0:
            logger.debug(
                "Dropped %d messages due to token budget", selection.messages_dropped
            )
        if budget.history_budget <= 0:
            logger.warning(
                "No history budget available: system prompt, current message "
                "and memories consumed the entire context window"
            )

        return AssembledContext(
            system_prompt=context_input.system_prompt,
            current_message=context_input.current_message,
            selected_history=selection.selected_history,
            serialized_history=selection.serialized_history,
            participants_context=participants_context,
            memory_context=memory_context,
            token_budget=budget,
            metadata=SelectionMetadata(
                messages_included=selection.messages_included,
                messages_dropped=selection.messages_dropped,
                cross_channel_messages_included=(
                    selection.cross_channel_messages_included
                ),
                memories_included=len(memories),
                memories_dropped=memories_dropped,
            ),
        )
