"""
Assist - PromptEnvelopeBuilder
==============================
Formats a raw question (optionally preceded by retrieved context) into the
Claude conversational envelope and attaches the generation options for the
call site.

Envelope layout::

    \\n\\nHuman: <context>A</context>
    <context>B</context>
    question\\n\\nAssistant:

The builder is pure: no I/O, no state.
"""

from __future__ import annotations

import re
from typing import Sequence

from assist.config.prompt_templates import ASSISTANT_TURN, BLOCKING_OPTIONS, CONTEXT_CLOSE, CONTEXT_OPEN, HUMAN_TURN, RETRIEVAL_OPTIONS, STREAMING_OPTIONS
from assist.src.core.models import GenerationOptions, PromptEnvelope, ResponseMode

# A blank line followed by a role label would open a new turn.
_ROLE_BREAK_RE = re.compile(r"\s*\n\s*\n\s*(?=(?:Human|Assistant)\s*:)")
_CONTEXT_TAG_RE = re.compile(r"</?context>", re.IGNORECASE)

_COMPLETION_OPTIONS: dict[ResponseMode, GenerationOptions] = {
    ResponseMode.BLOCKING: BLOCKING_OPTIONS,
    ResponseMode.STREAMING: STREAMING_OPTIONS,
}


class PromptEnvelopeBuilder:
    """
    Build ``PromptEnvelope`` objects for plain and retrieval-augmented calls.

    ``context_fragments=None`` marks a plain completion: options follow the
    response mode.  Any sequence, even an empty one, marks a RAG completion
    and selects the deterministic ``RETRIEVAL_OPTIONS``.
    """

    __slots__ = ()

    def build(self, question: str, context_fragments: Sequence[str] | None = None, *, mode: ResponseMode = ResponseMode.BLOCKING) -> PromptEnvelope:
        if context_fragments is None:
            options = _COMPLETION_OPTIONS[mode]
            context_block = ""
        else:
            options = RETRIEVAL_OPTIONS
            context_block = "".join(self._wrap_fragment(fragment) for fragment in context_fragments)

        # The context block ends in a newline; its join with the question counts.
        body = self._neutralise(context_block + question)
        rendered = f"{HUMAN_TURN} {body}{ASSISTANT_TURN}"
        return PromptEnvelope(rendered_text=rendered, options=options)


    @staticmethod
    def _neutralise(text: str) -> str:
        """Collapse role-opening blank lines so user text cannot start a new turn."""
        return _ROLE_BREAK_RE.sub("\n", text)


    @staticmethod
    def _wrap_fragment(fragment: str) -> str:
        escaped = _CONTEXT_TAG_RE.sub(lambda m: m.group(0).replace("<", "&lt;").replace(">", "&gt;"), fragment)
        return f"{CONTEXT_OPEN}{escaped}{CONTEXT_CLOSE}\n"
