"""
Assist - Prompt Envelope Constants
===================================
Turn markers, context tags and per-call-site generation presets for the
Claude text-completion envelope.  Everything the model sees as structure
lives here so it can be reviewed independently of the orchestration code.

Exports
-------
HUMAN_TURN, ASSISTANT_TURN, CONTEXT_OPEN, CONTEXT_CLOSE,
BLOCKING_OPTIONS, STREAMING_OPTIONS, RETRIEVAL_OPTIONS,
EMBEDDINGS_SAVED_CONFIRMATION.
"""

from assist.src.core.models import GenerationOptions

# ══════════════════════════════════════════════════════════════════════
#  TURN MARKERS
# ══════════════════════════════════════════════════════════════════════
# Claude v2 expects the prompt to open with a human turn and close with an
# empty assistant turn.  The human marker doubles as the stop sequence.

HUMAN_TURN: str = "\n\nHuman:"
ASSISTANT_TURN: str = "\n\nAssistant:"

CONTEXT_OPEN: str = "<context>"
CONTEXT_CLOSE: str = "</context>"


# ══════════════════════════════════════════════════════════════════════
#  GENERATION PRESETS
# ══════════════════════════════════════════════════════════════════════

BLOCKING_OPTIONS = GenerationOptions(max_tokens=200, temperature=0.5, stop_sequences=(HUMAN_TURN,))

STREAMING_OPTIONS = GenerationOptions(max_tokens=300, temperature=0.8, stop_sequences=(HUMAN_TURN,))

# Deterministic: answers must be traceable to the retrieved context.
RETRIEVAL_OPTIONS = GenerationOptions(max_tokens=200, temperature=0.0)


# ══════════════════════════════════════════════════════════════════════
#  CALLER-FACING MESSAGES
# ══════════════════════════════════════════════════════════════════════

EMBEDDINGS_SAVED_CONFIRMATION: str = "Embeddings saved to database...!"
