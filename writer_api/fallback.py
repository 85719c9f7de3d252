from __future__ import annotations

# Substring that marks placeholder output; callers grep for it to detect demo mode.
DEMO_MARKER = "[Demo Mode:"
DEMO_TAG = "[Demo Mode: This is generated without using the OpenAI API]"

SEED_SENTENCE = "The quick brown fox jumps over the lazy dog."

_CONTINUATION = (
    " Meanwhile, the clever rabbit watched from a distance, contemplating the scene with amusement."
    " The forest was alive with activity as other creatures went about their daily routines. "
)
_REWRITE = (
    "A swift auburn fox leaped over a dormant canine. The agile creature gracefully bounded across,"
    " while the indolent dog remained motionless, unaware of the acrobatic display happening above. "
)
_EXPANSION = (
    " The fox, with its vibrant reddish-orange fur gleaming in the sunlight, demonstrated remarkable agility"
    " as it gracefully soared through the air. The dog, a large brown hound with droopy ears, lay peacefully"
    " in the warm grass, completely oblivious to the athletic prowess being displayed mere inches above its head."
    " This scene took place at the edge of a meadow, where the tall grass swayed gently in the summer breeze. "
)
_SUMMARY = "An agile fox jumped over a resting dog. "


def generate_demo_text(text: str, action: str) -> str:
    """Placeholder output for when the model provider can't be used.

    continue/expand build on the caller's text, rewrite/summarize replace it
    with canned prose. Always ends with DEMO_TAG.
    """
    base = text or SEED_SENTENCE
    if action == "continue":
        return base + _CONTINUATION + DEMO_TAG
    if action == "expand":
        return base + _EXPANSION + DEMO_TAG
    if action == "rewrite":
        return _REWRITE + DEMO_TAG
    if action == "summarize":
        return _SUMMARY + DEMO_TAG
    return SEED_SENTENCE + " " + DEMO_TAG


def is_demo_text(text: str | None) -> bool:
    return bool(text) and DEMO_MARKER in text
