from __future__ import annotations

from typing import Dict, List

SYSTEM_PREAMBLE = "You are an AI writing assistant that helps users improve their writing. "

TONE_DIRECTIVES: Dict[str, str] = {
    "formal": "Write in a formal, professional tone. Use proper grammar and avoid contractions or slang. ",
    "casual": "Write in a casual, conversational tone. Use contractions and everyday language. ",
    "persuasive": "Write in a persuasive tone. Use compelling arguments and emotional appeals. ",
    "informative": "Write in an informative tone. Focus on facts and clear explanations. ",
    "creative": "Write in a creative, expressive tone. Use vivid language and imagery. ",
}
NEUTRAL_DIRECTIVE = "Write in a balanced, neutral tone. "

CONTINUE_SEED = "Start writing something creative."

_ACTION_TEMPLATES: Dict[str, str] = {
    "continue": 'Continue the following text in a natural way, maintaining the same style and flow: "{text}"',
    "rewrite": 'Rewrite the following text to improve clarity and flow: "{text}"',
    "expand": 'Expand on the following text with more details and examples: "{text}"',
    "summarize": 'Summarize the following text concisely while preserving the key points: "{text}"',
}
_DEFAULT_TEMPLATE = 'Improve the following text: "{text}"'

TONES = tuple(TONE_DIRECTIVES)
ACTIONS = tuple(_ACTION_TEMPLATES)


def build_system_prompt(tone: str) -> str:
    return SYSTEM_PREAMBLE + TONE_DIRECTIVES.get(tone, NEUTRAL_DIRECTIVE)


def build_user_prompt(text: str, action: str, prompt: str = "") -> str:
    if action == "continue" and not text:
        text = CONTINUE_SEED
    template = _ACTION_TEMPLATES.get(action, _DEFAULT_TEMPLATE)
    user_prompt = template.format(text=text or "")
    if prompt and prompt.strip():
        user_prompt += f" Additional instructions: {prompt}"
    return user_prompt


def build_messages(prompt: str, text: str, tone: str, action: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": build_system_prompt(tone)},
        {"role": "user", "content": build_user_prompt(text, action, prompt)},
    ]
