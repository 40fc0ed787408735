"""Prompt construction for goal deconstruction."""

from fractal.core.config import DEFAULT_MODEL
from fractal.schemas.completion import CompletionRequest, Message

SYSTEM_PROMPT = """You are an expert in breaking down huge, intimidating goals into laughably simple first steps.
The user will give you a goal. Your response MUST BE a numbered list of the first 3-5 tiny, sequential steps.
Each step must be on a new line. Do not add any extra text, explanations, or pleasantries.
Example response for goal "Learn to bake bread":
1. Watch a 5-minute video on "no-knead bread".
2. Buy a bag of flour.
3. Find a large bowl in your kitchen."""


class PromptBuilder:
    """Turns a goal title into a completion request."""

    def __init__(self, model: str = DEFAULT_MODEL, system_prompt: str = SYSTEM_PROMPT):
        self.model = model
        self.system_prompt = system_prompt

    def build_request(self, goal_title: str) -> CompletionRequest:
        """Build the request; the title is sent verbatim as the user message."""
        return CompletionRequest(
            model=self.model,
            messages=[
                Message(role="system", content=self.system_prompt),
                Message(role="user", content=goal_title),
            ],
        )
