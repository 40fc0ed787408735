"""Interface for completion clients."""

from typing import Protocol

from fractal.schemas.completion import CompletionRequest


class CompletionClientBase(Protocol):
    """
    Protocol/interface for completion clients.

    The orchestrator only depends on this, so tests can pass a stub.
    """

    async def complete(self, request: CompletionRequest) -> str:
        """
        Send a completion request and return the reply text.

        Args:
            request: Prompt payload built by PromptBuilder

        Returns:
            First choice content, trimmed of whitespace and wrapping quotes

        Raises:
            DeconstructionError: A classified failure
        """
        ...
