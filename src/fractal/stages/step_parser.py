"""Step parsing stage: numbered-list reply text into ordered steps."""

import re

from fractal.core.errors import ParsingFailedError

# Anchored to line start so digits inside a step are never touched
ORDINAL_MARKER = re.compile(r"^\d+\.\s*")


class StepParser:
    """Converts raw completion text into an ordered list of step strings."""

    def parse(self, raw: str) -> list[str]:
        """
        Parse a numbered list into steps.

        Blank lines are dropped and a leading "N." marker is stripped from each
        line; unnumbered lines pass through unchanged.

        Args:
            raw: Reply text from the completion service

        Returns:
            Steps in their original order

        Raises:
            ParsingFailedError: If no non-blank lines remain
        """
        steps = []
        for line in raw.split("\n"):
            line = line.strip()
            if not line:
                continue
            step = ORDINAL_MARKER.sub("", line, count=1)
            # A bare "4." carries no step
            if step:
                steps.append(step)

        if not steps:
            raise ParsingFailedError(f"No steps found in response: {raw[:200]!r}")
        return steps
