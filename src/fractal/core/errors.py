"""Classified failures of the goal-deconstruction pipeline."""

from typing import Optional


class DeconstructionError(Exception):
    """Base class for every failure surfaced by the pipeline."""

    kind = "unknown"
    user_message = "Something went wrong. Please try again."

    def __init__(self, detail: Optional[str] = None, cause: Optional[BaseException] = None):
        self.detail = detail
        self.cause = cause
        super().__init__(detail or self.user_message)


class MissingCredentialError(DeconstructionError):
    kind = "missing_credential"
    user_message = "API Key is missing. Please add it to your secrets file."


class InvalidEndpointError(DeconstructionError):
    kind = "invalid_endpoint"
    user_message = "The API endpoint URL is invalid."


class EncodingFailedError(DeconstructionError):
    kind = "encoding_failed"
    user_message = "Failed to build the request for the server."


class RequestFailedError(DeconstructionError):
    """Transport failure or non-2xx status; the cause is kept for diagnostics."""

    kind = "request_failed"
    user_message = "The network request failed. Check your connection."


class DecodingFailedError(DeconstructionError):
    kind = "decoding_failed"
    user_message = "Failed to process the response from the server."


class NoContentError(DeconstructionError):
    kind = "no_content"
    user_message = "The AI returned no content. Please try again."


class ParsingFailedError(DeconstructionError):
    kind = "parsing_failed"
    user_message = "Could not parse the steps from the AI's response."
