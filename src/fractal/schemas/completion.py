"""Schemas for the chat-completion wire format."""

from pydantic import BaseModel, Field


class Message(BaseModel):
    """A single chat message."""

    role: str
    content: str


class CompletionRequest(BaseModel):
    """Request body sent to the completion service."""

    model: str
    messages: list[Message]


class ResponseMessage(BaseModel):
    """Message carried inside a completion choice."""

    role: str
    content: str


class Choice(BaseModel):
    """One candidate reply."""

    message: ResponseMessage


class CompletionResponse(BaseModel):
    """Response envelope returned by the completion service."""

    choices: list[Choice] = Field(description="Candidate replies, best first")
