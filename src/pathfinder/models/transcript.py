"""Transcript models — what clients render.

A conversation transcript is an append-only list of ``Turn`` objects.  System
turns may carry ``Option`` buttons; activating one echoes its label as a new
user turn and feeds its ``Action`` into the engine.

Handlers never build ``Turn`` objects directly: they return ``Reply`` drafts
and the engine stamps ids and timestamps when appending them.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from pathfinder.models.action import Action

Sender = Literal["system", "user"]
Priority = Literal["primary", "secondary"]


class Option(BaseModel):
    """A visible label paired with its routing action."""

    model_config = ConfigDict(frozen=True)

    label: str
    action: Action
    priority: Priority = "primary"


class Source(BaseModel):
    """A web page the search-grounded chat answer was attributed to."""

    model_config = ConfigDict(frozen=True)

    uri: str
    title: str


class Reply(BaseModel):
    """A system turn that has not been appended to the transcript yet."""

    content: str
    options: list[Option] = Field(default_factory=list)
    sources: list[Source] = Field(default_factory=list)


class Turn(BaseModel):
    """One immutable transcript entry."""

    model_config = ConfigDict(frozen=True)

    id: int
    content: str
    sender: Sender
    created_at: datetime
    options: list[Option] = Field(default_factory=list)
    sources: list[Source] = Field(default_factory=list)


class ChatAnswer(BaseModel):
    """A search-grounded chat answer and the web sources it cites."""

    text: str
    sources: list[Source] = Field(default_factory=list)
