"""API request schemas.

Response bodies reuse the domain models (``PipelineDefinition``) or are
server-sent event streams.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from pipeforge.daemon.models.config import RunConfig

WORKDIR_ID_PATTERN = r"^[A-Za-z0-9_-][A-Za-z0-9._-]*$"
"""Working directory ids: no separators, no leading dot (rules out ``..``)."""


class PipelineSource(BaseModel):
    """A pipeline config given inline or by ``file:`` / ``http(s):`` URI."""

    config: str | RunConfig = Field(description="Config URI or inline config document")


class WorkdirCopyRequest(BaseModel):
    """Replicate one working directory into another."""

    source: str = Field(pattern=WORKDIR_ID_PATTERN, description="Existing workdir id")
    target: str = Field(pattern=WORKDIR_ID_PATTERN, description="Destination workdir id")
