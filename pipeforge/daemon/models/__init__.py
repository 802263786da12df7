"""Data models for the pipeline daemon."""

from pipeforge.daemon.models.api import PipelineSource, WorkdirCopyRequest
from pipeforge.daemon.models.config import PluginsConfig, PluginSpec, RunConfig
from pipeforge.daemon.models.enums import EventType, PluginType, SessionState
from pipeforge.daemon.models.pipeline import PipelineDefinition

__all__ = [
    "EventType",
    "PipelineDefinition",
    "PipelineSource",
    "PluginSpec",
    "PluginType",
    "PluginsConfig",
    "RunConfig",
    "SessionState",
    "WorkdirCopyRequest",
]
