"""Shared enumerations used across the daemon."""

from __future__ import annotations

from enum import StrEnum

from pydantic.alias_generators import to_snake

# -- Plugins -----------------------------------------------------------------


class PluginType(StrEnum):
    """Pipeline plugin slots, valued by their wire (camelCase) names.

    Declaration order is execution order.
    """

    DATA_COLLECT = "dataCollect"
    DATA_ACCESS = "dataAccess"
    DATA_PROCESS = "dataProcess"
    DATASET_PROCESS = "datasetProcess"
    MODEL_DEFINE = "modelDefine"
    MODEL_TRAIN = "modelTrain"
    MODEL_EVALUATE = "modelEvaluate"

    @property
    def field_name(self) -> str:
        """Python attribute name, e.g. ``data_collect``."""
        return to_snake(self.value)


# -- Streaming ---------------------------------------------------------------


class EventType(StrEnum):
    """Server-sent event names emitted by the daemon."""

    SESSION = "session"

    INSTALL_START = "install:start"
    INSTALL_DONE = "install:done"
    INSTALL_ERROR = "install:error"
    INSTALL_SKIP = "install:skip"

    COPY_START = "copy:start"
    COPY_DONE = "copy:done"
    COPY_ERROR = "copy:error"


class SessionState(StrEnum):
    """Payload of the ``session`` event that brackets every stream."""

    START = "start"
    CLOSE = "close"
