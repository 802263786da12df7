"""Flattened pipeline definition consumed by the execution engine."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from pipeforge.daemon.models.config import RunConfig
from pipeforge.daemon.models.enums import PluginType


class PipelineDefinition(BaseModel):
    """One ``<slot>`` / ``<slot>_params`` pair per plugin slot.

    Both fields are ``None`` when the slot is absent from the source config.
    Serialises with camelCase aliases (``dataCollect``, ``dataCollectParams``).
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )

    name: str

    data_collect: str | None = None
    data_collect_params: dict[str, Any] | None = None

    data_access: str | None = None
    data_access_params: dict[str, Any] | None = None

    data_process: str | None = None
    data_process_params: dict[str, Any] | None = None

    dataset_process: str | None = None
    dataset_process_params: dict[str, Any] | None = None

    model_define: str | None = None
    model_define_params: dict[str, Any] | None = None

    model_train: str | None = None
    model_train_params: dict[str, Any] | None = None

    model_evaluate: str | None = None
    model_evaluate_params: dict[str, Any] | None = None

    @classmethod
    def from_config(cls, config: RunConfig) -> PipelineDefinition:
        fields: dict[str, Any] = {"name": config.name}
        for slot in PluginType:
            spec = config.plugins.get(slot)
            fields[slot.field_name] = spec.package if spec else None
            fields[f"{slot.field_name}_params"] = spec.params if spec else None
        return cls(**fields)

    def package(self, slot: PluginType) -> str | None:
        return getattr(self, slot.field_name)

    def params(self, slot: PluginType) -> dict[str, Any] | None:
        return getattr(self, f"{slot.field_name}_params")

    def plugins(self) -> Iterator[tuple[PluginType, str, dict[str, Any] | None]]:
        """Yield ``(slot, package, params)`` for defined slots in execution order."""
        for slot in PluginType:
            package = self.package(slot)
            if package is not None:
                yield slot, package, self.params(slot)
