"""Pipeline configuration document.

The wire shape is::

    {
        "name": "mnist",
        "plugins": {
            "dataCollect": {"package": "@scope/collector", "params": {"url": "..."}},
            "modelTrain": {"package": "trainer"}
        }
    }

Each of the seven slots in ``PluginType`` is optional; an absent slot is
``None`` on the model.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pipeforge.daemon.models.enums import PluginType


class PluginSpec(BaseModel):
    """One plugin slot: a package reference and its parameters."""

    package: str
    params: dict[str, Any] | None = None

    @property
    def is_local_path(self) -> bool:
        """True for absolute paths and ``./``, ``../`` style references."""
        return os.path.isabs(self.package) or self.package.startswith(".")


class PluginsConfig(BaseModel):
    """The seven plugin slots.  Unknown slot names are rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        protected_namespaces=(),
    )

    data_collect: PluginSpec | None = None
    data_access: PluginSpec | None = None
    data_process: PluginSpec | None = None
    dataset_process: PluginSpec | None = None
    model_define: PluginSpec | None = None
    model_train: PluginSpec | None = None
    model_evaluate: PluginSpec | None = None

    def get(self, slot: PluginType) -> PluginSpec | None:
        return getattr(self, slot.field_name)

    def present(self) -> Iterator[tuple[PluginType, PluginSpec]]:
        """Yield populated slots in execution order."""
        for slot in PluginType:
            spec = self.get(slot)
            if spec is not None:
                yield slot, spec


class RunConfig(BaseModel):
    """A named pipeline configuration document."""

    name: str
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
