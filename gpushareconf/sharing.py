"""The set of supported sharing strategies and the active one."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from gpushareconf.common import ConfigError
from gpushareconf.replicas import ReplicatedResources


class SharingStrategy(str, Enum):
    """How devices are shared between containers."""

    MPS = "mps"
    NONE = "none"
    TIME_SLICING = "time-slicing"


@dataclass
class Sharing:
    """Time-slicing and MPS replication settings."""

    time_slicing: ReplicatedResources = field(default_factory=ReplicatedResources)
    mps: ReplicatedResources | None = None

    def sharing_strategy(self) -> SharingStrategy:
        """Return the active sharing strategy; MPS takes precedence over time-slicing."""
        if self.mps is not None and self.mps.is_replicated():
            return SharingStrategy.MPS
        if self.time_slicing.is_replicated():
            return SharingStrategy.TIME_SLICING
        return SharingStrategy.NONE

    def replicated_resources(self) -> ReplicatedResources:
        """Return the replicated resources of the active strategy."""
        if self.mps is not None:
            return self.mps
        return self.time_slicing

    @classmethod
    def from_dict(cls, data) -> Sharing:
        """Build from a mapping with optional 'timeSlicing' and 'mps' sections."""
        if not isinstance(data, Mapping):
            raise ConfigError(f"sharing must be a mapping, got {data!r}")
        time_slicing = ReplicatedResources()
        if "timeSlicing" in data:
            time_slicing = ReplicatedResources.from_dict(data["timeSlicing"])
        mps = None
        if data.get("mps") is not None:
            mps = ReplicatedResources.from_dict(data["mps"])
        return cls(time_slicing=time_slicing, mps=mps)

    def to_dict(self) -> dict:
        """Return the mapping form, leaving out unset sections."""
        result: dict = {}
        time_slicing = self.time_slicing.to_dict()
        if time_slicing:
            result["timeSlicing"] = time_slicing
        if self.mps is not None:
            result["mps"] = self.mps.to_dict()
        return result