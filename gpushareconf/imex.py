"""Configuration of IMEX channels for fabric-attached devices."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from gpushareconf.common import ConfigError

IMEX_CHANNEL_ENV_VAR = "NVIDIA_IMEX_CHANNELS"


class InvalidImexConfigError(ConfigError):
    """Raised when the IMEX configuration holds unsupported values."""


def assert_channel_ids_valid(ids) -> None:
    """Raise InvalidImexConfigError unless ids is empty, None or [0]."""
    if not ids:
        return
    if list(ids) == [0]:
        return
    raise InvalidImexConfigError(
        f"invalid IMEX config: channelIDs must be [] or [0]; found {list(ids)}"
    )


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class Imex:
    """Channel IDs to inject into containers, and whether they must exist."""

    channel_ids: list[int] | None = None
    required: bool = False

    @classmethod
    def from_dict(cls, data) -> Imex:
        """Build from a decoded mapping with optional channelIDs and required keys."""
        if not isinstance(data, Mapping):
            raise ConfigError(f"imex config must be a mapping, got {data!r}")
        raw_ids = data.get("channelIDs")
        channel_ids = None
        if raw_ids is not None:
            if not isinstance(raw_ids, list) or not all(_is_int(i) for i in raw_ids):
                raise ConfigError(f"channelIDs must be a list of integers, got {raw_ids!r}")
            channel_ids = list(raw_ids)
        required = data.get("required")
        if required is None:
            required = False
        if not isinstance(required, bool):
            raise ConfigError(f"required must be a boolean, got {required!r}")
        return cls(channel_ids=channel_ids, required=required)

    def to_dict(self) -> dict:
        """Return the mapping form, leaving out empty fields."""
        result: dict = {}
        if self.channel_ids:
            result["channelIDs"] = list(self.channel_ids)
        if self.required:
            result["required"] = True
        return result