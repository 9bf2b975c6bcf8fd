"""The set of strategies used to pass the device list to the container runtime."""

from __future__ import annotations

from collections.abc import Iterable

from gpushareconf.common import (
    DEVICE_LIST_STRATEGY_CDI_ANNOTATIONS,
    DEVICE_LIST_STRATEGY_CDI_CRI,
    DEVICE_LIST_STRATEGY_ENVVAR,
    DEVICE_LIST_STRATEGY_VOLUME_MOUNTS,
    ConfigError,
)

_ALL_STRATEGIES = (
    DEVICE_LIST_STRATEGY_ENVVAR,
    DEVICE_LIST_STRATEGY_VOLUME_MOUNTS,
    DEVICE_LIST_STRATEGY_CDI_ANNOTATIONS,
    DEVICE_LIST_STRATEGY_CDI_CRI,
)


class DeviceListStrategies(dict):
    """Maps each known strategy to whether it is enabled."""

    def includes(self, strategy: str) -> bool:
        """Return whether the strategy is enabled."""
        return bool(self.get(strategy, False))

    def any_cdi_enabled(self) -> bool:
        """Return whether any enabled strategy requires CDI."""
        return any(enabled for name, enabled in self.items() if name.startswith("cdi-"))

    def all_cdi_enabled(self) -> bool:
        """Return whether every enabled strategy requires CDI."""
        return all(name.startswith("cdi-") for name, enabled in self.items() if enabled)


def new_device_list_strategies(strategies: Iterable[str]) -> DeviceListStrategies:
    """Build the strategy set, enabling the named strategies."""
    result = dict.fromkeys(_ALL_STRATEGIES, False)
    for strategy in strategies:
        if strategy not in result:
            raise ConfigError(f"invalid strategy: {strategy}")
        result[strategy] = True
    return DeviceListStrategies(result)