"""Command line flags shared by the device plugin and feature discovery."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from gpushareconf.common import ConfigError
from gpushareconf.duration import Duration


@dataclass
class CliContext:
    """Values of parsed command line flags, and which of them were set explicitly.

    ``values`` holds every flag's value, defaults included; ``set_names`` holds the
    names that were given on the command line or through the environment.
    """

    values: dict[str, Any] = field(default_factory=dict)
    set_names: set[str] = field(default_factory=set)

    def is_set(self, name: str) -> bool:
        """Return whether the flag was set explicitly."""
        return name in self.set_names

    def get(self, name: str) -> Any:
        """Return the flag's value, or None when the flag is unknown."""
        return self.values.get(name)


def parse_device_list_strategy(value) -> list[str]:
    """Accept a single strategy name or a list of names and return a list."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ConfigError(f"invalid deviceListStrategy: {json.dumps(value)}")


def _optional_str(data: Mapping, key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string, got {value!r}")
    return value


def _optional_bool(data: Mapping, key: str) -> bool | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be a boolean, got {value!r}")
    return value


def _require_mapping(data, what: str) -> Mapping:
    if not isinstance(data, Mapping):
        raise ConfigError(f"{what} must be a mapping, got {data!r}")
    return data


@dataclass
class PluginCommandLineFlags:
    """Flags specific to the device plugin."""

    pass_device_specs: bool | None = None
    device_list_strategy: list[str] | None = None
    device_id_strategy: str | None = None
    cdi_annotation_prefix: str | None = None
    nvidia_ctk_path: str | None = None
    container_driver_root: str | None = None

    @classmethod
    def from_dict(cls, data) -> PluginCommandLineFlags:
        """Build from a decoded mapping; missing or null keys stay unset."""
        data = _require_mapping(data, "plugin flags")
        strategy = data.get("deviceListStrategy")
        return cls(
            pass_device_specs=_optional_bool(data, "passDeviceSpecs"),
            device_list_strategy=(
                None if strategy is None else parse_device_list_strategy(strategy)
            ),
            device_id_strategy=_optional_str(data, "deviceIDStrategy"),
            cdi_annotation_prefix=_optional_str(data, "cdiAnnotationPrefix"),
            nvidia_ctk_path=_optional_str(data, "nvidiaCTKPath"),
            container_driver_root=_optional_str(data, "containerDriverRoot"),
        )

    def to_dict(self) -> dict:
        """Return the mapping form; unset fields are written as None."""
        return {
            "passDeviceSpecs": self.pass_device_specs,
            "deviceListStrategy": (
                None if self.device_list_strategy is None else list(self.device_list_strategy)
            ),
            "deviceIDStrategy": self.device_id_strategy,
            "cdiAnnotationPrefix": self.cdi_annotation_prefix,
            "nvidiaCTKPath": self.nvidia_ctk_path,
            "containerDriverRoot": self.container_driver_root,
        }


@dataclass
class GFDCommandLineFlags:
    """Flags specific to feature discovery."""

    oneshot: bool | None = None
    no_timestamp: bool | None = None
    sleep_interval: Duration | None = None
    output_file: str | None = None
    machine_type_file: str | None = None

    @classmethod
    def from_dict(cls, data) -> GFDCommandLineFlags:
        """Build from a decoded mapping; missing or null keys stay unset."""
        data = _require_mapping(data, "gfd flags")
        interval = data.get("sleepInterval")
        return cls(
            oneshot=_optional_bool(data, "oneshot"),
            no_timestamp=_optional_bool(data, "noTimestamp"),
            sleep_interval=None if interval is None else Duration.from_json(interval),
            output_file=_optional_str(data, "outputFile"),
            machine_type_file=_optional_str(data, "machineTypeFile"),
        )

    def to_dict(self) -> dict:
        """Return the mapping form; unset fields are written as None."""
        return {
            "oneshot": self.oneshot,
            "noTimestamp": self.no_timestamp,
            "sleepInterval": (
                None if self.sleep_interval is None else Duration(self.sleep_interval).to_json()
            ),
            "outputFile": self.output_file,
            "machineTypeFile": self.machine_type_file,
        }


def _as_str(value) -> str:
    return "" if value is None else str(value)


def _as_str_list(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


def _as_bool(value) -> bool:
    return bool(value)


def _as_duration(value) -> Duration:
    return Duration.from_json(0 if value is None else value)


_Converter = Callable[[Any], Any]

_COMMON_FLAGS: dict[str, tuple[str, _Converter]] = {
    "mig-strategy": ("mig_strategy", _as_str),
    "fail-on-init-error": ("fail_on_init_error", _as_bool),
    "mps-root": ("mps_root", _as_str),
    "driver-root": ("nvidia_driver_root", _as_str),
    "nvidia-driver-root": ("nvidia_driver_root", _as_str),
    "dev-root": ("nvidia_dev_root", _as_str),
    "nvidia-dev-root": ("nvidia_dev_root", _as_str),
    "gds-enabled": ("gds_enabled", _as_bool),
    "mofed-enabled": ("mofed_enabled", _as_bool),
    "use-node-feature-api": ("use_node_feature_api", _as_bool),
    "device-discovery-strategy": ("device_discovery_strategy", _as_str),
}

_PLUGIN_FLAGS: dict[str, tuple[str, _Converter]] = {
    "pass-device-specs": ("pass_device_specs", _as_bool),
    "device-list-strategy": ("device_list_strategy", _as_str_list),
    "device-id-strategy": ("device_id_strategy", _as_str),
    "cdi-annotation-prefix": ("cdi_annotation_prefix", _as_str),
    "nvidia-cdi-hook-path": ("nvidia_ctk_path", _as_str),
    "nvidia-ctk-path": ("nvidia_ctk_path", _as_str),
    "container-driver-root": ("container_driver_root", _as_str),
}

_GFD_FLAGS: dict[str, tuple[str, _Converter]] = {
    "oneshot": ("oneshot", _as_bool),
    "output-file": ("output_file", _as_str),
    "sleep-interval": ("sleep_interval", _as_duration),
    "no-timestamp": ("no_timestamp", _as_bool),
    "machine-type-file": ("machine_type_file", _as_str),
}


def _apply_flag(target, table, name: str, context: CliContext) -> None:
    entry = table.get(name)
    if entry is None:
        return
    attribute, convert = entry
    if context.is_set(name) or getattr(target, attribute) is None:
        setattr(target, attribute, convert(context.get(name)))


def _flag_aliases(flag) -> list[str]:
    if isinstance(flag, str):
        return [flag]
    return list(flag)


@dataclass
class Flags:
    """The full set of flags configuring the device plugin and feature discovery."""

    mig_strategy: str | None = None
    fail_on_init_error: bool | None = None
    mps_root: str | None = None
    nvidia_driver_root: str | None = None
    nvidia_dev_root: str | None = None
    gds_enabled: bool | None = None
    mofed_enabled: bool | None = None
    use_node_feature_api: bool | None = None
    device_discovery_strategy: str | None = None
    plugin: PluginCommandLineFlags | None = None
    gfd: GFDCommandLineFlags | None = None

    @classmethod
    def from_dict(cls, data) -> Flags:
        """Build from a decoded mapping; None gives empty flags."""
        if data is None:
            return cls()
        data = _require_mapping(data, "flags")
        plugin = data.get("plugin")
        gfd = data.get("gfd")
        return cls(
            mig_strategy=_optional_str(data, "migStrategy"),
            fail_on_init_error=_optional_bool(data, "failOnInitError"),
            mps_root=_optional_str(data, "mpsRoot"),
            nvidia_driver_root=_optional_str(data, "nvidiaDriverRoot"),
            nvidia_dev_root=_optional_str(data, "nvidiaDevRoot"),
            gds_enabled=_optional_bool(data, "gdsEnabled"),
            mofed_enabled=_optional_bool(data, "mofedEnabled"),
            use_node_feature_api=_optional_bool(data, "useNodeFeatureAPI"),
            device_discovery_strategy=_optional_str(data, "deviceDiscoveryStrategy"),
            plugin=None if plugin is None else PluginCommandLineFlags.from_dict(plugin),
            gfd=None if gfd is None else GFDCommandLineFlags.from_dict(gfd),
        )

    @classmethod
    def from_json(cls, text) -> Flags:
        """Build from JSON text."""
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise ConfigError(f"invalid JSON: {exc}") from exc
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        """Return the mapping form; optional sections are left out when unset."""
        result: dict = {
            "migStrategy": self.mig_strategy,
            "failOnInitError": self.fail_on_init_error,
        }
        if self.mps_root is not None:
            result["mpsRoot"] = self.mps_root
        if self.nvidia_driver_root is not None:
            result["nvidiaDriverRoot"] = self.nvidia_driver_root
        if self.nvidia_dev_root is not None:
            result["nvidiaDevRoot"] = self.nvidia_dev_root
        result["gdsEnabled"] = self.gds_enabled
        result["mofedEnabled"] = self.mofed_enabled
        result["useNodeFeatureAPI"] = self.use_node_feature_api
        result["deviceDiscoveryStrategy"] = self.device_discovery_strategy
        if self.plugin is not None:
            result["plugin"] = self.plugin.to_dict()
        if self.gfd is not None:
            result["gfd"] = self.gfd.to_dict()
        return result

    def to_json(self) -> str:
        """Return the JSON text form."""
        return json.dumps(self.to_dict())

    def update_from_cli_flags(self, context: CliContext, flag_names: Iterable) -> None:
        """Take values from the command line for each flag that is set or still unset here.

        Each entry of ``flag_names`` is a flag name or a sequence of its aliases.
        """
        for flag in flag_names:
            for name in _flag_aliases(flag):
                _apply_flag(self, _COMMON_FLAGS, name, context)
                if self.plugin is None:
                    self.plugin = PluginCommandLineFlags()
                _apply_flag(self.plugin, _PLUGIN_FLAGS, name, context)
                if self.gfd is None:
                    self.gfd = GFDCommandLineFlags()
                _apply_flag(self.gfd, _GFD_FLAGS, name, context)