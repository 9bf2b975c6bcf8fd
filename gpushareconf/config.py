"""The versioned configuration and the ways to build it."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import yaml

from gpushareconf.common import ConfigError
from gpushareconf.flags import CliContext, Flags
from gpushareconf.imex import Imex
from gpushareconf.resources import Resources
from gpushareconf.sharing import Sharing

VERSION = "v1"


@dataclass
class Config:
    """A versioned configuration for the device plugin and feature discovery."""

    version: str = VERSION
    flags: Flags = field(default_factory=Flags)
    resources: Resources = field(default_factory=Resources)
    sharing: Sharing = field(default_factory=Sharing)
    imex: Imex = field(default_factory=Imex)

    @classmethod
    def from_dict(cls, data) -> Config:
        """Build from a decoded mapping; a missing version means the current one."""
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigError(f"config must be a mapping, got {data!r}")
        version = data.get("version")
        if version is None or version == "":
            version = VERSION
        if not isinstance(version, str):
            raise ConfigError(f"version must be a string, got {version!r}")
        resources = data.get("resources")
        sharing = data.get("sharing")
        imex = data.get("imex")
        return cls(
            version=version,
            flags=Flags.from_dict(data.get("flags")),
            resources=Resources() if resources is None else Resources.from_dict(resources),
            sharing=Sharing() if sharing is None else Sharing.from_dict(sharing),
            imex=Imex() if imex is None else Imex.from_dict(imex),
        )

    def to_dict(self) -> dict:
        """Return the mapping form."""
        return {
            "version": self.version,
            "flags": self.flags.to_dict(),
            "resources": self.resources.to_dict(),
            "sharing": self.sharing.to_dict(),
            "imex": self.imex.to_dict(),
        }


def parse_config_from(stream) -> Config:
    """Read a YAML or JSON config from a text or binary stream."""
    try:
        content = stream.read()
    except OSError as exc:
        raise ConfigError(f"read error: {exc}") from exc
    try:
        data = yaml.safe_load(content)
        config = Config.from_dict(data)
    except (yaml.YAMLError, ConfigError) as exc:
        raise ConfigError(f"unmarshal error: {exc}") from exc
    if config.version != VERSION:
        raise ConfigError(f"unknown version: {config.version}")
    return config


def parse_config(path) -> Config:
    """Read a YAML or JSON config file."""
    try:
        stream = open(path, "rb")
    except OSError as exc:
        raise ConfigError(f"error opening config file: {exc}") from exc
    with stream:
        try:
            return parse_config_from(stream)
        except ConfigError as exc:
            raise ConfigError(f"error parsing config file: {exc}") from exc


def new_config(context: CliContext, flag_names: Iterable) -> Config:
    """Build a config from the config file, the environment and the command line.

    Command line values take precedence over environment values, which take
    precedence over the config file.
    """
    config = Config()
    config_file = context.get("config-file")
    if config_file:
        try:
            config = parse_config(config_file)
        except ConfigError as exc:
            raise ConfigError(f"unable to parse config file: {exc}") from exc

    config.flags.update_from_cli_flags(context, flag_names)
    if context.is_set("imex-channel-ids"):
        config.imex.channel_ids = [int(i) for i in context.get("imex-channel-ids") or []]
    if context.is_set("imex-required"):
        config.imex.required = bool(context.get("imex-required"))

    # Device nodes default to the driver root on the host.
    if not config.flags.nvidia_dev_root:
        config.flags.nvidia_dev_root = config.flags.nvidia_driver_root

    # Combining requests for more than one shared device is not supported with MPS.
    if config.sharing.mps is not None:
        config.sharing.mps.fail_requests_greater_than_one = True

    return config


def disable_resource_naming_in_config(logger, config: Config) -> None:
    """Drop custom resource names and device selections, warning when any were set."""
    if config.resources.gpus or config.resources.migs:
        logger.warning(
            "Customizing the 'resources' field is not yet supported in the config. Ignoring..."
        )
    config.resources.gpus = []
    config.resources.migs = []

    config.sharing.time_slicing.disable_resource_renaming(logger, "timeSlicing")
    if config.sharing.mps is not None:
        config.sharing.mps.disable_resource_renaming(logger, "mps")