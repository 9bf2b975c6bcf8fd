import io

import pytest

from gpushareconf.common import ConfigError
from gpushareconf.config import (
    VERSION,
    Config,
    disable_resource_naming_in_config,
    new_config,
    parse_config,
    parse_config_from,
)
from gpushareconf.flags import CliContext
from gpushareconf.resources import ResourceName
from gpushareconf.sharing import SharingStrategy

_TIME_SLICING_YAML = """\
version: v1
flags:
  migStrategy: mixed
sharing:
  timeSlicing:
    resources:
    - name: gpu
      replicas: 4
"""

_MPS_YAML = """\
version: v1
flags:
  nvidiaDriverRoot: /run/nvidia/driver
sharing:
  mps:
    resources:
    - name: gpu
      replicas: 2
"""


class _RecordingLogger:
    def __init__(self):
        self.messages = []

    def warning(self, message, *args):
        self.messages.append(message % args if args else message)


def test_parse_config_from_yaml():
    config = parse_config_from(io.StringIO(_TIME_SLICING_YAML))
    assert config.version == VERSION
    assert config.flags.mig_strategy == "mixed"
    assert config.sharing.sharing_strategy() == SharingStrategy.TIME_SLICING
    resource = config.sharing.time_slicing.resources[0]
    assert resource.name == "nvidia.com/gpu"
    assert resource.replicas == 4


def test_parse_config_from_json_bytes():
    config = parse_config_from(io.BytesIO(b'{"flags": {"migStrategy": "single"}}'))
    assert config.version == VERSION
    assert config.flags.mig_strategy == "single"


def test_parse_config_from_empty_gives_defaults():
    assert parse_config_from(io.StringIO("")) == Config()


def test_parse_config_from_unknown_version():
    with pytest.raises(ConfigError, match="unknown version: v2"):
        parse_config_from(io.StringIO("version: v2\n"))


def test_parse_config_from_invalid_content():
    with pytest.raises(ConfigError, match="unmarshal error"):
        parse_config_from(io.StringIO("sharing:\n  timeSlicing: {}\n"))


def test_parse_config_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="error opening config file"):
        parse_config(tmp_path / "missing.yaml")


def test_parse_config_reads_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(_TIME_SLICING_YAML)
    assert parse_config(path) == parse_config_from(io.StringIO(_TIME_SLICING_YAML))


def test_round_trip_through_dict():
    config = parse_config_from(io.StringIO(_MPS_YAML))
    assert Config.from_dict(config.to_dict()) == config


def test_new_config_from_file_sets_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(_MPS_YAML)
    context = CliContext(values={"config-file": str(path)})
    config = new_config(context, [])
    assert config.flags.nvidia_dev_root == config.flags.nvidia_driver_root
    assert config.flags.nvidia_driver_root == "/run/nvidia/driver"
    assert config.sharing.mps.fail_requests_greater_than_one is True
    assert config.sharing.sharing_strategy() == SharingStrategy.MPS


def test_new_config_bad_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("version: v2\n")
    with pytest.raises(ConfigError, match="unable to parse config file"):
        new_config(CliContext(values={"config-file": str(path)}), [])


def test_new_config_command_line_overrides_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(_TIME_SLICING_YAML)
    context = CliContext(
        values={"config-file": str(path), "mig-strategy": "single", "imex-channel-ids": [0]},
        set_names={"mig-strategy", "imex-channel-ids"},
    )
    config = new_config(context, ["mig-strategy"])
    assert config.flags.mig_strategy == "single"
    assert config.imex.channel_ids == [0]
    assert config.imex.required is False


def test_new_config_without_file():
    context = CliContext(
        values={"driver-root": "/", "imex-required": True}, set_names={"imex-required"}
    )
    config = new_config(context, ["driver-root"])
    assert config.version == VERSION
    assert config.flags.nvidia_driver_root == "/"
    assert config.flags.nvidia_dev_root == "/"
    assert config.imex.required is True
    assert config.sharing.mps is None


def test_disable_resource_naming_in_config():
    config = Config.from_dict(
        {
            "resources": {"gpus": [{"pattern": "*", "name": "gpu"}]},
            "sharing": {
                "timeSlicing": {
                    "resources": [
                        {"name": "gpu", "replicas": 2, "rename": "renamed", "devices": 2}
                    ]
                }
            },
        }
    )
    logger = _RecordingLogger()
    disable_resource_naming_in_config(logger, config)
    assert config.resources.gpus == []
    assert config.resources.migs == []
    resource = config.sharing.time_slicing.resources[0]
    assert resource.rename == ResourceName("")
    assert resource.devices.all is True
    assert len(logger.messages) == 3
    assert any("sharing.timeSlicing.resources" in m for m in logger.messages)


def test_disable_resource_naming_without_customisation_is_silent():
    config = parse_config_from(io.StringIO(_MPS_YAML))
    logger = _RecordingLogger()
    disable_resource_naming_in_config(logger, config)
    assert logger.messages == []
    assert config.sharing.mps.resources[0].devices.all is True