import json

import pytest

from gpushareconf.common import ConfigError
from gpushareconf.duration import Duration, SECOND
from gpushareconf.flags import (
    CliContext,
    Flags,
    GFDCommandLineFlags,
    PluginCommandLineFlags,
    parse_device_list_strategy,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("{}", Flags()),
        ('{"gfd": {}}', Flags(gfd=GFDCommandLineFlags())),
        ('{"gfd": {"sleepInterval": 0}}', Flags(gfd=GFDCommandLineFlags(sleep_interval=Duration(0)))),
        ('{"gfd": {"sleepInterval": "0s"}}', Flags(gfd=GFDCommandLineFlags(sleep_interval=Duration(0)))),
        ('{"gfd": {"sleepInterval": 5}}', Flags(gfd=GFDCommandLineFlags(sleep_interval=Duration(5)))),
        (
            '{"gfd": {"sleepInterval": "5s"}}',
            Flags(gfd=GFDCommandLineFlags(sleep_interval=Duration(5 * SECOND))),
        ),
        (
            '{"plugin": {"deviceListStrategy": "envvar"}}',
            Flags(plugin=PluginCommandLineFlags(device_list_strategy=["envvar"])),
        ),
        (
            '{"plugin": {"deviceListStrategy": ["envvar", "cdi-annotations"]}}',
            Flags(plugin=PluginCommandLineFlags(device_list_strategy=["envvar", "cdi-annotations"])),
        ),
    ],
)
def test_unmarshal_flags(text, expected):
    assert Flags.from_json(text) == expected


def test_unmarshal_empty_input_fails():
    with pytest.raises(ConfigError):
        Flags.from_json("")


def test_unmarshal_wrong_type_fails():
    with pytest.raises(ConfigError):
        Flags.from_json('{"migStrategy": 3}')


def test_unmarshal_invalid_device_list_strategy_fails():
    with pytest.raises(ConfigError, match="invalid deviceListStrategy"):
        Flags.from_json('{"plugin": {"deviceListStrategy": 7}}')


_EMPTY_MARSHALLED = {
    "migStrategy": None,
    "failOnInitError": None,
    "gdsEnabled": None,
    "mofedEnabled": None,
    "useNodeFeatureAPI": None,
    "deviceDiscoveryStrategy": None,
}


@pytest.mark.parametrize(
    "flags, expected",
    [
        (Flags(), _EMPTY_MARSHALLED),
        (
            Flags(gfd=GFDCommandLineFlags(sleep_interval=Duration(0))),
            {
                **_EMPTY_MARSHALLED,
                "gfd": {
                    "oneshot": None,
                    "noTimestamp": None,
                    "outputFile": None,
                    "sleepInterval": "0s",
                    "machineTypeFile": None,
                },
            },
        ),
        (
            Flags(gfd=GFDCommandLineFlags(sleep_interval=Duration(5))),
            {
                **_EMPTY_MARSHALLED,
                "gfd": {
                    "oneshot": None,
                    "noTimestamp": None,
                    "outputFile": None,
                    "sleepInterval": "5ns",
                    "machineTypeFile": None,
                },
            },
        ),
    ],
)
def test_marshal_flags(flags, expected):
    assert json.loads(flags.to_json()) == expected


def test_round_trip_through_json():
    flags = Flags(
        mig_strategy="mixed",
        nvidia_driver_root="/",
        plugin=PluginCommandLineFlags(device_list_strategy=["envvar"], pass_device_specs=True),
        gfd=GFDCommandLineFlags(sleep_interval=Duration(5 * SECOND), oneshot=False),
    )
    assert Flags.from_json(flags.to_json()) == flags


def test_parse_device_list_strategy():
    assert parse_device_list_strategy("envvar") == ["envvar"]
    assert parse_device_list_strategy(["envvar", "cdi-cri"]) == ["envvar", "cdi-cri"]
    with pytest.raises(ConfigError):
        parse_device_list_strategy({"a": 1})


def test_cli_context():
    context = CliContext(values={"mig-strategy": "single"}, set_names={"mig-strategy"})
    assert context.is_set("mig-strategy")
    assert not context.is_set("oneshot")
    assert context.get("mig-strategy") == "single"
    assert context.get("unknown") is None


def test_update_sets_explicit_flags_over_existing_values():
    flags = Flags(mig_strategy="none")
    context = CliContext(values={"mig-strategy": "single"}, set_names={"mig-strategy"})
    flags.update_from_cli_flags(context, ["mig-strategy"])
    assert flags.mig_strategy == "single"


def test_update_keeps_existing_values_when_flag_not_set():
    flags = Flags(mig_strategy="mixed")
    context = CliContext(values={"mig-strategy": "none"})
    flags.update_from_cli_flags(context, ["mig-strategy"])
    assert flags.mig_strategy == "mixed"


def test_update_fills_unset_values_from_defaults():
    flags = Flags()
    context = CliContext(
        values={
            "mig-strategy": "none",
            "fail-on-init-error": True,
            "device-list-strategy": ["envvar"],
            "sleep-interval": "60s",
        }
    )
    flags.update_from_cli_flags(
        context, ["mig-strategy", "fail-on-init-error", "device-list-strategy", "sleep-interval"]
    )
    assert flags.mig_strategy == "none"
    assert flags.fail_on_init_error is True
    assert flags.plugin.device_list_strategy == ["envvar"]
    assert flags.gfd.sleep_interval == 60 * SECOND


def test_update_creates_plugin_and_gfd_sections():
    flags = Flags()
    flags.update_from_cli_flags(CliContext(values={"mig-strategy": "none"}), ["mig-strategy"])
    assert flags.plugin == PluginCommandLineFlags()
    assert flags.gfd == GFDCommandLineFlags()


def test_update_with_aliases():
    flags = Flags()
    context = CliContext(
        values={"driver-root": "/run/nvidia/driver", "nvidia-driver-root": "/run/nvidia/driver"},
        set_names={"driver-root"},
    )
    flags.update_from_cli_flags(context, [("driver-root", "nvidia-driver-root")])
    assert flags.nvidia_driver_root == "/run/nvidia/driver"


def test_update_ignores_unknown_flags():
    flags = Flags(mig_strategy="mixed")
    context = CliContext(values={"verbose": True}, set_names={"verbose"})
    flags.update_from_cli_flags(context, ["verbose"])
    assert flags.mig_strategy == "mixed"
    assert flags.nvidia_driver_root is None