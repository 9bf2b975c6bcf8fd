# gpushareconf

`gpushareconf` reads and validates the versioned configuration file used by a
GPU device plugin and its feature-discovery companion on Kubernetes nodes.
It reads YAML or JSON, merges command-line settings over file settings, and
describes how GPUs are shared between containers (time-slicing or MPS).

Install with its test extra to run the tests:

```
pip install gpushareconf[test]
pytest
```

## Modules

- `gpushareconf.config` – `Config` (with `from_dict` / `to_dict`),
  `parse_config(path)`, `parse_config_from(stream)`, `new_config(context,
  flag_names)` and `disable_resource_naming_in_config(logger, config)`.
  Only version `v1` is accepted; a missing or empty version is taken as `v1`,
  any other version raises `ConfigError`.
- `gpushareconf.flags` – `Flags`, `PluginCommandLineFlags`,
  `GFDCommandLineFlags`, `CliContext` and `parse_device_list_strategy`.
  Unset flags are `None`; `Flags.to_dict()` / `Flags.to_json()` write them as
  `null`.
- `gpushareconf.resources` – `ResourceName`, `ResourcePattern`, `Resource`,
  `Resources`, `new_resource_name`, `new_resource`, `wildcard_to_regexp`.
- `gpushareconf.replicas` – `ReplicatedDeviceRef`, `ReplicatedDevices`,
  `ReplicatedResource`, `ReplicatedResources`.
- `gpushareconf.sharing` – `Sharing` and the `SharingStrategy` enum
  (`mps`, `time-slicing`, `none`).
- `gpushareconf.strategy` – `DeviceListStrategies` and
  `new_device_list_strategies`.
- `gpushareconf.imex` – `Imex`, `assert_channel_ids_valid`,
  `InvalidImexConfigError`.
- `gpushareconf.duration` – `Duration`, `parse_duration`, `format_duration`.
- `gpushareconf.common` – shared constants and `ConfigError`.

## Loading a config file

```python
from gpushareconf.config import parse_config
from gpushareconf.sharing import SharingStrategy

config = parse_config("/etc/gpu-sharing/config.yaml")

if config.sharing.sharing_strategy() == SharingStrategy.TIME_SLICING:
    for resource in config.sharing.replicated_resources().resources:
        print(resource.name, resource.replicas)
```

A minimal configuration file:

```yaml
version: v1
flags:
  migStrategy: none
sharing:
  timeSlicing:
    resources:
      - name: nvidia.com/gpu
        replicas: 4
```

MPS takes precedence over time-slicing when both replicate resources.
A replicated resource needs `name` and `replicas` (at least 2); `devices`
defaults to `"all"` and may also be a positive count or a list of GPU indices
(`"0"`), MIG indices (`"0:1"`), GPU UUIDs (`GPU-<uuid>`) or MIG UUIDs
(`MIG-<uuid>` or `MIG-GPU-<uuid>/<gi>/<ci>`). With `renameByDefault: true`,
resources without a `rename` get `<name>.shared`.

## Merging command-line values

`CliContext` holds the values of already-parsed flags (defaults included) and
the names that were set explicitly. `new_config` reads the file named by the
`config-file` value, if any, then for each listed flag takes the command-line
value when the flag was set explicitly or the file left it unset. A flag may
be given as a name or as a tuple of aliases.

```python
from gpushareconf.config import new_config
from gpushareconf.flags import CliContext

context = CliContext(
    values={"mig-strategy": "single", "driver-root": "/run/driver"},
    set_names={"mig-strategy"},
)
config = new_config(context, ["mig-strategy", ("driver-root", "nvidia-driver-root")])
config.flags.mig_strategy          # "single"
config.flags.nvidia_dev_root       # "/run/driver" (falls back to the driver root)
```

`imex-channel-ids` and `imex-required` are applied to `config.imex` when set,
and an MPS section always gets `fail_requests_greater_than_one = True`.

`disable_resource_naming_in_config(logger, config)` clears custom resources,
resets renames and device selections in the sharing sections, and calls
`logger.warning(...)` for each kind of change; a `logging.Logger` works.

## Smaller pieces

```python
from gpushareconf.resources import ResourcePattern, new_resource_name
from gpushareconf.strategy import new_device_list_strategies
from gpushareconf.duration import parse_duration, format_duration

new_resource_name("gpu")                       # "nvidia.com/gpu"
ResourcePattern("*A100*").matches("NVIDIA A100-SXM4-40GB")   # True
strategies = new_device_list_strategies(["envvar", "cdi-cri"])
strategies.any_cdi_enabled()                   # True
strategies.all_cdi_enabled()                   # False
format_duration(parse_duration("90s"))         # "1m30s"
```

Resource names are prefixed with `nvidia.com/` when needed, must be at most
63 characters and have a lowercase DNS-subdomain name part. A pattern's `*`
matches any run of characters, and a pattern matches when it occurs anywhere
in the text. `parse_duration` needs a unit (`ns`, `us`, `µs`, `ms`, `s`, `m`,
`h`) except for a bare `"0"`; in config data, `Duration.from_json` also takes a
plain number as nanoseconds. `assert_channel_ids_valid` accepts only an empty
list (or `None`) and `[0]`.

## Errors

Invalid input raises `ConfigError` (a `ValueError`), or the subclass
`InvalidImexConfigError`, with a message naming the offending value.

## What it does not do

This is a configuration library only. It provides no command to run, does not
parse command-line arguments itself (the caller fills in a `CliContext`), and
does not talk to GPUs, the kubelet or the Kubernetes API.