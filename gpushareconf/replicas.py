"""Replicated (shared) resources and the devices each replication applies to."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from gpushareconf.common import ConfigError
from gpushareconf.resources import ResourceName

_UINT64_LIMIT = 1 << 64
_DIGITS = re.compile(r"[0-9]+")
_HEX = "[0-9a-fA-F]"
_CANONICAL_UUID = "-".join(_HEX + "{%d}" % width for width in (8, 4, 4, 4, 12))
_UUID_RE = re.compile(
    "|".join(
        [
            _CANONICAL_UUID,
            r"\{" + _CANONICAL_UUID + r"\}",
            "(?i:urn:uuid:)" + _CANONICAL_UUID,
            _HEX + "{32}",
        ]
    )
)


def _is_uint(text: str) -> bool:
    return _DIGITS.fullmatch(text) is not None and int(text) < _UINT64_LIMIT


def _is_uuid(text: str) -> bool:
    return _UUID_RE.fullmatch(text) is not None


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _decode_json(text):
    try:
        return json.loads(text)
    except ValueError as exc:
        raise ConfigError(f"invalid JSON: {exc}") from exc


class ReplicatedDeviceRef(str):
    """A full GPU index, a MIG index, or a GPU or MIG UUID."""

    def is_gpu_index(self) -> bool:
        """Return whether this is a full GPU index such as "0"."""
        return _is_uint(str(self))

    def is_mig_index(self) -> bool:
        """Return whether this is a MIG index such as "0:1"."""
        parts = str(self).split(":", 1)
        return len(parts) == 2 and all(_is_uint(part) for part in parts)

    def is_uuid(self) -> bool:
        """Return whether this is a GPU or MIG UUID."""
        return self.is_gpu_uuid() or self.is_mig_uuid()

    def is_gpu_uuid(self) -> bool:
        """Return whether this is of the form GPU-<uuid>."""
        text = str(self)
        return text.startswith("GPU-") and _is_uuid(text[len("GPU-"):])

    def is_mig_uuid(self) -> bool:
        """Return whether this is of the form MIG-<uuid> or MIG-GPU-<uuid>/<gi>/<ci>."""
        text = str(self)
        if not text.startswith("MIG-"):
            return False
        suffix = text[len("MIG-"):]
        if _is_uuid(suffix):
            return True
        parts = suffix.split("/", 2)
        if len(parts) != 3:
            return False
        if not ReplicatedDeviceRef(parts[0]).is_gpu_uuid():
            return False
        return all(_is_uint(part) for part in parts[1:])


@dataclass
class ReplicatedDevices:
    """The devices to replicate: all of them, a count, or an explicit list.

    Only one of the three fields is meant to be set at a time.
    """

    all: bool = False
    count: int = 0
    devices: list[ReplicatedDeviceRef] | None = None

    @classmethod
    def from_value(cls, value) -> ReplicatedDevices:
        """Build from a decoded JSON value: "all", a positive count, or a list."""
        if value is None or isinstance(value, str):
            text = value or ""
            if text != "all":
                raise ConfigError(
                    f"devices set as '{text}' but the only valid string input is 'all'"
                )
            return cls(all=True)
        if _is_int(value):
            if value <= 0:
                raise ConfigError(
                    f"devices set as '{value}' but a count of devices must be > 0"
                )
            return cls(count=value)
        if isinstance(value, list):
            return cls(devices=[_device_ref(item) for item in value])
        raise ConfigError(f"unrecognized type for devices spec: {json.dumps(value)}")

    @classmethod
    def from_json(cls, text) -> ReplicatedDevices:
        """Build from JSON text."""
        return cls.from_value(_decode_json(text))

    def to_value(self):
        """Return the JSON-ready value: "all", the count, or the list of references."""
        if self.all:
            return "all"
        if self.count > 0:
            return self.count
        if self.devices is not None:
            return [str(ref) for ref in self.devices]
        raise ConfigError(f"unmarshallable ReplicatedDevices struct: {self!r}")

    def to_json(self) -> str:
        """Return the JSON text form."""
        return json.dumps(self.to_value())


def _device_ref(item) -> ReplicatedDeviceRef:
    if _is_int(item) and 0 <= item < _UINT64_LIMIT:
        return ReplicatedDeviceRef(str(item))
    if isinstance(item, str):
        ref = ReplicatedDeviceRef(item)
        if ref.is_gpu_index() or ref.is_mig_index() or ref.is_uuid():
            return ref
    raise ConfigError(f"unsupported type for device in devices list: {item!r}")


@dataclass
class ReplicatedResource:
    """A resource to replicate, how many replicas to make, and on which devices."""

    name: ResourceName
    replicas: int
    devices: ReplicatedDevices = field(default_factory=lambda: ReplicatedDevices(all=True))
    rename: ResourceName = ResourceName("")

    @classmethod
    def from_dict(cls, data) -> ReplicatedResource:
        """Build from a mapping with 'name' and 'replicas', and optional 'devices' and 'rename'."""
        if not isinstance(data, Mapping):
            raise ConfigError(f"replicated resource must be a mapping, got {data!r}")
        if "name" not in data:
            raise ConfigError("no resource name specified")
        name = ResourceName.from_json(data["name"])
        devices = ReplicatedDevices.from_value(data.get("devices", "all"))
        if "replicas" not in data:
            raise ConfigError("no replicas specified")
        replicas = data["replicas"]
        if replicas is None:
            replicas = 0
        if not _is_int(replicas):
            raise ConfigError(f"replicas must be an integer, got {replicas!r}")
        if replicas < 2:
            raise ConfigError("number of replicas must be >= 2")
        rename = ResourceName("")
        if "rename" in data:
            rename = ResourceName.from_json(data["rename"])
        return cls(name=name, replicas=replicas, devices=devices, rename=rename)

    @classmethod
    def from_json(cls, text) -> ReplicatedResource:
        """Build from JSON text."""
        return cls.from_dict(_decode_json(text))

    def to_dict(self) -> dict:
        """Return the mapping form; 'rename' is left out when empty."""
        result = {
            "name": str(self.name),
            "devices": self.devices.to_value(),
            "replicas": self.replicas,
        }
        if self.rename:
            result["rename"] = str(self.rename)
        return result


def _bool_field(data: Mapping, key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be a boolean, got {value!r}")
    return value


@dataclass
class ReplicatedResources:
    """Generic options for replicating devices, and the resources to replicate."""

    rename_by_default: bool = False
    fail_requests_greater_than_one: bool = False
    resources: list[ReplicatedResource] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data) -> ReplicatedResources:
        """Build from a mapping; at least one resource must be given."""
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigError(f"replicated resources must be a mapping, got {data!r}")
        rename_by_default = _bool_field(data, "renameByDefault")
        fail_requests = _bool_field(data, "failRequestsGreaterThanOne")
        if "resources" not in data:
            raise ConfigError("no resources specified")
        raw = data["resources"]
        if raw is None:
            raw = []
        if not isinstance(raw, list):
            raise ConfigError(f"'resources' must be a list, got {raw!r}")
        resources = [ReplicatedResource.from_dict(item) for item in raw]
        if not resources:
            raise ConfigError("no resources specified")
        if rename_by_default:
            for resource in resources:
                if not resource.rename:
                    resource.rename = resource.name.default_shared_rename()
        return cls(
            rename_by_default=rename_by_default,
            fail_requests_greater_than_one=fail_requests,
            resources=resources,
        )

    @classmethod
    def from_json(cls, text) -> ReplicatedResources:
        """Build from JSON text."""
        return cls.from_dict(_decode_json(text))

    def to_dict(self) -> dict:
        """Return the mapping form, leaving out empty fields."""
        result: dict = {}
        if self.rename_by_default:
            result["renameByDefault"] = True
        if self.fail_requests_greater_than_one:
            result["failRequestsGreaterThanOne"] = True
        if self.resources:
            result["resources"] = [r.to_dict() for r in self.resources]
        return result

    def is_replicated(self) -> bool:
        """Return whether any resource has more than one replica."""
        return any(resource.replicas > 1 for resource in self.resources)

    def disable_resource_renaming(self, logger, sharing_id: str) -> None:
        """Reset renames to their defaults and devices to 'all', warning about each kind of change."""
        sets_non_default_rename = False
        sets_devices = False
        for resource in self.resources:
            if not self.rename_by_default and resource.rename:
                sets_non_default_rename = True
                resource.rename = ResourceName("")
            if self.rename_by_default:
                default = resource.name.default_shared_rename()
                if resource.rename != default:
                    sets_non_default_rename = True
                    resource.rename = default
            if not resource.devices.all:
                sets_devices = True
                resource.devices = ReplicatedDevices(all=True)
        if sets_non_default_rename:
            logger.warning(
                "Setting the 'rename' field in sharing.%s.resources is not yet "
                "supported in the config. Ignoring...",
                sharing_id,
            )
        if sets_devices:
            logger.warning(
                "Customizing the 'devices' field in sharing.%s.resources is not yet "
                "supported in the config. Ignoring...",
                sharing_id,
            )