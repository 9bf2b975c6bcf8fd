"""Resource names, wildcard patterns and the resources section of the config."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from gpushareconf.common import (
    DEFAULT_SHARED_RESOURCE_NAME_SUFFIX,
    MAX_RESOURCE_NAME_LENGTH,
    RESOURCE_NAME_PREFIX,
    ConfigError,
)

_DNS1123_LABEL = r"[a-z0-9]([-a-z0-9]*[a-z0-9])?"
_DNS1123_SUBDOMAIN = _DNS1123_LABEL + r"(\." + _DNS1123_LABEL + r")*"
_DNS1123_SUBDOMAIN_RE = re.compile(_DNS1123_SUBDOMAIN)
_DNS1123_SUBDOMAIN_MAX_LENGTH = 253
_REGEXP_META = set("\\.+*?()|[]{}^$")


def _dns_subdomain_errors(value: str) -> list[str]:
    errors = []
    if len(value) > _DNS1123_SUBDOMAIN_MAX_LENGTH:
        errors.append(f"must be no more than {_DNS1123_SUBDOMAIN_MAX_LENGTH} characters")
    if not _DNS1123_SUBDOMAIN_RE.fullmatch(value):
        errors.append(
            "a lowercase RFC 1123 subdomain must consist of lower case alphanumeric "
            "characters, '-' or '.', and must start and end with an alphanumeric "
            f"character (e.g. 'example.com', regex used for validation is '{_DNS1123_SUBDOMAIN}')"
        )
    return errors


class ResourceName(str):
    """A fully-qualified extended resource name such as "nvidia.com/gpu"."""

    def split(self) -> tuple[str, str]:
        """Split into (prefix, name); the prefix is empty when there is no '/'."""
        prefix, sep, name = str.partition(self, "/")
        if not sep:
            return "", str(self)
        return prefix, name

    def default_shared_rename(self) -> ResourceName:
        """Return the name used for this resource when it is shared."""
        return ResourceName(str(self) + DEFAULT_SHARED_RESOURCE_NAME_SUFFIX)

    @classmethod
    def from_json(cls, value) -> ResourceName:
        """Validate a decoded JSON value and build a resource name from it."""
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ConfigError(f"resource name must be a string, got {value!r}")
        return new_resource_name(value)


class ResourcePattern(str):
    """A pattern where '*' matches any run of characters."""

    def matches(self, text: str) -> bool:
        """Return whether the pattern occurs in text."""
        return re.search(wildcard_to_regexp(self), text) is not None


def _quote_meta(literal: str) -> str:
    return "".join("\\" + ch if ch in _REGEXP_META else ch for ch in literal)


def wildcard_to_regexp(pattern: str) -> str:
    """Turn a wildcard pattern into a regular expression, quoting everything but '*'."""
    return ".*".join(_quote_meta(part) for part in str(pattern).split("*"))


def new_resource_name(name: str) -> ResourceName:
    """Build a resource name under the standard prefix, validating its form."""
    if not name.startswith(RESOURCE_NAME_PREFIX + "/"):
        name = RESOURCE_NAME_PREFIX + "/" + name
    if len(name) > MAX_RESOURCE_NAME_LENGTH:
        raise ConfigError(
            f"fully-qualified resource name must be {MAX_RESOURCE_NAME_LENGTH} "
            f"characters or less: {name}"
        )
    _, short = ResourceName(name).split()
    errors = _dns_subdomain_errors(short)
    if errors:
        raise ConfigError(f"incorrect format for resource name '{name}': [{' '.join(errors)}]")
    return ResourceName(name)


def new_resource(pattern: str, name: str) -> Resource:
    """Build a resource from a pattern and a name."""
    try:
        resource_name = new_resource_name(name)
    except ConfigError as exc:
        raise ConfigError(f"invalid resource name: {exc}") from exc
    return Resource(ResourcePattern(pattern), resource_name)


@dataclass
class Resource:
    """A pattern matched against device names, paired with a resource name."""

    pattern: ResourcePattern
    name: ResourceName

    def __post_init__(self) -> None:
        self.pattern = ResourcePattern(self.pattern)
        self.name = ResourceName(self.name)

    @classmethod
    def from_dict(cls, data) -> Resource:
        """Build from a mapping holding both 'pattern' and 'name'."""
        if not isinstance(data, Mapping):
            raise ConfigError(f"resource must be a mapping, got {data!r}")
        if "pattern" not in data:
            raise ConfigError("resources must have a 'pattern' field set")
        if "name" not in data:
            raise ConfigError("resources must have a 'name' field set")
        pattern = data["pattern"]
        if pattern is None:
            pattern = ""
        if not isinstance(pattern, str):
            raise ConfigError(f"resource pattern must be a string, got {pattern!r}")
        return cls(ResourcePattern(pattern), ResourceName.from_json(data["name"]))

    def to_dict(self) -> dict:
        """Return the mapping form."""
        return {"pattern": str(self.pattern), "name": str(self.name)}


def _resource_list(data: Mapping, key: str) -> list[Resource]:
    raw = data.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError(f"'{key}' must be a list, got {raw!r}")
    return [Resource.from_dict(item) for item in raw]


@dataclass
class Resources:
    """Resources for full GPUs and for MIG devices."""

    gpus: list[Resource] = field(default_factory=list)
    migs: list[Resource] = field(default_factory=list)

    def add_gpu_resource(self, pattern: str, name: str) -> None:
        """Append a full-GPU resource."""
        self.gpus.append(new_resource(pattern, name))

    def add_mig_resource(self, pattern: str, name: str) -> None:
        """Append a MIG resource."""
        self.migs.append(new_resource(pattern, name))

    @classmethod
    def from_dict(cls, data) -> Resources:
        """Build from a mapping with optional 'gpus' and 'mig' lists."""
        if not isinstance(data, Mapping):
            raise ConfigError(f"resources must be a mapping, got {data!r}")
        return cls(gpus=_resource_list(data, "gpus"), migs=_resource_list(data, "mig"))

    def to_dict(self) -> dict:
        """Return the mapping form; 'mig' is left out when empty."""
        result: dict = {"gpus": [r.to_dict() for r in self.gpus]}
        if self.migs:
            result["mig"] = [r.to_dict() for r in self.migs]
        return result