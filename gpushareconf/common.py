"""Constants shared across the configuration model, and its error type."""

# Resource names
RESOURCE_NAME_PREFIX = "nvidia.com"
DEFAULT_SHARED_RESOURCE_NAME_SUFFIX = ".shared"
MAX_RESOURCE_NAME_LENGTH = 63

# MIG strategies
MIG_STRATEGY_NONE = "none"
MIG_STRATEGY_SINGLE = "single"
MIG_STRATEGY_MIXED = "mixed"

# Device list strategies
DEVICE_LIST_STRATEGY_ENVVAR = "envvar"
DEVICE_LIST_STRATEGY_VOLUME_MOUNTS = "volume-mounts"
DEVICE_LIST_STRATEGY_CDI_ANNOTATIONS = "cdi-annotations"
DEVICE_LIST_STRATEGY_CDI_CRI = "cdi-cri"

# Device id strategies
DEVICE_ID_STRATEGY_UUID = "uuid"
DEVICE_ID_STRATEGY_INDEX = "index"

# CDI specification generation
DEFAULT_CDI_ANNOTATION_PREFIX = "cdi.k8s.io/"
DEFAULT_NVIDIA_CTK_PATH = "/usr/bin/nvidia-ctk"
DEFAULT_CONTAINER_DRIVER_ROOT = "/driver-root"


class ConfigError(ValueError):
    """Raised when configuration data is malformed or invalid."""