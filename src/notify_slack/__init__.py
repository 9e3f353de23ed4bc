"""Relay standard input to Slack in throttled batches."""

__version__ = "0.2.1"

from .config import Config
from .errors import ConfigurationError, DeliveryError, InputError, NotifySlackError
from .runtime import NotifySlackRuntime

__all__ = [
    "Config",
    "ConfigurationError",
    "DeliveryError",
    "InputError",
    "NotifySlackError",
    "NotifySlackRuntime",
    "__version__",
]
