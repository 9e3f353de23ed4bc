"""Exception hierarchy shared by the CLI, the flush engine and the Slack client."""


class NotifySlackError(Exception):
    """Base class for errors surfaced to the operator."""


class ConfigurationError(NotifySlackError):
    """Missing or invalid settings detected before any work starts."""


class InputError(NotifySlackError):
    """Reading or echoing the input stream failed; the run cannot continue."""


class DeliveryError(NotifySlackError):
    """A post to Slack failed. The batch it carried is not re-queued."""


__all__ = ["NotifySlackError", "ConfigurationError", "InputError", "DeliveryError"]
