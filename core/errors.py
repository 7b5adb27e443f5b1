from __future__ import annotations


class LinkError(RuntimeError):
    """Base class for serial-link failures.  All of them end the session."""


class TransportOpenFailed(LinkError):
    pass


class TransportWriteFailed(LinkError):
    pass


class TransportReadFailed(LinkError):
    pass


class SyncTimeout(LinkError):
    pass


class MalformedImage(ValueError):
    """A patch image or file that is not exactly 512 bytes."""


class InvalidSlot(ValueError):
    pass
