"""Fatal bootstrap errors.

Anything raised from here aborts the boot before the gateway is launched;
``main()`` turns it into a non-zero exit so the platform sees a failed deploy.
"""


class BootstrapError(Exception):
    """Base class for errors that must stop the boot sequence."""


class TokenError(BootstrapError):
    """The gateway token could not be read or persisted."""


class ConfigWriteError(BootstrapError):
    """The data directory or openclaw.json could not be written."""


class HandoffError(BootstrapError):
    """The gateway process could not be started."""
