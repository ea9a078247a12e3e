# LaunchFlags/launchflags/errors/exceptions.py
"""Domain exceptions for LaunchFlags.

These exceptions carry no Flask dependency so that the evaluation engine,
validators and repositories can raise them without pulling in the HTTP
layer. ``errors.handlers`` maps each kind to an HTTP status code.
"""


from __future__ import annotations

from typing import Optional


class LaunchFlagsError(Exception):
    """Base class for every error raised by LaunchFlags.

    Attributes:
        detail: Human-readable description of the error.
        code: Dotted machine-readable error code (e.g. ``flags.not_found``).
    """

    code = "flags.error"

    def __init__(self, detail: str, code: Optional[str] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if code is not None:
            self.code = code


class FlagValidationError(LaunchFlagsError):
    """Raised when a flag definition (or an update to one) is malformed.

    Attributes:
        field: Name of the offending field (``key``, ``name``, ``rules``...).
    """

    code = "flags.invalid"

    def __init__(
        self, field: str, detail: str, code: Optional[str] = None
    ) -> None:
        super().__init__(detail, code)
        self.field = field


class InvalidKey(FlagValidationError):
    """Raised when a flag key is empty or has unsupported characters."""

    code = "flags.key_invalid"

    def __init__(self, detail: str, code: Optional[str] = None) -> None:
        super().__init__("key", detail, code)


class InvalidName(FlagValidationError):
    """Raised when a flag name is empty or too long."""

    code = "flags.name_invalid"

    def __init__(self, detail: str, code: Optional[str] = None) -> None:
        super().__init__("name", detail, code)


class InvalidRule(FlagValidationError):
    """Raised when a rule or one of its conditions is malformed."""

    code = "flags.rule_invalid"

    def __init__(self, detail: str, code: Optional[str] = None) -> None:
        super().__init__("rules", detail, code)


class InvalidRequest(LaunchFlagsError):
    """Raised when a request (evaluation or CRUD) has the wrong shape."""

    code = "request.invalid"


class FlagNotFound(LaunchFlagsError):
    """Raised when a referenced flag key or id does not exist."""

    code = "flags.not_found"


class FlagConflict(LaunchFlagsError):
    """Raised when a flag key is already used by another flag."""

    code = "flags.key_conflict"


class InfrastructureError(LaunchFlagsError):
    """Raised when the storage backend fails (connectivity, SQL errors...)."""

    code = "storage.unavailable"
