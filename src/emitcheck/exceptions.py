"""Exception types raised by emitcheck."""

from __future__ import annotations


class EmitcheckError(RuntimeError):
    """Base class for errors surfaced to callers of emitcheck."""


class ConfigError(EmitcheckError, ValueError):
    """Raised when a configuration value cannot be used."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"{key}: {message}")
        self.key = key


class UnresolvedDeclaration(EmitcheckError, LookupError):
    """The type resolver was handed an identifier with no declaration.

    Every other resolution failure degrades to an unresolved placeholder type;
    this is the one case the resolver refuses to guess about.
    """

    def __init__(self, tag: str) -> None:
        super().__init__(f"no declaration for {tag!r}")
        self.tag = tag
