"""cloak — hide files and folders matching glob/regex rules, once or continuously."""

__version__ = "0.1.0"


class CloakError(Exception):
    """User-facing CLI error.

    Raised for invalid arguments, unusable roots, and other
    configuration errors. The message is printed to stderr
    and the process exits with code 1.
    """


class PatternError(CloakError):
    """A glob, regex, or ignore file could not be compiled.

    Attributes:
        pattern: The offending pattern (or ignore file path).
        kind: Name of the rule set the pattern belongs to.
    """

    def __init__(self, pattern: str, kind: str, reason: str) -> None:
        super().__init__(f"Failed to parse {kind} pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.kind = kind


class ListenerError(CloakError):
    """The filesystem notification channel failed while watching."""


class EventError(CloakError):
    """A raw change event lacked the path it should carry."""
