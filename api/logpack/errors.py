"""LogPack exception types. Malformed log content never raises; these cover containers."""


class LogPackError(Exception):
    """Base error for LogPack container handling."""


class UnknownContainerError(LogPackError):
    """Packed input does not start with a known frame magic."""


class CorruptContainerError(LogPackError):
    """Packed input has a known magic but a truncated or damaged frame."""
