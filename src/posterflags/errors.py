"""Exceptions raised by PosterFlags components."""


class PosterFlagsError(Exception):
    """Base class for PosterFlags errors."""


class PosterDecodeError(PosterFlagsError):
    """The poster image could not be read or decoded."""


class BackupError(PosterFlagsError):
    """A poster backup could not be created."""
