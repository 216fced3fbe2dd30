from __future__ import annotations


class FileSyncError(Exception):
    """Base class for errors raised across file_sync component seams."""


class ConfigError(FileSyncError, ValueError):
    pass


class ScanError(FileSyncError):
    """A directory walk could not continue (root unreadable, listing failed, strict stat failure)."""

    def __init__(self, path, error: Exception):
        super().__init__(f"{path}: {error}")
        self.path = path
        self.error = error


class DeleteError(FileSyncError):
    """Removing an expired target file failed; the deletion phase stops here."""

    def __init__(self, path, error: Exception):
        super().__init__(f"{path}: {error}")
        self.path = path
        self.error = error
