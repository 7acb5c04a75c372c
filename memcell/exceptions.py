class MemcellException(Exception):
    """Base class for all memcell exceptions."""
    pass

class KeyExistsError(MemcellException):
    """Raised by ADD when the key already holds a live value."""
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Key '{key}' already exists")

class KeyNotFoundError(MemcellException):
    """For UPDATE"""
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Key '{key}' does not exist")

class SnapshotError(MemcellException):
    """Base class for snapshot codec failures."""
    pass

class SnapshotEncodeError(SnapshotError):
    """Raised when a stored value cannot be serialized."""
    pass

class SnapshotDecodeError(SnapshotError):
    """Raised when a snapshot stream is not a valid snapshot."""
    pass
