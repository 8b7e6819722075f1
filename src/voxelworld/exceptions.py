"""Custom exceptions for the voxel world."""


class VoxelWorldError(Exception):
    """Base exception for voxel world errors."""

    pass


class UnregisteredBlockError(VoxelWorldError):
    """Raised when a block has no registered material."""

    pass


class InvalidGridError(VoxelWorldError):
    """Raised when a voxel grid has the wrong length or unknown block ids."""

    pass


class GenerationError(VoxelWorldError):
    """Raised when terrain synthesis fails unexpectedly."""

    pass


class ChunkFetchError(VoxelWorldError):
    """Raised when a chunk cannot be acquired from the chunk endpoint.

    Attributes:
        status: HTTP status of the failed response, or None when no
            response was received (connection error, timeout).
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
