"""Procedural voxel world: terrain synthesis, chunk serving and streaming."""

from .blocks import (
    DEFAULT_BLOCKS,
    Block,
    BlockDef,
    BlockDescriptor,
    BlockRegistry,
    Material,
    create_default_registry,
)
from .cache import CacheStats, ChunkCache, make_etag
from .chunks import (
    ChunkCoord,
    VoxelGrid,
    anchor_for,
    chebyshev_distance,
    chunk_key,
    generate_chunk,
    grid_from_bytes,
    grid_to_bytes,
    idx,
    parse_chunk_key,
)
from .exceptions import (
    ChunkFetchError,
    GenerationError,
    InvalidGridError,
    UnregisteredBlockError,
    VoxelWorldError,
)
from .instancing import (
    BillboardLayer,
    ChunkInstances,
    InstanceBatch,
    build_billboard_layer,
    compile_instances,
    count_blocks,
)
from .lifecycle import (
    ChunkLifecycleManager,
    ChunkRecord,
    ChunkState,
    ChunkStateStore,
    fallback_params,
)
from .scene import ChunkDrawable, WorldGroup, dispose_drawable
from .terrain import GenerationParams, make_noise, synthesize

__all__ = [
    # Blocks
    "Block",
    "BlockDef",
    "BlockDescriptor",
    "BlockRegistry",
    "DEFAULT_BLOCKS",
    "Material",
    "create_default_registry",
    # Chunks
    "ChunkCoord",
    "VoxelGrid",
    "anchor_for",
    "chebyshev_distance",
    "chunk_key",
    "generate_chunk",
    "grid_from_bytes",
    "grid_to_bytes",
    "idx",
    "parse_chunk_key",
    # Terrain
    "GenerationParams",
    "make_noise",
    "synthesize",
    # Cache
    "CacheStats",
    "ChunkCache",
    "make_etag",
    # Instancing
    "BillboardLayer",
    "ChunkInstances",
    "InstanceBatch",
    "build_billboard_layer",
    "compile_instances",
    "count_blocks",
    # Lifecycle
    "ChunkLifecycleManager",
    "ChunkRecord",
    "ChunkState",
    "ChunkStateStore",
    "fallback_params",
    # Scene
    "ChunkDrawable",
    "WorldGroup",
    "dispose_drawable",
    # Exceptions
    "VoxelWorldError",
    "UnregisteredBlockError",
    "InvalidGridError",
    "GenerationError",
    "ChunkFetchError",
]
