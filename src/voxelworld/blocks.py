"""Block types, their material definitions and the material registry."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable

from .exceptions import UnregisteredBlockError


class Block(IntEnum):
    """Voxel material ids. Values are the on-the-wire byte values."""

    AIR = 0
    GRASS = 1
    DIRT = 2
    STONE = 3
    RED_FLOWER = 4
    ORANGE_FLOWER = 5
    PINK_FLOWER = 6
    WHITE_FLOWER = 7
    GIZMOS = 8

    @property
    def solid(self) -> bool:
        """Whether this block counts as solid for layering and instancing."""
        return self is not Block.AIR

    @property
    def flower(self) -> bool:
        """Whether this block is drawn as a billboard detail."""
        return self in FLOWER_BLOCKS


# Define sets for O(1) lookup
FLOWER_BLOCKS = frozenset({
    Block.RED_FLOWER,
    Block.ORANGE_FLOWER,
    Block.PINK_FLOWER,
    Block.WHITE_FLOWER,
})

SOLID_BLOCKS = tuple(b for b in Block if b.solid)

MAX_BLOCK_ID = max(int(b) for b in Block)


@dataclass(frozen=True)
class BlockDef:
    """Material source for a block: texture URL or hex colour plus overrides."""

    block: Block
    name: str
    texture: str
    params: dict[str, Any] = field(default_factory=dict)


_FLOWER_PARAMS = {"side": "double", "transparent": True}

DEFAULT_BLOCKS: tuple[BlockDef, ...] = (
    BlockDef(Block.GRASS, "Grass", "/grass.jpg"),
    BlockDef(Block.DIRT, "Dirt", "/dirt.png"),
    BlockDef(Block.STONE, "Stone", "/stone.png"),
    BlockDef(Block.RED_FLOWER, "Red Flower", "/flower_red.png", dict(_FLOWER_PARAMS)),
    BlockDef(Block.ORANGE_FLOWER, "Orange Flower", "/flower_orange.png", dict(_FLOWER_PARAMS)),
    BlockDef(Block.PINK_FLOWER, "Pink Flower", "/flower_pink.png", dict(_FLOWER_PARAMS)),
    BlockDef(Block.WHITE_FLOWER, "White Flower", "/flower_white.png", dict(_FLOWER_PARAMS)),
    # Overlay material (semi transparent gizmos)
    BlockDef(
        Block.GIZMOS,
        "Gizmos",
        "#003A4A",
        {
            "opacity": 0.1,
            "depth_write": False,
            "depth_test": True,
            "side": "front",
            "transparent": True,
        },
    ),
)


@dataclass
class Material:
    """Headless stand-in for a renderer material handle."""

    name: str
    texture: str
    params: dict[str, Any] = field(default_factory=dict)
    disposed: bool = False

    def dispose(self) -> None:
        self.disposed = True


@dataclass(frozen=True)
class BlockDescriptor:
    """A registered block: its type, display name and material handle."""

    block: Block
    name: str
    material: Any


MaterialFactory = Callable[[BlockDef], Any]


def default_material_factory(definition: BlockDef) -> Material:
    """Build a plain Material record from a block definition."""
    return Material(
        name=definition.name,
        texture=definition.texture,
        params=dict(definition.params),
    )


class BlockRegistry:
    """Maps blocks to material handles.

    The registry does not own material lifetimes; callers dispose the
    handles returned by all_materials() when tearing down.
    """

    def __init__(self) -> None:
        self._by_block: dict[Block, BlockDescriptor] = {}

    def register(self, descriptor: BlockDescriptor) -> None:
        """Register (or replace) the descriptor for a block."""
        self._by_block[descriptor.block] = descriptor

    def material_of(self, block: Block) -> Any:
        """Return the material handle for a block.

        Raises:
            UnregisteredBlockError: If no material is registered for block.
        """
        descriptor = self._by_block.get(Block(block))
        if descriptor is None:
            raise UnregisteredBlockError(f"No material registered for block {Block(block).name}")
        return descriptor.material

    def all_materials(self) -> list[Any]:
        """All registered material handles, for disposal."""
        return [d.material for d in self._by_block.values()]

    def __contains__(self, block: object) -> bool:
        return block in self._by_block

    def __len__(self) -> int:
        return len(self._by_block)


def create_default_registry(
    material_factory: MaterialFactory = default_material_factory,
    definitions: tuple[BlockDef, ...] = DEFAULT_BLOCKS,
) -> BlockRegistry:
    """Build a BlockRegistry from block definitions.

    Args:
        material_factory: Turns a BlockDef into a material handle.
        definitions: Block definitions to register. Pass a custom tuple to
            override or extend the defaults.

    Returns:
        Populated registry.
    """
    registry = BlockRegistry()
    for definition in definitions:
        registry.register(
            BlockDescriptor(
                block=definition.block,
                name=definition.name,
                material=material_factory(definition),
            )
        )
    return registry
