"""Chunk generation parameters."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..blocks import MAX_BLOCK_ID, Block
from ..chunks import ChunkCoord, clamp_size


def format_number(value: float) -> str:
    """Shortest text form of a number; integral floats drop the fraction."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


class GenerationParams(BaseModel):
    """Everything that determines a chunk's voxel grid.

    Two equal parameter sets always synthesize byte-identical grids, so the
    canonical key doubles as the cache key.
    """

    model_config = ConfigDict(frozen=True)

    size: int = Field(default=64, description="Voxels per chunk side, clamped to [4, 128]")
    seed: str = Field(default="seed", description="World seed")
    base_block: Block = Field(default=Block.STONE, description="Block the chunk is filled with")
    cx: int = Field(default=0, description="Chunk x coordinate")
    cy: int = Field(default=0, description="Chunk y coordinate")
    cz: int = Field(default=0, description="Chunk z coordinate")
    surface_scale: float = Field(default=0.04, description="Heightmap noise frequency")
    caves_scale: float = Field(default=0.16, description="Cave noise frequency")
    caves_threshold: float = Field(default=0.72, description="Cave noise cut-off")
    grass_depth: int = Field(default=2, description="Grass cap depth (0 disables)")
    dirt_depth: int = Field(default=3, description="Dirt window depth (0 disables)")

    @field_validator("size", mode="before")
    @classmethod
    def _clamp_size(cls, value: int) -> int:
        return clamp_size(int(value))

    @field_validator("base_block", mode="before")
    @classmethod
    def _clamp_block(cls, value: int) -> Block:
        return Block(max(0, min(MAX_BLOCK_ID, int(value))))

    @property
    def coord(self) -> ChunkCoord:
        return ChunkCoord(self.cx, self.cy, self.cz)

    @property
    def world_offset(self) -> tuple[int, int, int]:
        return self.coord.world_offset(self.size)

    def with_coord(self, cx: int, cy: int, cz: int) -> "GenerationParams":
        """Copy of these parameters positioned at another chunk."""
        return self.model_copy(update={"cx": int(cx), "cy": int(cy), "cz": int(cz)})

    def canonical_key(self) -> str:
        """Order-sensitive, '|'-joined encoding of every field."""
        return "|".join(
            [
                str(self.size),
                self.seed,
                str(int(self.base_block)),
                str(self.cx),
                str(self.cy),
                str(self.cz),
                format_number(self.surface_scale),
                format_number(self.caves_scale),
                format_number(self.caves_threshold),
                str(self.grass_depth),
                str(self.dirt_depth),
            ]
        )
