"""Configuration loading from TOML files."""

import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

from .blocks import Block
from .terrain.params import GenerationParams


class WorldConfig(BaseModel):
    """World layout and streaming settings."""

    chunk_size: int = Field(default=16, description="Voxels per chunk side")
    seed: str = Field(default="1", description="World seed")
    base_block: Block = Field(default=Block.STONE, description="Block chunks are carved from")
    view_radius: int = Field(default=6, description="Chunks loaded around the anchor on each axis")
    initial_position: tuple[float, float, float] = Field(
        default=(0.0, 20.0, 80.0), description="Initial viewpoint position"
    )


class TerrainDefaults(BaseModel):
    """Terrain knobs sent with every chunk request."""

    surface_scale: float = 0.04
    caves_scale: float = 0.16
    caves_threshold: float = 0.72
    grass_depth: int = 2
    dirt_depth: int = 3


class ServerConfig(BaseModel):
    """Chunk endpoint settings."""

    host: str = "127.0.0.1"
    port: int = 8000


class ClientConfig(BaseModel):
    """Chunk acquisition settings."""

    base_url: str = "http://127.0.0.1:8000"
    timeout_s: float = Field(default=5.0, description="Request timeout in seconds")
    cache_mode: str = Field(default="force-cache", description="force-cache or no-cache")
    max_cached: int = Field(default=1024, description="Chunk bodies kept by the client before evicting")


class Config(BaseModel):
    """Complete voxel world configuration."""

    world: WorldConfig = Field(default_factory=WorldConfig)
    terrain: TerrainDefaults = Field(default_factory=TerrainDefaults)
    server: ServerConfig = Field(default_factory=ServerConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)

    def generation_template(self) -> GenerationParams:
        """Generation params for chunk (0, 0, 0) under this configuration."""
        return GenerationParams(
            size=self.world.chunk_size,
            seed=self.world.seed,
            base_block=self.world.base_block,
            surface_scale=self.terrain.surface_scale,
            caves_scale=self.terrain.caves_scale,
            caves_threshold=self.terrain.caves_threshold,
            grass_depth=self.terrain.grass_depth,
            dirt_depth=self.terrain.dirt_depth,
        )


def load_config(config_path: Path) -> Config:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed Config object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return Config.model_validate(data)


def _configs_dir() -> Path:
    return Path(__file__).parent.parent.parent / "configs"


def find_config(name: str) -> Path:
    """Find a config file by name.

    Searches in the following order:
    1. Exact path if name contains path separator or ends in .toml
    2. configs/{name}.toml
    3. configs/{name}

    Raises:
        FileNotFoundError: If config file is not found.
    """
    if "/" in name or name.endswith(".toml"):
        path = Path(name)
        if path.exists():
            return path
        raise FileNotFoundError(f"Config file not found: {name}")

    configs_dir = _configs_dir()

    config_path = configs_dir / f"{name}.toml"
    if config_path.exists():
        return config_path

    config_path = configs_dir / name
    if config_path.exists():
        return config_path

    raise FileNotFoundError(
        f"Config '{name}' not found in {configs_dir}. "
        f"Available configs: {list_configs()}"
    )


def list_configs() -> list[str]:
    """List available config names."""
    configs_dir = _configs_dir()
    if not configs_dir.exists():
        return []
    return [p.stem for p in configs_dir.glob("*.toml")]
