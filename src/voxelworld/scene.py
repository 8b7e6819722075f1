"""Headless scene boundary for chunk drawables.

The renderer proper is out of scope; this module holds what it needs to
draw a chunk (instance batches, world position, bounds) and the group the
lifecycle manager attaches chunks to.
"""

from dataclasses import dataclass, field

from .instancing import BillboardLayer, ChunkInstances


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in chunk-local space."""

    min: tuple[float, float, float]
    max: tuple[float, float, float]


@dataclass
class ChunkDrawable:
    """Renderable representation of one loaded chunk."""

    key: str
    instances: ChunkInstances
    position: tuple[float, float, float]
    bounds: BoundingBox
    details: BillboardLayer | None = None
    fallback: bool = False
    disposed: bool = False

    @classmethod
    def for_chunk(
        cls,
        key: str,
        cx: int,
        cz: int,
        instances: ChunkInstances,
        *,
        details: BillboardLayer | None = None,
        fallback: bool = False,
    ) -> "ChunkDrawable":
        size = instances.size
        half = size / 2
        return cls(
            key=key,
            instances=instances,
            position=(float(cx * size), 0.0, float(cz * size)),
            bounds=BoundingBox((-half, -half, -half), (half, half, half)),
            details=details,
            fallback=fallback,
        )


def dispose_drawable(drawable: ChunkDrawable, *, dispose_materials: bool = False) -> None:
    """Release a drawable's buffers.

    Materials are shared through the BlockRegistry and are only disposed
    when asked.
    """
    if dispose_materials:
        for batch in drawable.instances.batches.values():
            dispose = getattr(batch.material, "dispose", None)
            if dispose is not None:
                dispose()
    drawable.instances.release()
    drawable.details = None
    drawable.disposed = True


@dataclass
class WorldGroup:
    """Container of attached chunk drawables."""

    children: dict[str, ChunkDrawable] = field(default_factory=dict)

    def attach(self, drawable: ChunkDrawable) -> None:
        self.children[drawable.key] = drawable

    def detach(self, key: str) -> ChunkDrawable | None:
        return self.children.pop(key, None)

    @property
    def total_instances(self) -> int:
        return sum(d.instances.total_instances for d in self.children.values())

    def __contains__(self, key: object) -> bool:
        return key in self.children

    def __len__(self) -> int:
        return len(self.children)
