"""Allow `python -m voxelworld`."""

from .cli import main

main()
