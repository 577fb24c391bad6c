# evolutionary_colony_library/world.py
import enum

import numpy as np

from .config import (WORLD_SIZE_X, WORLD_SIZE_Y, WORLD_SIZE_Z, TERRAIN_SEED,
                     TERRAIN_BASE_HEIGHT, TERRAIN_HEIGHT_VARIATION,
                     FOOD_BLOCK_PROBABILITY, HAZARD_BLOCK_PROBABILITY,
                     OBSTACLE_BLOCK_PROBABILITY)


class BlockKind(enum.IntEnum):
    EMPTY = 0     # Air
    FOOD = 1      # Mulch, edible
    OBSTACLE = 2  # Container-like, cannot be dug or built on
    HAZARD = 3    # Acidic, doubles health decay
    NEST = 4
    OTHER = 5     # Plain ground


INDESTRUCTIBLE_KINDS = frozenset({BlockKind.OBSTACLE})


class BlockWorld:
    """
    Block terrain stored as a dense int8 array indexed [x, y, z], y up.
    `reset()` restores the terrain recorded by the last `commit()`, so every
    episode starts from the same ground.
    """
    def __init__(self, size_x=WORLD_SIZE_X, size_y=WORLD_SIZE_Y, size_z=WORLD_SIZE_Z,
                 seed=TERRAIN_SEED, generate=True):
        self.size_x, self.size_y, self.size_z = size_x, size_y, size_z
        self.seed = seed
        self.blocks = np.zeros((size_x, size_y, size_z), dtype=np.int8)
        if generate:
            self.generate_terrain()
        self.commit()

    @classmethod
    def flat(cls, size_x, size_y, size_z, height, kind=BlockKind.OTHER):
        """A world whose columns are all filled with `kind` up to layer `height`."""
        world = cls(size_x, size_y, size_z, generate=False)
        world.blocks[:, :height + 1, :] = int(kind)
        world.commit()
        return world

    @property
    def shape(self):
        return (self.size_x, self.size_y, self.size_z)

    def generate_noise(self, rng, octaves=3):
        """Smooth 2D height noise in [0, 1] from a few random-phase sine layers."""
        xs, zs = np.meshgrid(np.arange(self.size_x), np.arange(self.size_z), indexing="ij")
        noise = np.zeros((self.size_x, self.size_z), dtype=np.float64)
        for octave in range(octaves):
            frequency = (2 ** octave) * 2.0 * np.pi / max(self.size_x, self.size_z)
            amplitude = 1.0 / (2 ** octave)
            phase_x, phase_z = rng.uniform(0.0, 2.0 * np.pi, size=2)
            noise += amplitude * np.sin(xs * frequency + phase_x) * np.cos(zs * frequency + phase_z)
        low, high = noise.min(), noise.max()
        if high > low:
            noise = (noise - low) / (high - low)
        else:
            noise = np.zeros_like(noise)
        return noise

    def generate_terrain(self):
        rng = np.random.default_rng(self.seed)
        noise = self.generate_noise(rng)
        # Keep two layers of headroom so an agent can always stand on the surface
        top = max(0, self.size_y - 2)
        heights = np.clip(TERRAIN_BASE_HEIGHT + np.rint(noise * TERRAIN_HEIGHT_VARIATION),
                          0, top).astype(np.int64)

        layers = np.arange(self.size_y)[None, :, None]
        solid = layers <= heights[:, None, :]
        self.blocks[...] = np.where(solid, BlockKind.OTHER, BlockKind.EMPTY)
        self.blocks[:, 0, :] = BlockKind.OBSTACLE # Indestructible floor

        # Decorate the surface layer
        roll = rng.random((self.size_x, self.size_z))
        surface = np.full((self.size_x, self.size_z), int(BlockKind.OTHER), dtype=np.int8)
        food_cut = FOOD_BLOCK_PROBABILITY
        hazard_cut = food_cut + HAZARD_BLOCK_PROBABILITY
        obstacle_cut = hazard_cut + OBSTACLE_BLOCK_PROBABILITY
        surface[roll < food_cut] = BlockKind.FOOD
        surface[(roll >= food_cut) & (roll < hazard_cut)] = BlockKind.HAZARD
        surface[(roll >= hazard_cut) & (roll < obstacle_cut)] = BlockKind.OBSTACLE
        xs, zs = np.meshgrid(np.arange(self.size_x), np.arange(self.size_z), indexing="ij")
        raised = heights > 0
        self.blocks[xs[raised], heights[raised], zs[raised]] = surface[raised]

    def commit(self):
        """Records the current blocks as the state `reset()` returns to."""
        self._initial_blocks = self.blocks.copy()

    def reset(self):
        np.copyto(self.blocks, self._initial_blocks)

    def in_bounds(self, x, y, z):
        return 0 <= x < self.size_x and 0 <= y < self.size_y and 0 <= z < self.size_z

    def block_kind(self, x, y, z):
        if not self.in_bounds(x, y, z):
            return BlockKind.EMPTY
        return BlockKind(int(self.blocks[x, y, z]))

    def set_block_kind(self, x, y, z, kind):
        if self.in_bounds(x, y, z):
            self.blocks[x, y, z] = int(kind)

    def surface_height(self, x, z):
        """Topmost non-empty layer of a column, or -1 if the column is empty or outside the world."""
        if not (0 <= x < self.size_x and 0 <= z < self.size_z):
            return -1
        filled = np.flatnonzero(self.blocks[x, :, z])
        if filled.size == 0:
            return -1
        return int(filled[-1])

    def standable_columns(self):
        """(x, z) of every column with a surface an agent can stand on."""
        filled = self.blocks != BlockKind.EMPTY
        # Index of the topmost filled layer per column, -1 for empty columns
        top = np.where(filled.any(axis=1),
                       self.size_y - 1 - np.argmax(filled[:, ::-1, :], axis=1), -1)
        xs, zs = np.nonzero((top >= 0) & (top + 1 < self.size_y))
        return list(zip(xs.tolist(), zs.tolist()))
