# evolutionary_colony_library/scent.py
import enum

import numpy as np

from .config import (SCENT_MAX, SCENT_DIFFUSION_RATE, SCENT_DIFFUSION_ITERATIONS,
                     SCENT_EPSILON, SCENT_REGION_RADIUS)


class ScentKind(enum.IntEnum):
    QUEEN = 0
    WORKER = 1
    FOOD = 2
    DANGER = 3


# Offsets of the six orthogonal neighbours, used for diffusion
NEIGHBOUR_OFFSETS = (
    (1, 0, 0), (-1, 0, 0),
    (0, 1, 0), (0, -1, 0),
    (0, 0, 1), (0, 0, -1),
)


class ScentField:
    """
    Dense 3D scent grid, one layer per ScentKind, over the world's bounds.

    Deposits are local, so decay and diffusion only touch the cells inside an
    axis-aligned active region. Every nonzero cell lies inside that region;
    the region may be larger than the nonzero set but never smaller. When
    nothing is left the region is dropped and `step`/`clear_all` return at once.
    """
    def __init__(self, size_x, size_y, size_z,
                 diffusion_rate=SCENT_DIFFUSION_RATE,
                 diffusion_iterations=SCENT_DIFFUSION_ITERATIONS,
                 epsilon=SCENT_EPSILON,
                 max_value=SCENT_MAX):
        self.shape = (size_x, size_y, size_z)
        self.diffusion_rate = min(1.0, max(0.0, diffusion_rate))
        self.diffusion_iterations = max(0, int(diffusion_iterations))
        self.epsilon = epsilon
        self.max_value = max_value

        self._grid = np.zeros((len(ScentKind),) + self.shape, dtype=np.float64)
        self._buffer = np.zeros_like(self._grid)
        self._neighbour_counts = self._count_neighbours(self.shape)
        self._region = None # (min_x, min_y, min_z, max_x, max_y, max_z), inclusive

    @classmethod
    def for_world(cls, world, **kwargs):
        """Builds a field matching the world's grid bounds."""
        return cls(world.size_x, world.size_y, world.size_z, **kwargs)

    @staticmethod
    def _count_neighbours(shape):
        """Number of in-grid orthogonal neighbours for every cell."""
        counts = np.full(shape, 6, dtype=np.float64)
        for axis, size in enumerate(shape):
            # A layer one cell thick loses both neighbours along that axis
            for edge in (0, size - 1):
                index = [slice(None)] * 3
                index[axis] = edge
                counts[tuple(index)] -= 1
        return counts

    @property
    def active_region(self):
        return self._region

    def in_bounds(self, x, y, z):
        return 0 <= x < self.shape[0] and 0 <= y < self.shape[1] and 0 <= z < self.shape[2]

    def _region_slices(self):
        x0, y0, z0, x1, y1, z1 = self._region
        return (slice(x0, x1 + 1), slice(y0, y1 + 1), slice(z0, z1 + 1))

    def _expand_region(self, x, y, z, radius):
        sx, sy, sz = self.shape
        box = (max(0, x - radius), max(0, y - radius), max(0, z - radius),
               min(sx - 1, x + radius), min(sy - 1, y + radius), min(sz - 1, z + radius))
        if self._region is None:
            self._region = box
        else:
            old = self._region
            self._region = (min(old[0], box[0]), min(old[1], box[1]), min(old[2], box[2]),
                            max(old[3], box[3]), max(old[4], box[4]), max(old[5], box[5]))

    def deposit(self, x, y, z, kind, amount):
        """Adds scent to one cell. Non-positive amounts and out-of-bounds cells are ignored."""
        if amount <= 0 or not self.in_bounds(x, y, z):
            return
        kind = int(kind)
        self._grid[kind, x, y, z] = min(self.max_value, self._grid[kind, x, y, z] + amount)
        self._expand_region(x, y, z, SCENT_REGION_RADIUS)

    def get(self, x, y, z, kind):
        if not self.in_bounds(x, y, z):
            return 0.0
        return float(self._grid[int(kind), x, y, z])

    def total(self, kind=None):
        """Sum of all scent of one kind, or of every kind when `kind` is None."""
        if kind is None:
            return float(self._grid.sum())
        return float(self._grid[int(kind)].sum())

    def layer(self, kind):
        """Read-only view of one scent layer."""
        view = self._grid[int(kind)].view()
        view.flags.writeable = False
        return view

    def step(self, decay_rate):
        """Decays, diffuses and re-bounds the active region. Call once per tick."""
        if self._region is None:
            return
        decay_rate = min(1.0, max(0.0, decay_rate))
        x_slice, y_slice, z_slice = self._region_slices()
        region = self._grid[:, x_slice, y_slice, z_slice]

        # 1) Decay in place
        region *= decay_rate
        region[region < self.epsilon] = 0.0

        # 2) Diffusion, double-buffered
        if self.diffusion_rate > 0.0:
            for iteration in range(self.diffusion_iterations):
                if iteration > 0:
                    # The previous pass may have reached the region's border cells
                    self._grow_region()
                self._diffuse_region()

        # 3) Tight bounds of what is left, plus headroom for the next diffusion step
        x_slice, y_slice, z_slice = self._region_slices()
        region = self._grid[:, x_slice, y_slice, z_slice]
        occupied = np.any(region > 0.0, axis=0)
        if not occupied.any():
            self._region = None
            return
        xs, ys, zs = np.nonzero(occupied)
        x0, y0, z0 = x_slice.start, y_slice.start, z_slice.start
        sx, sy, sz = self.shape
        self._region = (max(0, x0 + int(xs.min()) - 1),
                        max(0, y0 + int(ys.min()) - 1),
                        max(0, z0 + int(zs.min()) - 1),
                        min(sx - 1, x0 + int(xs.max()) + 1),
                        min(sy - 1, y0 + int(ys.max()) + 1),
                        min(sz - 1, z0 + int(zs.max()) + 1))

    def _grow_region(self):
        x0, y0, z0, x1, y1, z1 = self._region
        self._expand_region(x0, y0, z0, 1)
        self._expand_region(x1, y1, z1, 1)

    def _diffuse_region(self):
        """
        One diffusion pass over the region. Every pair of in-grid neighbours
        exchanges d/6 of their difference, so interior cells move to
        (1 - d) * own + d * mean of the six neighbours, faces exchange nothing
        with the outside, and the total never grows.
        """
        x0, y0, z0, x1, y1, z1 = self._region
        sx, sy, sz = self.shape
        # Window = region plus one cell of grid neighbours on every side
        wx0, wy0, wz0 = max(0, x0 - 1), max(0, y0 - 1), max(0, z0 - 1)
        wx1, wy1, wz1 = min(sx - 1, x1 + 1), min(sy - 1, y1 + 1), min(sz - 1, z1 + 1)
        window = self._grid[:, wx0:wx1 + 1, wy0:wy1 + 1, wz0:wz1 + 1]
        padded = np.pad(window, ((0, 0), (1, 1), (1, 1), (1, 1)))

        # Region position inside the padded window
        px0, py0, pz0 = x0 - wx0 + 1, y0 - wy0 + 1, z0 - wz0 + 1
        nx, ny, nz = x1 - x0 + 1, y1 - y0 + 1, z1 - z0 + 1

        neighbour_sum = np.zeros((len(ScentKind), nx, ny, nz), dtype=np.float64)
        for dx, dy, dz in NEIGHBOUR_OFFSETS:
            neighbour_sum += padded[:,
                                    px0 + dx:px0 + dx + nx,
                                    py0 + dy:py0 + dy + ny,
                                    pz0 + dz:pz0 + dz + nz]

        counts = self._neighbour_counts[x0:x1 + 1, y0:y1 + 1, z0:z1 + 1]
        centre = self._grid[:, x0:x1 + 1, y0:y1 + 1, z0:z1 + 1]

        target = self._buffer[:, x0:x1 + 1, y0:y1 + 1, z0:z1 + 1]
        np.multiply(centre, counts, out=target)
        np.subtract(neighbour_sum, target, out=target)
        target *= self.diffusion_rate / len(NEIGHBOUR_OFFSETS)
        target += centre
        target[target < self.epsilon] = 0.0
        centre[...] = target

    def clear_all(self):
        """Zeroes the active region only, then forgets it."""
        if self._region is None:
            return
        x_slice, y_slice, z_slice = self._region_slices()
        self._grid[:, x_slice, y_slice, z_slice] = 0.0
        self._region = None
