# evolutionary_colony_library/genome.py
import enum
import math

import numpy as np

SENSOR_COUNT = 9 # Length of the sensory vector and of every action block


class Role(enum.Enum):
    QUEEN = "queen"
    WORKER = "worker"


class Action(enum.IntEnum):
    """
    Candidate actions for the decision engine.
    The integer value is also the tie-break priority: when two actions
    reach the same desire score, the lower value wins.
    """
    EAT = 0
    SEEK_PRIMARY = 1
    SEEK_SECONDARY = 2
    BUILD = 3
    DIG = 4
    EXPLORE = 5


# Action blocks in genome order. Only the queen can build.
ROLE_ACTIONS = {
    Role.QUEEN: (Action.EAT, Action.SEEK_PRIMARY, Action.SEEK_SECONDARY,
                 Action.BUILD, Action.DIG, Action.EXPLORE),
    Role.WORKER: (Action.EAT, Action.SEEK_PRIMARY, Action.SEEK_SECONDARY,
                  Action.DIG, Action.EXPLORE),
}

# Parameter genes, in genome order, with the real-world range each decodes into.
PARAMETER_RANGES = {
    "heal_min_health": (20.0, 90.0),    # Worker only gives health above this
    "heal_target_health": (50.0, 100.0), # Worker stops giving once the queen reaches this
    "heal_amount": (1.0, 20.0),          # Health moved per transfer
    "danger_aversion": (0.0, 1.0),       # Above 0.5, seeking avoids dangerous cells
}


class GenomeLayout:
    """
    Maps (role, action, sensor) and parameter names onto offsets of the flat
    gene buffer. Action blocks come first, role by role, followed by one gene
    per named parameter.
    """
    def __init__(self, role_actions=None, parameter_ranges=None, sensor_count=SENSOR_COUNT):
        self.role_actions = dict(role_actions or ROLE_ACTIONS)
        self.parameter_ranges = dict(parameter_ranges or PARAMETER_RANGES)
        self.sensor_count = sensor_count

        self._block_offsets = {}
        offset = 0
        for role in Role:
            for action in self.role_actions[role]:
                self._block_offsets[(role, action)] = offset
                offset += sensor_count

        self._parameter_offsets = {}
        for name in self.parameter_ranges:
            self._parameter_offsets[name] = offset
            offset += 1

        self.length = offset

    def actions_for(self, role):
        return self.role_actions[role]

    def block_slice(self, role, action):
        start = self._block_offsets[(role, action)] # KeyError for actions the role lacks
        return slice(start, start + self.sensor_count)

    def weight_index(self, role, action, sensor):
        if not 0 <= sensor < self.sensor_count:
            raise IndexError(f"sensor index {sensor} outside 0..{self.sensor_count - 1}")
        return self._block_offsets[(role, action)] + sensor

    def parameter_index(self, name):
        return self._parameter_offsets[name]

    def decode_parameter(self, name, gene):
        """Maps a gene in [-1, 1] linearly onto the parameter's named range."""
        low, high = self.parameter_ranges[name]
        return low + (gene + 1.0) / 2.0 * (high - low)


DEFAULT_LAYOUT = GenomeLayout()
GENOME_LENGTH = DEFAULT_LAYOUT.length


def gaussian(rng, sigma):
    """Box-Muller transform: one N(0, sigma) sample from two uniform draws."""
    u1 = 1.0 - rng.random() # (0, 1], keeps log() finite
    u2 = rng.random()
    return sigma * math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)


class Genome:
    """
    An immutable, fixed-length vector of genes in [-1, 1].
    Mutation and crossover always build a new Genome; the underlying
    numpy buffer is flagged read-only.
    """
    __slots__ = ("_values",)

    def __init__(self, values):
        array = np.array(values, dtype=np.float64)
        if array.ndim != 1:
            raise ValueError("a genome is a flat sequence of genes")
        array.flags.writeable = False
        self._values = array

    @classmethod
    def random(cls, length, rng):
        """Samples every gene uniformly from [-1, 1]."""
        return cls([rng.uniform(-1.0, 1.0) for _ in range(length)])

    @property
    def values(self):
        return self._values

    def __len__(self):
        return len(self._values)

    def __getitem__(self, index):
        return float(self._values[index])

    def __eq__(self, other):
        if not isinstance(other, Genome):
            return NotImplemented
        return np.array_equal(self._values, other._values)

    def __hash__(self):
        return hash(self._values.tobytes())

    def tobytes(self):
        return self._values.tobytes()

    def fits(self, layout=DEFAULT_LAYOUT):
        return len(self._values) >= layout.length

    def action_block(self, role, action, layout=DEFAULT_LAYOUT):
        return self._values[layout.block_slice(role, action)]

    def weight(self, role, action, sensor, layout=DEFAULT_LAYOUT):
        return float(self._values[layout.weight_index(role, action, sensor)])

    def parameter(self, name, layout=DEFAULT_LAYOUT):
        gene = float(self._values[layout.parameter_index(name)])
        return layout.decode_parameter(name, gene)

    def mutated(self, mutation_rate, sigma, rng):
        """
        Returns a mutated copy. Each gene has a `mutation_rate` chance of
        receiving Gaussian noise; results are clamped back into [-1, 1].
        """
        genes = self._values.copy()
        for i in range(len(genes)):
            if rng.random() < mutation_rate:
                genes[i] += gaussian(rng, sigma)
        return Genome(np.clip(genes, -1.0, 1.0))

    @staticmethod
    def crossover(parent_a, parent_b, rng):
        """
        Uniform crossover: a fair coin per gene picks which parent the child
        inherits that gene from.
        """
        if len(parent_a) != len(parent_b):
            raise ValueError("parents must have the same genome length")
        genes = [a if rng.random() < 0.5 else b
                 for a, b in zip(parent_a.values.tolist(), parent_b.values.tolist())]
        return Genome(genes)

    def __repr__(self):
        if len(self._values) == 0:
            return "Genome(len=0)"
        return f"Genome(len={len(self)}, mean={self._values.mean():.3f}, min={self._values.min():.3f}, max={self._values.max():.3f})"
