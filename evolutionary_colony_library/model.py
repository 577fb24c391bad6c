# evolutionary_colony_library/model.py
import logging

from mesa import Model

from .agents import ColonyAgent
from .config import (ConfigurationError, AGENTS_PER_EPISODE, MAX_TICKS_PER_EPISODE,
                     SCENT_DECAY_RATE, DANGER_SCENT_AMOUNT,
                     FITNESS_NEST_WEIGHT, FITNESS_QUEEN_ALIVE_WEIGHT,
                     FITNESS_WORKER_SURVIVAL_WEIGHT, FITNESS_HEAL_WEIGHT)
from .genome import Role, DEFAULT_LAYOUT
from .reporting import ReporterSet
from .scent import ScentField, ScentKind

logger = logging.getLogger(__name__)


class EpisodeMetrics:
    """What happened during one episode, and the fitness it earns."""

    def __init__(self, workers_spawned=0):
        self.ticks = 0
        self.nests_built = 0
        self.queen_alive = False
        self.queen_heals = 0
        self.worker_deaths = 0
        self.workers_spawned = workers_spawned

    @property
    def worker_survival(self):
        if self.workers_spawned == 0:
            return 0.0
        return (self.workers_spawned - self.worker_deaths) / self.workers_spawned

    def breakdown(self):
        """Each weighted fitness term, keyed by name."""
        return {
            "nests": FITNESS_NEST_WEIGHT * self.nests_built,
            "queen_alive": FITNESS_QUEEN_ALIVE_WEIGHT * (1.0 if self.queen_alive else 0.0),
            "worker_survival": FITNESS_WORKER_SURVIVAL_WEIGHT * self.worker_survival,
            "heals": FITNESS_HEAL_WEIGHT * self.queen_heals,
        }

    def fitness(self):
        return sum(self.breakdown().values())


class ColonyModel(Model):
    """
    The mesa model for one colony episode at a time.
    It owns the live agents and drives the world and the scent field through
    each tick. The same model is reused episode after episode: `setup_episode`
    reseeds it and spawns the colony, `teardown` puts world and field back.
    """
    def __init__(self, world, field=None, reporters=None,
                 agent_count=AGENTS_PER_EPISODE,
                 max_ticks=MAX_TICKS_PER_EPISODE,
                 decay_rate=SCENT_DECAY_RATE,
                 layout=DEFAULT_LAYOUT):
        """
        Args:
            world (BlockWorld): Terrain the colony lives on.
            field (ScentField, optional): Scent grid; built from the world's bounds if omitted.
            reporters (ReporterSet, optional): Receives nest, heal and death events.
            agent_count (int): Agents per episode, the first of which is the queen.
            max_ticks (int): Episode length when the colony does not die out first.
            decay_rate (float): Multiplier applied to the scent field every tick.
            layout (GenomeLayout): How agents read their genome.
        """
        super().__init__()
        if agent_count < 1:
            raise ConfigurationError("an episode needs at least one agent (the queen)")
        if max_ticks < 1:
            raise ConfigurationError("max ticks per episode must be at least 1")

        self.world = world
        self.field = field if field is not None else ScentField.for_world(world)
        if self.field.shape != world.shape:
            raise ConfigurationError(
                f"scent field bounds {self.field.shape} do not match the world {world.shape}")

        self.reporters = reporters if reporters is not None else ReporterSet()
        self.agent_count = agent_count
        self.max_ticks = max_ticks
        self.decay_rate = decay_rate
        self.layout = layout

        self.live_agents = []
        self.metrics = EpisodeMetrics()
        self.tick = 0
        self.genome = None

    def random_surface_cell(self, columns):
        x, z = columns[self.random.randrange(len(columns))]
        return (x, self.world.surface_height(x, z) + 1, z)

    def setup_episode(self, genome, seed):
        """
        Resets the model state and spawns one queen plus workers, all sharing
        `genome`, at random surface cells drawn from a stream seeded with `seed`.
        """
        self.teardown()
        self.random.seed(seed)
        self.genome = genome
        self.tick = 0
        self.metrics = EpisodeMetrics(workers_spawned=self.agent_count - 1)

        columns = self.world.standable_columns()
        if not columns:
            raise ConfigurationError("the world has no surface an agent can stand on")

        for i in range(self.agent_count):
            role = Role.QUEEN if i == 0 else Role.WORKER
            agent = ColonyAgent(self, role, self.random_surface_cell(columns), genome, self.layout)
            self.live_agents.append(agent)
        self.metrics.queen_alive = True

    def step(self):
        """
        One logic tick: the field steps once, then every live agent acts once.
        Agents run from the last index to the first so that an agent removed on
        death never makes the loop skip another one. Outcomes depend on this
        order; changing it breaks reproducibility of seeded runs.
        """
        self.field.step(self.decay_rate)
        for i in range(len(self.live_agents) - 1, -1, -1):
            if i < len(self.live_agents):
                self.live_agents[i].step()
        self.tick += 1
        self.metrics.ticks = self.tick

    @property
    def is_finished(self):
        return self.tick >= self.max_ticks or not self.live_agents

    def queen_at(self, pos):
        for agent in self.live_agents:
            if agent.role is Role.QUEEN and agent.pos == pos and agent.health > 0:
                return agent
        return None

    def record_nest_built(self):
        self.metrics.nests_built += 1
        self.reporters.nest_built()

    def record_queen_healed(self):
        self.metrics.queen_heals += 1
        self.reporters.queen_healed()

    def handle_agent_death(self, agent):
        """
        Takes a dead agent out of the live set, marks the spot with danger
        scent and reports a role-tagged death.
        """
        if agent in self.live_agents:
            self.live_agents.remove(agent)
        self.field.deposit(*agent.pos, ScentKind.DANGER, DANGER_SCENT_AMOUNT)
        if agent.role is Role.QUEEN:
            self.metrics.queen_alive = False
            logger.debug("queen died at tick %d", self.tick)
            self.reporters.queen_died()
        else:
            self.metrics.worker_deaths += 1
            self.reporters.worker_died()
        agent.remove()

    def teardown(self):
        """Removes every agent and restores the world and the scent field."""
        for agent in self.live_agents:
            agent.remove()
        self.live_agents = []
        self.field.clear_all()
        self.world.reset()
