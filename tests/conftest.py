import numpy as np
import pytest

from evolutionary_colony_library import (
    BlockWorld,
    ColonyAgent,
    ColonyModel,
    DEFAULT_LAYOUT,
    EventLogReporter,
    Genome,
    ReporterSet,
    ScentField,
)

SURFACE = 2 # Top solid layer of the flat test world
STAND_Y = SURFACE + 1


@pytest.fixture
def flat_world():
    return BlockWorld.flat(12, 8, 12, height=SURFACE)


@pytest.fixture
def event_log():
    return EventLogReporter()


@pytest.fixture
def model(flat_world, event_log):
    field = ScentField.for_world(flat_world)
    return ColonyModel(flat_world, field, ReporterSet([event_log]), agent_count=5, max_ticks=20)


@pytest.fixture
def spawn(model):
    """Places a single agent in the model's live set."""
    def _spawn(role, x=5, z=5, genome=None, health=None):
        agent = ColonyAgent(model, role, (x, STAND_Y, z), genome)
        if health is not None:
            agent.health = health
        model.live_agents.append(agent)
        return agent
    return _spawn


@pytest.fixture
def make_genome():
    """Builds a layout-sized genome from a fill value plus explicit gene overrides."""
    def _make(fill=0.0, blocks=None, parameters=None):
        values = np.full(DEFAULT_LAYOUT.length, fill, dtype=np.float64)
        for (role, action), weights in (blocks or {}).items():
            values[DEFAULT_LAYOUT.block_slice(role, action)] = weights
        for name, gene in (parameters or {}).items():
            values[DEFAULT_LAYOUT.parameter_index(name)] = gene
        return Genome(values)
    return _make
