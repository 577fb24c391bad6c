# evolutionary_colony_library/__init__.py

# Key classes are exposed here for easier import.

from .config import ConfigurationError
from .genome import Action, Genome, GenomeLayout, Role, DEFAULT_LAYOUT, GENOME_LENGTH
from .evolution import GeneticAlgorithm, Individual
from .scent import ScentField, ScentKind
from .world import BlockKind, BlockWorld
from .agents import ColonyAgent
from .model import ColonyModel, EpisodeMetrics
from .scheduler import EpisodeScheduler, episode_seed
from .reporting import (BaseReporter, ReporterSet, StdOutReporter,
                        StatisticsReporter, EventLogReporter)

__version__ = "0.1.0"
