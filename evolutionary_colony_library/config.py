# evolutionary_colony_library/config.py


class ConfigurationError(ValueError):
    """Raised at setup time when run parameters cannot work together."""


# World Parameters
WORLD_SIZE_X = 48
WORLD_SIZE_Y = 24
WORLD_SIZE_Z = 48
TERRAIN_SEED = 7
TERRAIN_BASE_HEIGHT = 6 # Lowest surface layer
TERRAIN_HEIGHT_VARIATION = 6 # Surface rises up to this many layers above the base
FOOD_BLOCK_PROBABILITY = 0.06 # Chance a surface block is food (mulch)
HAZARD_BLOCK_PROBABILITY = 0.03 # Chance a surface block is hazardous (acid)
OBSTACLE_BLOCK_PROBABILITY = 0.02 # Chance a surface block is a container-like obstacle

# Scheduler Parameters
TICK_DURATION = 1.0 / 60.0 # Seconds of real time per logic tick
MAX_TICKS_PER_EPISODE = 1000
AGENTS_PER_EPISODE = 20 # One queen, the rest workers
BASE_SEED = 1234

# Genetic Algorithm Parameters
POPULATION_SIZE = 10
EPISODES_PER_INDIVIDUAL = 3
TOURNAMENT_SIZE = 3
ELITISM_COUNT = 2
MUTATION_RATE = 0.1
MUTATION_SIGMA = 0.2
CROSSOVER_RATE = 0.7
NUMBER_OF_GENERATIONS = 50

# Scent Field Parameters
SCENT_MAX = 1000.0
SCENT_DECAY_RATE = 0.8
SCENT_DIFFUSION_RATE = 0.25 # 0 = no diffusion, 1 = full neighbour averaging
SCENT_DIFFUSION_ITERATIONS = 1
SCENT_EPSILON = 0.05 # Values below this snap to 0
SCENT_REGION_RADIUS = 1 # Headroom kept around deposits for one diffusion step

# Agent Parameters
MAX_HEALTH = 100.0
BASE_HEALTH_DECAY = 1.0
HAZARD_DECAY_MULTIPLIER = 2.0
FOOD_HEAL_AMOUNT = 30.0
BUILD_COST = 30.0
STEP_LIMIT = 2 # Max surface height difference for a single move
LOW_HEALTH_THRESHOLD = 30.0
HIGH_HEALTH_THRESHOLD = 60.0
DANGER_AVOID_THRESHOLD = 100.0 # Danger scent above this blocks a seek candidate
BROADCAST_INTERVAL = 2 # Agents deposit their role scent every N of their own ticks
QUEEN_SCENT_AMOUNT = 100.0
WORKER_SCENT_AMOUNT = 50.0
FOOD_SCENT_AMOUNT = 200.0 # Deposited by an agent that has just eaten
DANGER_SCENT_AMOUNT = 150.0 # Deposited on hazards and where an agent died

# Explore weights for the 1st/2nd/3rd farthest cell and the backtrack cell
EXPLORE_WEIGHTS = (0.50, 0.35, 0.10)
EXPLORE_BACKTRACK_WEIGHT = 0.05

# Fallback policy (used when an agent has no usable genome)
FALLBACK_EAT_HEALTH = 50.0
FALLBACK_HEAL_MIN_HEALTH = 50.0
FALLBACK_HEAL_TARGET_HEALTH = MAX_HEALTH
FALLBACK_HEAL_AMOUNT = 10.0

# Fitness calculation parameters (can be tuned)
FITNESS_NEST_WEIGHT = 10.0
FITNESS_QUEEN_ALIVE_WEIGHT = 50.0
FITNESS_WORKER_SURVIVAL_WEIGHT = 20.0 # Applied to the fraction of workers alive at the end
FITNESS_HEAL_WEIGHT = 1.0

# Plotting output
PLOT_OUTPUT_DIR = "simulation_plots"
BEST_GENOME_FILENAME = "best_genome.npy"
