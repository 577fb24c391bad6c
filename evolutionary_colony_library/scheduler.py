# evolutionary_colony_library/scheduler.py
import logging

import numpy as np

from .config import ConfigurationError, TICK_DURATION

logger = logging.getLogger(__name__)


def episode_seed(base_seed, generation, individual_index, repeat_index):
    """Derives a reproducible 32-bit seed from the evaluation cursor."""
    sequence = np.random.SeedSequence([base_seed, generation, individual_index, repeat_index])
    return int(sequence.generate_state(1)[0])


class EpisodeScheduler:
    """
    Runs fixed-length logic ticks from real elapsed time and moves the
    genetic algorithm from one episode to the next.

    `advance()` feeds in wall-clock time; the tick cadence stays the same
    however fast or slow it is called. `run_episode()` and
    `run_generation()` run ticks back to back for headless evolution.
    """
    def __init__(self, model, genetic_algorithm, reporters=None,
                 tick_duration=TICK_DURATION, base_seed=None):
        if tick_duration <= 0:
            raise ConfigurationError("tick duration must be positive")
        if genetic_algorithm.genome_length != model.layout.length:
            raise ConfigurationError(
                f"genome length {genetic_algorithm.genome_length} does not match "
                f"the decision layout ({model.layout.length})")

        self.model = model
        self.ga = genetic_algorithm
        self.reporters = reporters if reporters is not None else genetic_algorithm.reporters
        self.tick_duration = tick_duration
        self.base_seed = genetic_algorithm.seed if base_seed is None else base_seed
        if self.base_seed < 0:
            raise ConfigurationError("base seed must be non-negative")

        self.accumulator = 0.0
        self.episodes_completed = 0
        self.last_fitness = None
        self.start_episode()

    def start_episode(self):
        seed = episode_seed(self.base_seed, *self.ga.cursor)
        logger.debug("starting episode %s with seed %d", self.ga.cursor, seed)
        self.model.setup_episode(self.ga.current_individual.genome, seed)

    def advance(self, delta_time):
        """
        Adds real elapsed time and runs one tick per whole tick duration held.
        At most one episode ends per call; the leftover time is then dropped.
        """
        self.accumulator += max(0.0, delta_time)
        while self.accumulator >= self.tick_duration:
            self.accumulator -= self.tick_duration
            if self.run_tick():
                self.accumulator = 0.0
                break

    def run_tick(self):
        """Runs one logic tick. Returns True if it ended the episode."""
        self.model.step()
        if self.model.is_finished:
            self.finish_episode()
            return True
        return False

    def finish_episode(self):
        """Scores the episode, resets the model and starts the next evaluation."""
        metrics = self.model.metrics
        fitness = metrics.fitness()
        self.ga.report_fitness(fitness)
        self.reporters.episode_completed(fitness, metrics.breakdown())
        self.model.teardown()
        self.ga.advance()
        self.episodes_completed += 1
        self.last_fitness = fitness
        self.start_episode()
        return fitness

    def run_episode(self):
        """Runs ticks until the current episode ends and returns its fitness."""
        while not self.run_tick():
            pass
        return self.last_fitness

    def run_generation(self):
        """Evaluates the rest of the current generation."""
        generation = self.ga.generation
        while self.ga.generation == generation:
            self.run_episode()

    def run(self, generations):
        for _ in range(generations):
            self.run_generation()
