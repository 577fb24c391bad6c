# evolutionary_colony_library/evolution.py
import logging
import random

import numpy as np

from .config import (ConfigurationError, POPULATION_SIZE, EPISODES_PER_INDIVIDUAL,
                     TOURNAMENT_SIZE, ELITISM_COUNT, MUTATION_RATE, MUTATION_SIGMA,
                     CROSSOVER_RATE, BASE_SEED)
from .genome import Genome, GENOME_LENGTH
from .reporting import ReporterSet

logger = logging.getLogger(__name__)


class Individual:
    """A genome plus the running sum of the episode fitness it has collected."""

    def __init__(self, genome):
        self.genome = genome
        self.fitness_sum = 0.0
        self.samples = 0

    @property
    def average_fitness(self):
        if self.samples == 0:
            return float("-inf")
        return self.fitness_sum / self.samples

    def add_sample(self, fitness):
        self.fitness_sum += fitness
        self.samples += 1

    def reset(self):
        self.fitness_sum = 0.0
        self.samples = 0

    def __repr__(self):
        return f"Individual(avg={self.average_fitness:.3f}, samples={self.samples}, {self.genome!r})"


class GeneticAlgorithm:
    """
    Owns the population across episodes and generations.

    Every individual is evaluated over `episodes_per_individual` episodes; the
    evaluation cursor walks (generation, individual, repeat) in that nesting
    order and a new generation is bred once every individual has been scored.
    """
    def __init__(self, genome_length=GENOME_LENGTH,
                 population_size=POPULATION_SIZE,
                 episodes_per_individual=EPISODES_PER_INDIVIDUAL,
                 tournament_size=TOURNAMENT_SIZE,
                 elitism_count=ELITISM_COUNT,
                 mutation_rate=MUTATION_RATE,
                 mutation_sigma=MUTATION_SIGMA,
                 crossover_rate=CROSSOVER_RATE,
                 seed=BASE_SEED,
                 reporters=None,
                 expected_genome_length=None):
        if population_size < 1:
            raise ConfigurationError("population size must be at least 1")
        if genome_length < 1:
            raise ConfigurationError("genome length must be at least 1")
        if episodes_per_individual < 1:
            raise ConfigurationError("each individual needs at least one episode")
        if tournament_size < 1:
            raise ConfigurationError("tournament size must be at least 1")
        if tournament_size > population_size:
            raise ConfigurationError(
                f"tournament size {tournament_size} is larger than the population ({population_size})")
        if expected_genome_length is not None and genome_length != expected_genome_length:
            raise ConfigurationError(
                f"genome length {genome_length} does not match the decision layout ({expected_genome_length})")

        self.genome_length = genome_length
        self.population_size = population_size
        self.episodes_per_individual = episodes_per_individual
        self.tournament_size = min(max(tournament_size, 2), population_size)
        self.elitism_count = min(max(elitism_count, 0), population_size)
        self.mutation_rate = mutation_rate
        self.mutation_sigma = mutation_sigma
        self.crossover_rate = crossover_rate
        self.seed = seed
        self.reporters = reporters if reporters is not None else ReporterSet()

        self.random = random.Random(seed)
        self.generation = 0
        self.individual_index = 0
        self.repeat_index = 0
        self.best_genome = None
        self.best_fitness = float("-inf")
        self.population = [Individual(Genome.random(genome_length, self.random))
                           for _ in range(population_size)]

    @property
    def current_individual(self):
        return self.population[self.individual_index]

    @property
    def cursor(self):
        """(generation, individual index, episode-repeat index) of the next evaluation."""
        return (self.generation, self.individual_index, self.repeat_index)

    def report_fitness(self, fitness):
        """Folds one episode's fitness into the individual under evaluation."""
        self.current_individual.add_sample(fitness)

    def advance(self):
        """
        Moves the cursor to the next evaluation. Returns True when this
        completed a generation and a new population was bred.
        """
        self.repeat_index += 1
        if self.repeat_index < self.episodes_per_individual:
            return False
        self.repeat_index = 0
        self.individual_index += 1
        if self.individual_index < self.population_size:
            return False
        self.evolve_population()
        return True

    def tournament_selection(self, population):
        """Samples `tournament_size` individuals with replacement and returns the fittest."""
        if self.tournament_size >= len(population):
            # A tournament as large as the population is decided by the population's best
            return max(population, key=lambda ind: ind.average_fitness)
        best_participant = None
        for _ in range(self.tournament_size):
            participant = population[self.random.randrange(len(population))]
            if best_participant is None or participant.average_fitness > best_participant.average_fitness:
                best_participant = participant
        return best_participant

    def breed(self, parent_a, parent_b):
        # Crossover
        if self.random.random() < self.crossover_rate:
            child = Genome.crossover(parent_a.genome, parent_b.genome, self.random)
        else: # Cloning one parent
            child = (parent_a if self.random.random() < 0.5 else parent_b).genome
        # Mutation
        return child.mutated(self.mutation_rate, self.mutation_sigma, self.random)

    def evolve_population(self):
        """Replaces the population with elites plus bred offspring and resets the cursor."""
        # Sort individuals by fitness in descending order (higher fitness is better)
        ranked = sorted(self.population, key=lambda ind: ind.average_fitness, reverse=True)
        averages = [ind.average_fitness for ind in ranked]
        best_fitness = averages[0]
        median_fitness = float(np.median(averages))

        if best_fitness > self.best_fitness:
            self.best_fitness = best_fitness
            self.best_genome = ranked[0].genome

        # 1. Elitism: carry the best genomes over untouched
        next_population = [Individual(ind.genome) for ind in ranked[:self.elitism_count]]

        # 2. Fill the rest with offspring
        while len(next_population) < self.population_size:
            parent_a = self.tournament_selection(ranked)
            parent_b = self.tournament_selection(ranked)
            next_population.append(Individual(self.breed(parent_a, parent_b)))

        completed = self.generation
        self.population = next_population
        self.generation += 1
        self.individual_index = 0
        self.repeat_index = 0
        logger.info("generation %d bred: best %.3f, median %.3f", completed, best_fitness, median_fitness)
        self.reporters.generation_completed(completed, best_fitness, median_fitness)
