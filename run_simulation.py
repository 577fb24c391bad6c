# run_simulation.py
import argparse
import logging
import os
import time

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

# Import from the local library package
from evolutionary_colony_library import (
    BlockWorld,
    ColonyModel,
    EpisodeScheduler,
    GeneticAlgorithm,
    ReporterSet,
    ScentField,
    StatisticsReporter,
    StdOutReporter,
    DEFAULT_LAYOUT,
    config as sim_config,
)


def generate_and_save_plots(stats_reporter, output_dir):
    if not stats_reporter.generations:
        print("No completed generations. Skipping plot generation.")
        return
    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        print(f"Error creating plot directory {output_dir}: {e}. Plots will not be saved.")
        return

    plt.figure(figsize=(12, 7))
    plt.plot(stats_reporter.generations, stats_reporter.best_fitness, label="Best Average Fitness", marker='o', linestyle='-')
    plt.plot(stats_reporter.generations, stats_reporter.median_fitness, label="Median Average Fitness", marker='x', linestyle='--')
    plt.title("Colony Fitness over Generations", fontsize=16)
    plt.xlabel("Generation", fontsize=14)
    plt.ylabel("Fitness", fontsize=14)
    plt.legend(fontsize=12)
    plt.grid(True, linestyle=':', alpha=0.7)
    plt.tight_layout()
    plot_path = os.path.join(output_dir, "fitness_over_generations.png")
    try:
        plt.savefig(plot_path)
        print(f"Saved fitness plot to {plot_path}")
    except OSError as e:
        print(f"Error saving fitness plot: {e}")
    plt.close()

    if stats_reporter.episode_fitness:
        plt.figure(figsize=(12, 7))
        plt.plot(range(1, len(stats_reporter.episode_fitness) + 1), stats_reporter.episode_fitness,
                 label="Episode Fitness", marker='.', linestyle='none', alpha=0.6)
        plt.title("Fitness of Every Episode", fontsize=16)
        plt.xlabel("Episode", fontsize=14)
        plt.ylabel("Fitness", fontsize=14)
        plt.legend(fontsize=12)
        plt.grid(True, linestyle=':', alpha=0.7)
        plt.tight_layout()
        plot_path = os.path.join(output_dir, "episode_fitness.png")
        try:
            plt.savefig(plot_path)
            print(f"Saved episode plot to {plot_path}")
        except OSError as e:
            print(f"Error saving episode plot: {e}")
        plt.close()


def save_best_genome(genetic_algorithm, path):
    if genetic_algorithm.best_genome is None:
        print("No genome has completed a generation yet. Nothing saved.")
        return
    try:
        np.save(path, genetic_algorithm.best_genome.values)
        print(f"Saved best genome (average fitness {genetic_algorithm.best_fitness:.2f}) to {path}")
    except OSError as e:
        print(f"Error saving best genome to {path}: {e}")


def run_realtime(scheduler, seconds, time_scale):
    """Drives the scheduler from the wall clock, sped up by `time_scale`."""
    start = last = time.perf_counter()
    while True:
        now = time.perf_counter()
        if now - start >= seconds:
            break
        scheduler.advance((now - last) * time_scale)
        last = now
        time.sleep(scheduler.tick_duration)


def run_simulation(args):
    reporters = ReporterSet()
    reporters.add(StdOutReporter(show_episodes=args.show_episodes))
    stats_reporter = StatisticsReporter()
    reporters.add(stats_reporter)

    world = BlockWorld(seed=args.terrain_seed)
    field = ScentField.for_world(world,
                                 diffusion_rate=args.diffusion_rate,
                                 diffusion_iterations=args.diffusion_iterations,
                                 epsilon=args.epsilon)
    model = ColonyModel(world, field, reporters,
                        agent_count=args.agents,
                        max_ticks=args.max_ticks,
                        decay_rate=args.decay_rate)
    genetic_algorithm = GeneticAlgorithm(
        genome_length=DEFAULT_LAYOUT.length,
        population_size=args.population,
        episodes_per_individual=args.episodes,
        tournament_size=args.tournament,
        elitism_count=args.elitism,
        mutation_rate=args.mutation_rate,
        mutation_sigma=args.mutation_sigma,
        crossover_rate=args.crossover_rate,
        seed=args.seed,
        reporters=reporters,
    )
    scheduler = EpisodeScheduler(model, genetic_algorithm, reporters)

    print(f"Population size: {genetic_algorithm.population_size}, genome length: {genetic_algorithm.genome_length}")
    if args.realtime:
        print(f"Running in real time for {args.realtime:.0f} s at x{args.time_scale}")
        run_realtime(scheduler, args.realtime, args.time_scale)
    else:
        for gen_num in range(args.generations):
            print(f"\n--- Starting Generation {gen_num + 1}/{args.generations} ---")
            scheduler.run_generation()

    counters = stats_reporter.counters
    print(f"\nNests built: {counters['nests_built']}, queen heals: {counters['queen_heals']}, "
          f"queen deaths: {counters['queen_deaths']}, worker deaths: {counters['worker_deaths']}")
    save_best_genome(genetic_algorithm, args.output)
    generate_and_save_plots(stats_reporter, args.plot_dir)
    print("Simulation finished.")


def build_parser():
    parser = argparse.ArgumentParser(description="Evolve ant colony policies with a genetic algorithm.")
    parser.add_argument("--generations", type=int, default=sim_config.NUMBER_OF_GENERATIONS)
    parser.add_argument("--population", type=int, default=sim_config.POPULATION_SIZE)
    parser.add_argument("--episodes", type=int, default=sim_config.EPISODES_PER_INDIVIDUAL,
                        help="Episodes averaged per individual")
    parser.add_argument("--tournament", type=int, default=sim_config.TOURNAMENT_SIZE)
    parser.add_argument("--elitism", type=int, default=sim_config.ELITISM_COUNT)
    parser.add_argument("--mutation-rate", type=float, default=sim_config.MUTATION_RATE)
    parser.add_argument("--mutation-sigma", type=float, default=sim_config.MUTATION_SIGMA)
    parser.add_argument("--crossover-rate", type=float, default=sim_config.CROSSOVER_RATE)
    parser.add_argument("--max-ticks", type=int, default=sim_config.MAX_TICKS_PER_EPISODE)
    parser.add_argument("--agents", type=int, default=sim_config.AGENTS_PER_EPISODE)
    parser.add_argument("--decay-rate", type=float, default=sim_config.SCENT_DECAY_RATE)
    parser.add_argument("--diffusion-rate", type=float, default=sim_config.SCENT_DIFFUSION_RATE)
    parser.add_argument("--diffusion-iterations", type=int, default=sim_config.SCENT_DIFFUSION_ITERATIONS)
    parser.add_argument("--epsilon", type=float, default=sim_config.SCENT_EPSILON)
    parser.add_argument("--seed", type=int, default=sim_config.BASE_SEED)
    parser.add_argument("--terrain-seed", type=int, default=sim_config.TERRAIN_SEED)
    parser.add_argument("--realtime", type=float, default=0.0,
                        help="Run against the wall clock for this many seconds instead of whole generations")
    parser.add_argument("--time-scale", type=float, default=1.0,
                        help="Real-time speed-up factor (only with --realtime)")
    parser.add_argument("--show-episodes", action="store_true")
    parser.add_argument("--output", default=sim_config.BEST_GENOME_FILENAME)
    parser.add_argument("--plot-dir", default=sim_config.PLOT_OUTPUT_DIR)
    parser.add_argument("--log-level", default="WARNING")
    return parser


if __name__ == '__main__':
    arguments = build_parser().parse_args()
    logging.basicConfig(level=getattr(logging, arguments.log_level.upper(), logging.WARNING),
                        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    run_simulation(arguments)
