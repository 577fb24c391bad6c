# evolutionary_colony_library/reporting.py
"""
Reporters receive simulation events. They are fire-and-forget: nothing in
the simulation reads a value back from them.
"""
import time


class BaseReporter:
    """Definition of the reporter interface; every hook is a no-op by default."""

    def generation_completed(self, generation, best_fitness, median_fitness):
        pass

    def episode_completed(self, fitness, breakdown):
        pass

    def nest_built(self):
        pass

    def queen_died(self):
        pass

    def worker_died(self):
        pass

    def queen_healed(self):
        pass


class ReporterSet:
    """Keeps the attached reporters and forwards every event to each of them."""

    def __init__(self, reporters=None):
        self.reporters = list(reporters or [])

    def add(self, reporter):
        self.reporters.append(reporter)

    def generation_completed(self, generation, best_fitness, median_fitness):
        for r in self.reporters:
            r.generation_completed(generation, best_fitness, median_fitness)

    def episode_completed(self, fitness, breakdown):
        for r in self.reporters:
            r.episode_completed(fitness, breakdown)

    def nest_built(self):
        for r in self.reporters:
            r.nest_built()

    def queen_died(self):
        for r in self.reporters:
            r.queen_died()

    def worker_died(self):
        for r in self.reporters:
            r.worker_died()

    def queen_healed(self):
        for r in self.reporters:
            r.queen_healed()


class StdOutReporter(BaseReporter):
    """Prints generation summaries, and episode summaries when `show_episodes` is set."""

    def __init__(self, show_episodes=False):
        self.show_episodes = show_episodes
        self.episode_count = 0
        self.generation_start_time = time.time()

    def episode_completed(self, fitness, breakdown):
        self.episode_count += 1
        if self.show_episodes:
            details = ", ".join(f"{name}: {value:.2f}" for name, value in breakdown.items())
            print(f"  Episode {self.episode_count}: fitness {fitness:.2f} ({details})")

    def generation_completed(self, generation, best_fitness, median_fitness):
        elapsed = time.time() - self.generation_start_time
        print(f"\n ****** Generation {generation} complete ****** ")
        print(f"Best average fitness: {best_fitness:.3f} - median: {median_fitness:.3f}")
        print(f"Episodes evaluated: {self.episode_count} in {elapsed:.2f} sec")
        self.episode_count = 0
        self.generation_start_time = time.time()

    def queen_died(self):
        if self.show_episodes:
            print("  The queen is dead.")


class StatisticsReporter(BaseReporter):
    """Keeps per-generation fitness history and running event counters."""

    def __init__(self):
        self.generations = []
        self.best_fitness = []
        self.median_fitness = []
        self.episode_fitness = []
        self.counters = {"nests_built": 0, "queen_deaths": 0, "worker_deaths": 0, "queen_heals": 0}

    def generation_completed(self, generation, best_fitness, median_fitness):
        self.generations.append(generation)
        self.best_fitness.append(best_fitness)
        self.median_fitness.append(median_fitness)

    def episode_completed(self, fitness, breakdown):
        self.episode_fitness.append(fitness)

    def nest_built(self):
        self.counters["nests_built"] += 1

    def queen_died(self):
        self.counters["queen_deaths"] += 1

    def worker_died(self):
        self.counters["worker_deaths"] += 1

    def queen_healed(self):
        self.counters["queen_heals"] += 1


class EventLogReporter(BaseReporter):
    """Records every event, in order, as a tuple. Useful to compare two runs."""

    def __init__(self):
        self.events = []

    def generation_completed(self, generation, best_fitness, median_fitness):
        self.events.append(("generation_completed", generation, best_fitness, median_fitness))

    def episode_completed(self, fitness, breakdown):
        self.events.append(("episode_completed", fitness, tuple(sorted(breakdown.items()))))

    def nest_built(self):
        self.events.append(("nest_built",))

    def queen_died(self):
        self.events.append(("queen_died",))

    def worker_died(self):
        self.events.append(("worker_died",))

    def queen_healed(self):
        self.events.append(("queen_healed",))
