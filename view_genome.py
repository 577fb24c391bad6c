import argparse

import numpy as np

from evolutionary_colony_library import DEFAULT_LAYOUT, Genome, Role
from evolutionary_colony_library.config import BEST_GENOME_FILENAME

SENSOR_NAMES = ['HPLow', 'HPHigh', 'OnFood', 'OnObst', 'ScentA', 'ScentB', 'ScentC', 'Noise', 'OnHazard']


def describe_genome(genome, layout=DEFAULT_LAYOUT):
    """
    Returns the genome as printable lines: one weight row per (role, action)
    block, then every parameter gene decoded into its real range.
    """
    lines = []
    header = f"{'':>16}" + "".join(f"{name:>9}" for name in SENSOR_NAMES)
    for role in Role:
        lines.append(f"[{role.value}]")
        lines.append(header)
        for action in layout.actions_for(role):
            block = genome.action_block(role, action, layout)
            lines.append(f"{action.name.lower():>16}" + "".join(f"{w:>9.3f}" for w in block))
    lines.append("[parameters]")
    for name in layout.parameter_ranges:
        low, high = layout.parameter_ranges[name]
        lines.append(f"{name:>20} = {genome.parameter(name, layout):8.3f}  (range {low:g}..{high:g})")
    return lines


def view_genome(genome_path):
    """Loads a saved genome and prints its weight blocks."""
    try:
        values = np.load(genome_path)
    except FileNotFoundError:
        print(f"Error: Genome file '{genome_path}' not found.")
        return
    except (OSError, ValueError) as e:
        print(f"Error loading genome from '{genome_path}': {e}")
        return

    genome = Genome(values)
    print(f"\nLoaded genome from '{genome_path}':")
    print(genome)
    if not genome.fits(DEFAULT_LAYOUT):
        print(f"Genome has {len(genome)} genes; {DEFAULT_LAYOUT.length} are needed. "
              "Agents carrying it use the fallback policy.")
        return
    for line in describe_genome(genome):
        print(line)


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Print a saved colony genome.")
    parser.add_argument("genome", nargs="?", default=BEST_GENOME_FILENAME)
    view_genome(parser.parse_args().genome)
