import random

import numpy as np
import pytest

from evolutionary_colony_library import Action, DEFAULT_LAYOUT, Genome, GENOME_LENGTH, Role
from evolutionary_colony_library.genome import SENSOR_COUNT, gaussian


def test_layout_blocks_are_contiguous_and_parameters_trail():
    offsets = []
    for role in Role:
        for action in DEFAULT_LAYOUT.actions_for(role):
            block = DEFAULT_LAYOUT.block_slice(role, action)
            assert block.stop - block.start == SENSOR_COUNT
            offsets.append(block.start)
    assert offsets == list(range(0, len(offsets) * SENSOR_COUNT, SENSOR_COUNT))

    first_parameter = len(offsets) * SENSOR_COUNT
    indices = [DEFAULT_LAYOUT.parameter_index(name) for name in DEFAULT_LAYOUT.parameter_ranges]
    assert indices == list(range(first_parameter, first_parameter + len(indices)))
    assert GENOME_LENGTH == first_parameter + len(indices) == 103


def test_only_the_queen_has_a_build_block():
    assert Action.BUILD in DEFAULT_LAYOUT.actions_for(Role.QUEEN)
    assert Action.BUILD not in DEFAULT_LAYOUT.actions_for(Role.WORKER)
    with pytest.raises(KeyError):
        DEFAULT_LAYOUT.block_slice(Role.WORKER, Action.BUILD)


def test_weight_accessor_reads_the_flat_buffer():
    genome = Genome(np.linspace(-1.0, 1.0, GENOME_LENGTH))
    index = DEFAULT_LAYOUT.weight_index(Role.WORKER, Action.DIG, 4)
    assert genome.weight(Role.WORKER, Action.DIG, 4) == genome[index]
    assert genome.action_block(Role.WORKER, Action.DIG)[4] == genome[index]
    with pytest.raises(IndexError):
        DEFAULT_LAYOUT.weight_index(Role.WORKER, Action.DIG, SENSOR_COUNT)


def test_parameters_decode_into_their_ranges(make_genome):
    low = make_genome(parameters={"heal_amount": -1.0})
    mid = make_genome(parameters={"heal_amount": 0.0})
    high = make_genome(parameters={"heal_amount": 1.0})
    assert low.parameter("heal_amount") == pytest.approx(1.0)
    assert mid.parameter("heal_amount") == pytest.approx(10.5)
    assert high.parameter("heal_amount") == pytest.approx(20.0)


def test_genome_is_immutable():
    genome = Genome([0.1, 0.2, 0.3])
    with pytest.raises(ValueError):
        genome.values[0] = 0.5
    assert genome[0] == 0.1


def test_random_genome_stays_in_range():
    genome = Genome.random(500, random.Random(4))
    assert len(genome) == 500
    assert genome.values.min() >= -1.0
    assert genome.values.max() <= 1.0


def test_mutation_builds_a_new_clamped_genome():
    rng = random.Random(11)
    parent = Genome.random(GENOME_LENGTH, rng)
    child = parent.mutated(mutation_rate=1.0, sigma=5.0, rng=rng)

    assert child is not parent
    assert child != parent
    assert child.values.min() >= -1.0
    assert child.values.max() <= 1.0


def test_zero_mutation_rate_copies_genes():
    rng = random.Random(1)
    parent = Genome.random(20, rng)
    assert parent.mutated(0.0, 0.5, rng) == parent


def test_uniform_crossover_takes_each_gene_from_a_parent():
    rng = random.Random(2)
    parent_a = Genome(np.full(200, 0.5))
    parent_b = Genome(np.full(200, -0.5))
    child = Genome.crossover(parent_a, parent_b, rng)

    assert set(child.values.tolist()) <= {0.5, -0.5}
    from_a = int(np.count_nonzero(child.values == 0.5))
    assert 60 < from_a < 140


def test_crossover_rejects_mismatched_parents():
    with pytest.raises(ValueError):
        Genome.crossover(Genome([0.0, 0.0]), Genome([0.0]), random.Random(0))


def test_box_muller_samples_are_normal():
    rng = random.Random(5)
    samples = np.array([gaussian(rng, 0.3) for _ in range(20000)])
    assert abs(samples.mean()) < 0.02
    assert samples.std() == pytest.approx(0.3, abs=0.02)


def test_short_genome_does_not_fit_the_layout():
    assert not Genome([0.0] * 10).fits(DEFAULT_LAYOUT)
    assert Genome([0.0] * GENOME_LENGTH).fits(DEFAULT_LAYOUT)


def test_equal_genomes_hash_equally():
    a = Genome([0.25, -0.75])
    b = Genome([0.25, -0.75])
    assert a == b
    assert hash(a) == hash(b)
    assert a.tobytes() == b.tobytes()
