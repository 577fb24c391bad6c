import numpy as np
import pytest

from evolutionary_colony_library import Action, BlockKind, Genome, Role, ScentKind

from conftest import STAND_Y, SURFACE


def test_health_decay_doubles_on_hazard(model, spawn, flat_world):
    flat_world.set_block_kind(5, SURFACE, 5, BlockKind.HAZARD)
    worker = spawn(Role.WORKER, health=10.0)

    worker.step()

    assert worker.health == pytest.approx(8.0)
    assert worker.is_alive
    assert worker in model.live_agents


def test_death_removes_agent_and_reports_role(model, spawn, event_log):
    worker = spawn(Role.WORKER, health=1.0)
    queen = spawn(Role.QUEEN, x=9, z=9, health=1.0)

    worker.step()
    queen.step()

    assert model.live_agents == []
    assert ("worker_died",) in event_log.events
    assert ("queen_died",) in event_log.events
    assert model.metrics.worker_deaths == 1
    assert not model.metrics.queen_alive
    assert model.field.get(5, STAND_Y, 5, ScentKind.DANGER) > 0


def test_dead_agent_does_nothing(spawn):
    worker = spawn(Role.WORKER)
    worker.health = 0.0
    worker.step()
    assert worker.ticks == 0
    assert worker.pos == (5, STAND_Y, 5)


def test_queen_builds_nest(model, spawn, event_log, flat_world):
    queen = spawn(Role.QUEEN, health=60.0)

    assert queen.build()

    assert queen.health == pytest.approx(30.0)
    assert flat_world.block_kind(5, SURFACE, 5) is BlockKind.NEST
    assert event_log.events.count(("nest_built",)) == 1
    assert model.metrics.nests_built == 1


def test_build_is_refused(spawn, flat_world):
    weak_queen = spawn(Role.QUEEN, health=20.0)
    assert not weak_queen.build()

    flat_world.set_block_kind(2, SURFACE, 2, BlockKind.OBSTACLE)
    blocked_queen = spawn(Role.QUEEN, x=2, z=2, health=80.0)
    assert not blocked_queen.build()
    assert blocked_queen.health == 80.0

    worker = spawn(Role.WORKER, x=8, z=8)
    assert not worker.build()
    assert flat_world.block_kind(8, SURFACE, 8) is BlockKind.OTHER


def test_queen_can_build_again_on_a_nest(model, spawn, event_log, flat_world):
    flat_world.set_block_kind(5, SURFACE, 5, BlockKind.NEST)
    queen = spawn(Role.QUEEN, health=60.0)

    assert queen.build()
    assert queen.build()

    assert queen.health == pytest.approx(0.0)
    assert flat_world.block_kind(5, SURFACE, 5) is BlockKind.NEST
    assert event_log.events.count(("nest_built",)) == 2
    assert model.metrics.nests_built == 2


def test_queen_builds_over_an_empty_cell(model, spawn, flat_world):
    queen = spawn(Role.QUEEN, health=60.0)
    queen.pos = (5, STAND_Y + 1, 5)
    assert flat_world.block_kind(5, STAND_Y, 5) is BlockKind.EMPTY

    assert queen.build()

    assert queen.health == pytest.approx(30.0)
    assert flat_world.block_kind(5, STAND_Y, 5) is BlockKind.NEST
    assert model.metrics.nests_built == 1


def test_eat_consumes_food_and_heals(model, spawn, flat_world):
    flat_world.set_block_kind(5, SURFACE, 5, BlockKind.FOOD)
    worker = spawn(Role.WORKER, health=90.0)

    assert worker.eat()

    assert worker.health == 100.0
    assert flat_world.block_kind(5, SURFACE, 5) is BlockKind.EMPTY
    assert worker.pos == (5, SURFACE, 5)
    assert model.field.get(5, SURFACE, 5, ScentKind.FOOD) > 0
    assert not worker.eat()


def test_dig_clears_diggable_blocks_only(spawn, flat_world):
    worker = spawn(Role.WORKER)
    assert worker.dig()
    assert flat_world.block_kind(5, SURFACE, 5) is BlockKind.EMPTY
    assert worker.pos == (5, SURFACE, 5)

    flat_world.set_block_kind(5, SURFACE - 1, 5, BlockKind.OBSTACLE)
    assert not worker.dig()
    assert flat_world.block_kind(5, SURFACE - 1, 5) is BlockKind.OBSTACLE


def test_worker_heals_nearby_queen(model, spawn, event_log):
    queen = spawn(Role.QUEEN, x=6, z=5, health=40.0)
    worker = spawn(Role.WORKER, health=80.0)

    assert worker.try_heal_queen()

    # Fallback policy moves 10 health per transfer
    assert worker.health == pytest.approx(70.0)
    assert queen.health == pytest.approx(50.0)
    assert event_log.events == [("queen_healed",)]
    assert model.metrics.queen_heals == 1


def test_giver_always_keeps_one_health(spawn, make_genome):
    generous = make_genome(parameters={"heal_min_health": -1.0,
                                       "heal_target_health": 1.0,
                                       "heal_amount": 1.0})
    queen = spawn(Role.QUEEN, health=30.0)
    worker = spawn(Role.WORKER, genome=generous, health=21.0)

    assert worker.try_heal_queen()
    assert worker.health == pytest.approx(1.0)
    assert queen.health == pytest.approx(50.0)


def test_no_heal_when_queen_is_far_or_healthy(spawn):
    queen = spawn(Role.QUEEN, x=10, z=10, health=20.0)
    worker = spawn(Role.WORKER, health=90.0)
    assert not worker.try_heal_queen()

    queen.pos = worker.pos
    queen.health = 100.0
    assert not worker.try_heal_queen()


def test_sensory_vector_layout(model, spawn, flat_world):
    flat_world.set_block_kind(5, SURFACE, 5, BlockKind.FOOD)
    worker = spawn(Role.WORKER, health=20.0)
    model.field.deposit(5, STAND_Y, 5, ScentKind.QUEEN, 500.0)
    model.field.deposit(5, STAND_Y, 5, ScentKind.FOOD, 1000.0)
    model.field.deposit(5, STAND_Y, 5, ScentKind.WORKER, 800.0)

    inputs = worker.get_inputs()

    assert inputs.shape == (9,)
    assert inputs[0] == 1.0 and inputs[1] == 0.0
    assert inputs[2] == 1.0 and inputs[3] == 0.0
    assert inputs[4] == pytest.approx(0.5)   # queen scent, sensed by workers
    assert inputs[5] == pytest.approx(1.0)   # food scent
    assert inputs[6] == 0.0                  # danger scent
    assert 0.0 <= inputs[7] < 1.0
    assert inputs[8] == 0.0


def test_queen_senses_worker_scent(model, spawn, flat_world):
    flat_world.set_block_kind(5, SURFACE, 5, BlockKind.HAZARD)
    queen = spawn(Role.QUEEN, health=70.0)
    model.field.deposit(5, STAND_Y, 5, ScentKind.WORKER, 250.0)

    inputs = queen.get_inputs()

    assert inputs[1] == 1.0
    assert inputs[4] == pytest.approx(0.25)
    assert inputs[8] == 1.0


def test_tied_scores_follow_priority(spawn, make_genome):
    zeros = make_genome(0.0)
    worker = spawn(Role.WORKER, genome=zeros)
    queen = spawn(Role.QUEEN, genome=zeros)
    inputs = np.ones(9)
    assert worker.choose_action(inputs) is Action.EAT
    assert queen.choose_action(inputs) is Action.EAT

    seek_or_build = make_genome(0.0, blocks={
        (Role.QUEEN, Action.SEEK_SECONDARY): [1.0] * 9,
        (Role.QUEEN, Action.BUILD): [1.0] * 9,
    })
    queen = spawn(Role.QUEEN, genome=seek_or_build)
    assert queen.choose_action(inputs) is Action.SEEK_SECONDARY


def test_highest_desire_wins(spawn, make_genome):
    genome = make_genome(-0.5, blocks={(Role.WORKER, Action.DIG): [0.2] * 9})
    worker = spawn(Role.WORKER, genome=genome, health=80.0)
    assert worker.choose_action(worker.get_inputs()) is Action.DIG


def test_short_genome_uses_fallback_policy(spawn, flat_world):
    short = Genome([0.9] * 10)
    queen = spawn(Role.QUEEN, genome=short)
    assert not queen.uses_genome
    assert queen.choose_action(queen.get_inputs()) is Action.BUILD

    flat_world.set_block_kind(3, SURFACE, 3, BlockKind.FOOD)
    hungry = spawn(Role.WORKER, x=3, z=3, health=20.0)
    assert hungry.choose_action(hungry.get_inputs()) is Action.EAT

    idle = spawn(Role.WORKER, x=8, z=8)
    assert idle.choose_action(idle.get_inputs()) is Action.EXPLORE


def test_step_limited_moves(spawn, flat_world):
    worker = spawn(Role.WORKER)
    assert len(worker.step_limited_moves()) == 8

    # A column 3 layers higher is out of reach; 2 higher is fine
    for y in range(SURFACE + 1, SURFACE + 4):
        flat_world.set_block_kind(6, y, 5, BlockKind.OTHER)
    for y in range(SURFACE + 1, SURFACE + 3):
        flat_world.set_block_kind(4, y, 5, BlockKind.OTHER)
    moves = worker.step_limited_moves()
    assert len(moves) == 7
    assert (4, SURFACE + 3, 5) in moves
    assert all(cell[0] != 6 or cell[2] != 5 for cell in moves)

    corner = spawn(Role.WORKER, x=0, z=0)
    assert len(corner.step_limited_moves()) == 3


def test_seek_follows_strongest_scent(model, spawn):
    worker = spawn(Role.WORKER)
    model.field.deposit(6, STAND_Y, 6, ScentKind.QUEEN, 40.0)
    model.field.deposit(4, STAND_Y, 5, ScentKind.QUEEN, 90.0)

    assert worker.seek(ScentKind.QUEEN, avoid_danger=False)
    assert worker.pos == (4, STAND_Y, 5)
    assert worker.last_pos == (5, STAND_Y, 5)


def test_seek_avoids_danger(model, spawn):
    worker = spawn(Role.WORKER)
    model.field.deposit(6, STAND_Y, 6, ScentKind.QUEEN, 40.0)
    model.field.deposit(4, STAND_Y, 5, ScentKind.QUEEN, 90.0)
    model.field.deposit(4, STAND_Y, 5, ScentKind.DANGER, 500.0)

    worker.seek(ScentKind.QUEEN, avoid_danger=True)
    assert worker.pos == (6, STAND_Y, 6)


def test_seek_without_scent_explores(spawn):
    worker = spawn(Role.WORKER)
    assert worker.seek(ScentKind.FOOD, avoid_danger=True)
    assert worker.pos != (5, STAND_Y, 5)
    assert worker.last_pos == (5, STAND_Y, 5)


def test_explore_prefers_moving_away(model, spawn):
    model.random.seed(21)
    worker = spawn(Role.WORKER)
    forward = {(6, STAND_Y, 6), (6, STAND_Y, 4), (6, STAND_Y, 5)}
    backtrack = (4, STAND_Y, 5)
    picks = []
    for _ in range(1000):
        worker.pos = (5, STAND_Y, 5)
        worker.last_pos = backtrack
        worker.explore()
        picks.append(worker.pos)

    assert set(picks) <= forward | {backtrack}
    assert picks.count(backtrack) > 0
    # The two diagonal cells tie for farthest; together they take 85 %
    diagonal_share = (picks.count((6, STAND_Y, 6)) + picks.count((6, STAND_Y, 4))) / len(picks)
    assert 0.78 < diagonal_share < 0.92


def test_explore_when_boxed_in_stays_put(spawn, flat_world):
    worker = spawn(Role.WORKER)
    for dx in (-1, 0, 1):
        for dz in (-1, 0, 1):
            if dx or dz:
                for y in range(SURFACE + 1, SURFACE + 5):
                    flat_world.set_block_kind(5 + dx, y, 5 + dz, BlockKind.OTHER)
    assert not worker.explore()
    assert worker.pos == (5, STAND_Y, 5)


def test_broadcast_is_throttled(model, spawn):
    queen = spawn(Role.QUEEN)
    queen.ticks = 1
    queen.broadcast()
    first = model.field.get(5, STAND_Y, 5, ScentKind.QUEEN)
    queen.ticks = 2
    queen.broadcast()
    assert first > 0
    assert model.field.get(5, STAND_Y, 5, ScentKind.QUEEN) == first
