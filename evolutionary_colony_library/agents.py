# evolutionary_colony_library/agents.py
import logging

import numpy as np
from mesa import Agent

from .config import (MAX_HEALTH, BASE_HEALTH_DECAY, HAZARD_DECAY_MULTIPLIER,
                     FOOD_HEAL_AMOUNT, BUILD_COST, STEP_LIMIT,
                     LOW_HEALTH_THRESHOLD, HIGH_HEALTH_THRESHOLD, SCENT_MAX,
                     DANGER_AVOID_THRESHOLD, BROADCAST_INTERVAL,
                     QUEEN_SCENT_AMOUNT, WORKER_SCENT_AMOUNT,
                     FOOD_SCENT_AMOUNT, DANGER_SCENT_AMOUNT,
                     EXPLORE_WEIGHTS, EXPLORE_BACKTRACK_WEIGHT,
                     FALLBACK_EAT_HEALTH, FALLBACK_HEAL_MIN_HEALTH,
                     FALLBACK_HEAL_TARGET_HEALTH, FALLBACK_HEAL_AMOUNT)
from .genome import Action, Role, DEFAULT_LAYOUT
from .scent import ScentKind
from .world import BlockKind, INDESTRUCTIBLE_KINDS

logger = logging.getLogger(__name__)

# The eight lateral and diagonal directions, in a fixed order
DIRECTIONS = ((0, 1), (1, 1), (1, 0), (1, -1), (0, -1), (-1, -1), (-1, 0), (-1, 1))

# Scent each role leaves behind
OWN_SCENT = {Role.QUEEN: ScentKind.QUEEN, Role.WORKER: ScentKind.WORKER}
OWN_SCENT_AMOUNT = {Role.QUEEN: QUEEN_SCENT_AMOUNT, Role.WORKER: WORKER_SCENT_AMOUNT}

# Scents read into sensors 4, 5 and 6; the first is also the primary seek target,
# the second the secondary one.
SENSED_SCENTS = {
    Role.QUEEN: (ScentKind.WORKER, ScentKind.FOOD, ScentKind.DANGER),
    Role.WORKER: (ScentKind.QUEEN, ScentKind.FOOD, ScentKind.DANGER),
}


class ColonyAgent(Agent):
    """
    One ant in an episode. Each tick it broadcasts its scent, workers try to
    heal the queen, health decays, and then the genome picks one action from
    a 9-element sensory vector.

    Position is the integer (x, y, z) of the empty cell the ant occupies; the
    block it stands on is at y - 1.
    """
    def __init__(self, model, role, pos, genome=None, layout=DEFAULT_LAYOUT):
        """
        Args:
            model (ColonyModel): The episode this agent lives in.
            role (Role): Queen or worker.
            pos (tuple): Starting (x, y, z) cell.
            genome (Genome, optional): Weights under evaluation. Missing or short
                genomes switch the agent to the built-in fallback policy.
            layout (GenomeLayout): How the genome is segmented.
        """
        super().__init__(model)
        self.role = role
        self.health = MAX_HEALTH
        self.pos = tuple(pos)
        self.last_pos = None
        self.genome = genome
        self.layout = layout
        self.ticks = 0
        self.uses_genome = genome is not None and genome.fits(layout)
        if not self.uses_genome:
            logger.debug("agent %s has no usable genome, using the fallback policy", self.unique_id)

    @property
    def is_alive(self):
        return self.health > 0

    def step(self):
        if self.health <= 0:
            return # Already dead, waiting to be removed

        self.ticks += 1
        self.broadcast()

        if self.role is Role.WORKER:
            self.try_heal_queen()

        if self.apply_health_decay():
            return

        inputs = self.get_inputs()
        action = self.choose_action(inputs)
        self.execute(action)

    # ------------------------------------------------------------------
    # Sensing
    # ------------------------------------------------------------------

    def block_below(self):
        x, y, z = self.pos
        return self.model.world.block_kind(x, y - 1, z)

    def normalised_scent(self, kind):
        x, y, z = self.pos
        return min(1.0, max(0.0, self.model.field.get(x, y, z, kind) / SCENT_MAX))

    def get_inputs(self):
        """
        Builds the sensory vector:
        [low health, high health, on food, on obstacle, scent A, scent B,
         scent C, random noise, on hazard]
        """
        below = self.block_below()
        scent_a, scent_b, scent_c = SENSED_SCENTS[self.role]
        return np.array([
            1.0 if self.health < LOW_HEALTH_THRESHOLD else 0.0,
            1.0 if self.health > HIGH_HEALTH_THRESHOLD else 0.0,
            1.0 if below is BlockKind.FOOD else 0.0,
            1.0 if below is BlockKind.OBSTACLE else 0.0,
            self.normalised_scent(scent_a),
            self.normalised_scent(scent_b),
            self.normalised_scent(scent_c),
            self.model.random.random(),
            1.0 if below is BlockKind.HAZARD else 0.0,
        ])

    def step_limited_moves(self):
        """Cells in the 8 surrounding columns whose surface is within STEP_LIMIT of ours."""
        x, y, z = self.pos
        world = self.model.world
        standing_height = y - 1
        moves = []
        for dx, dz in DIRECTIONS:
            nx, nz = x + dx, z + dz
            surface = world.surface_height(nx, nz)
            if surface < 0 or surface + 1 >= world.size_y:
                continue
            if abs(surface - standing_height) <= STEP_LIMIT:
                moves.append((nx, surface + 1, nz))
        return moves

    # ------------------------------------------------------------------
    # Upkeep
    # ------------------------------------------------------------------

    def broadcast(self):
        """Leaves the role's scent, every BROADCAST_INTERVAL ticks of this agent."""
        if (self.ticks - 1) % BROADCAST_INTERVAL != 0:
            return
        x, y, z = self.pos
        self.model.field.deposit(x, y, z, OWN_SCENT[self.role], OWN_SCENT_AMOUNT[self.role])
        if self.block_below() is BlockKind.HAZARD:
            self.model.field.deposit(x, y, z, ScentKind.DANGER, DANGER_SCENT_AMOUNT)

    def heal_parameters(self):
        if not self.uses_genome:
            return FALLBACK_HEAL_MIN_HEALTH, FALLBACK_HEAL_TARGET_HEALTH, FALLBACK_HEAL_AMOUNT
        return (self.genome.parameter("heal_min_health", self.layout),
                self.genome.parameter("heal_target_health", self.layout),
                self.genome.parameter("heal_amount", self.layout))

    def avoids_danger(self):
        if not self.uses_genome:
            return True
        return self.genome.parameter("danger_aversion", self.layout) > 0.5

    def try_heal_queen(self):
        """
        Gives health to a queen on our cell or a reachable neighbour cell.
        The giver always keeps at least 1 health.
        """
        min_health, target_health, amount = self.heal_parameters()
        if self.health < min_health or self.health <= 1.0:
            return False

        for cell in [self.pos] + self.step_limited_moves():
            queen = self.model.queen_at(cell)
            if queen is None or queen.health >= target_health:
                continue
            transfer = min(amount, self.health - 1.0, target_health - queen.health,
                           MAX_HEALTH - queen.health)
            if transfer <= 0:
                return False
            self.health -= transfer
            queen.receive_health(transfer)
            self.model.record_queen_healed()
            return True
        return False

    def receive_health(self, amount):
        self.health = min(MAX_HEALTH, self.health + amount)

    def apply_health_decay(self):
        """Returns True if the agent died."""
        decay = BASE_HEALTH_DECAY
        if self.block_below() is BlockKind.HAZARD:
            decay *= HAZARD_DECAY_MULTIPLIER
        self.health = max(0.0, self.health - decay)
        if self.health <= 0:
            self.model.handle_agent_death(self)
            return True
        return False

    # ------------------------------------------------------------------
    # Deciding
    # ------------------------------------------------------------------

    def choose_action(self, inputs):
        """
        Scores every action of our role as the dot product of the inputs with
        the action's gene block. Actions are visited in priority order and
        only a strictly higher score replaces the current pick, so ties go to
        eat, then seek primary, seek secondary, build, dig and explore.
        """
        if not self.uses_genome:
            return self.fallback_action(inputs)

        best_action = None
        best_score = float("-inf")
        for action in sorted(self.layout.actions_for(self.role)):
            score = float(np.dot(inputs, self.genome.action_block(self.role, action, self.layout)))
            if best_action is None or score > best_score:
                best_action, best_score = action, score
        return best_action

    def fallback_action(self, inputs):
        """Small hand-written policy for agents without a usable genome."""
        if inputs[2] > 0 and self.health < FALLBACK_EAT_HEALTH:
            return Action.EAT
        if self.role is Role.QUEEN and self.health >= 2 * BUILD_COST:
            return Action.BUILD
        if inputs[4] > 0:
            return Action.SEEK_PRIMARY
        return Action.EXPLORE

    def execute(self, action):
        primary, secondary, _ = SENSED_SCENTS[self.role]
        if action is Action.EAT:
            return self.eat()
        elif action is Action.DIG:
            return self.dig()
        elif action is Action.BUILD:
            return self.build()
        elif action is Action.SEEK_PRIMARY:
            return self.seek(primary, self.avoids_danger())
        elif action is Action.SEEK_SECONDARY:
            return self.seek(secondary, self.avoids_danger())
        elif action is Action.EXPLORE:
            return self.explore()
        raise ValueError(f"unknown action {action!r}")

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def settle(self):
        """Drops the agent onto the surface of its column after the ground changed."""
        x, _, z = self.pos
        self.pos = (x, self.model.world.surface_height(x, z) + 1, z)

    def move_to(self, cell):
        self.last_pos = self.pos
        self.pos = cell

    def eat(self):
        x, y, z = self.pos
        if self.model.world.block_kind(x, y - 1, z) is not BlockKind.FOOD:
            return False
        self.model.world.set_block_kind(x, y - 1, z, BlockKind.EMPTY)
        self.health = min(MAX_HEALTH, self.health + FOOD_HEAL_AMOUNT)
        self.settle()
        # Let others know there was food here
        self.model.field.deposit(*self.pos, ScentKind.FOOD, FOOD_SCENT_AMOUNT)
        return True

    def dig(self):
        x, y, z = self.pos
        below = self.model.world.block_kind(x, y - 1, z)
        if below is BlockKind.EMPTY or below in INDESTRUCTIBLE_KINDS:
            return False
        self.model.world.set_block_kind(x, y - 1, z, BlockKind.EMPTY)
        self.settle()
        return True

    def build(self):
        if self.role is not Role.QUEEN or self.health < BUILD_COST:
            return False
        x, y, z = self.pos
        below = self.model.world.block_kind(x, y - 1, z)
        if below in INDESTRUCTIBLE_KINDS:
            return False
        self.model.world.set_block_kind(x, y - 1, z, BlockKind.NEST)
        self.health -= BUILD_COST
        self.model.record_nest_built()
        return True

    def seek(self, kind, avoid_danger):
        """Moves to the reachable neighbour with the strongest `kind` scent, or explores."""
        moves = self.step_limited_moves()
        field = self.model.field
        best_cell = None
        best_scent = 0.0
        for cell in moves:
            if avoid_danger and field.get(*cell, ScentKind.DANGER) > DANGER_AVOID_THRESHOLD:
                continue
            scent = field.get(*cell, kind)
            if scent > best_scent:
                best_cell, best_scent = cell, scent
        if best_cell is None:
            return self.explore(moves)
        self.move_to(best_cell)
        return True

    def explore(self, moves=None):
        """
        Wanders with forward momentum: the three cells farthest from where we
        came from get 50/35/10 % and stepping straight back gets 5 %.
        """
        if moves is None:
            moves = self.step_limited_moves()
        if not moves:
            return False

        rng = self.model.random
        if self.last_pos is None:
            self.move_to(moves[rng.randrange(len(moves))])
            return True

        last_x, _, last_z = self.last_pos
        backtrack = [cell for cell in moves if (cell[0], cell[2]) == (last_x, last_z)]
        forward = [cell for cell in moves if (cell[0], cell[2]) != (last_x, last_z)]
        forward.sort(key=lambda c: (c[0] - last_x) ** 2 + (c[2] - last_z) ** 2, reverse=True)

        options = forward[:len(EXPLORE_WEIGHTS)]
        weights = list(EXPLORE_WEIGHTS[:len(options)])
        if backtrack:
            options.append(backtrack[0])
            weights.append(EXPLORE_BACKTRACK_WEIGHT)
        self.move_to(rng.choices(options, weights=weights)[0])
        return True

    def __repr__(self):
        return f"ColonyAgent({self.role.value}, hp={self.health:.1f}, pos={self.pos})"
