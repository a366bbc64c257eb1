"""
Game constants shared by the simulation and the tactics core.
"""

# Per active body part, per tick.
ATTACK_POWER = 30
RANGED_ATTACK_POWER = 10
HEAL_POWER = 12
RANGED_HEAL_POWER = 4
DISMANTLE_POWER = 50

# Mass attack damage by range (1, 2, 3) as a fraction of RANGED_ATTACK_POWER.
RANGED_MASS_ATTACK_MULTIPLIERS = {1: 1.0, 2: 0.4, 3: 0.1}

BODYPART_HITS = 100
CREEP_LIFE_TIME = 1500

# Static defense (towers).
TOWER_POWER_ATTACK = 600
TOWER_OPTIMAL_RANGE = 5
TOWER_FALLOFF_RANGE = 20
TOWER_FALLOFF = 0.75
TOWER_ENERGY_COST = 10
TOWER_CAPACITY = 1000

# Matching tolerances (ticks of remaining lifetime).
DEFAULT_PARTNER_TICK_DIFFERENCE = 650
DEFAULT_SQUAD_TICK_DIFFERENCE = 500
