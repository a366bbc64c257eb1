"""
Shared action validation helpers.

Both the resolvers and the "can I do this?" checks in the tactics layer use
the same rules, so an intent that validates here is one the simulation will
carry out.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Tuple

from .types import ActionType, ActionValidation, BodyPart

if TYPE_CHECKING:
    from ..world.world import WorldState
    from ..entities.unit import Unit
    from .actions import Action

# Action type -> (required body part, max range, target must be friendly)
_TARGETED_RULES: Dict[ActionType, Tuple[BodyPart, int, bool]] = {
    ActionType.ATTACK: (BodyPart.ATTACK, 1, False),
    ActionType.RANGED_ATTACK: (BodyPart.RANGED_ATTACK, 3, False),
    ActionType.HEAL: (BodyPart.HEAL, 1, True),
    ActionType.RANGED_HEAL: (BodyPart.HEAL, 3, True),
    ActionType.DISMANTLE: (BodyPart.WORK, 1, False),
}


def validate_action_in_world(world: WorldState, unit: Unit, action: Action) -> ActionValidation:
    """
    Validate an intent against the unit's body and the current world state.

    Checks liveness, active body parts, target validity, range, and for
    movement bounds, adjacency and passability. Occupancy is checked at
    resolution time since it depends on resolution order.
    """
    if world.get_unit(unit.id) is None or not unit.alive:
        return ActionValidation.fail("ENTITY_DEAD", f"{unit.label()} is not alive")

    if action.type == ActionType.WAIT:
        return ActionValidation.success()

    if action.type == ActionType.MOVE:
        if unit.get_active_bodyparts(BodyPart.MOVE) == 0:
            return ActionValidation.fail("NO_CAPABILITY", f"{unit.label()} has no active MOVE parts")
        to = action.params["to"]
        if not world.grid.in_bounds(to):
            return ActionValidation.fail("OUT_OF_BOUNDS", f"{unit.label()} cannot move to {to} (out of bounds)")
        if world.grid.range(unit.pos, to) != 1:
            return ActionValidation.fail("NOT_ADJACENT", f"{unit.label()} cannot step from {unit.pos} to {to}")
        if not world.is_passable(to):
            return ActionValidation.fail("IMPASSABLE", f"{unit.label()} cannot enter {to}")
        return ActionValidation.success()

    if action.type == ActionType.RANGED_MASS_ATTACK:
        if unit.get_active_bodyparts(BodyPart.RANGED_ATTACK) == 0:
            return ActionValidation.fail("NO_CAPABILITY", f"{unit.label()} has no active RANGED_ATTACK parts")
        return ActionValidation.success()

    part, max_range, friendly_target = _TARGETED_RULES[action.type]
    if unit.get_active_bodyparts(part) == 0:
        return ActionValidation.fail("NO_CAPABILITY", f"{unit.label()} has no active {part.name} parts")

    target = world.get_entity(action.params["target_id"])
    if target is None or not target.alive:
        return ActionValidation.fail("INVALID_TARGET", f"{unit.label()} target missing or destroyed")

    if friendly_target:
        if world.get_unit(target.id) is None or target.team != unit.team:
            return ActionValidation.fail("INVALID_TARGET", f"{unit.label()} can only heal friendly units")
    else:
        if target.team == unit.team:
            return ActionValidation.fail("INVALID_TARGET", f"{unit.label()} will not attack friendly {target.label()}")
        if action.type == ActionType.DISMANTLE and world.get_structure(target.id) is None:
            return ActionValidation.fail("INVALID_TARGET", f"{unit.label()} can only dismantle structures")

    distance = world.grid.range(unit.pos, target.pos)
    if distance > max_range:
        return ActionValidation.fail(
            "OUT_OF_RANGE",
            f"{unit.label()} target out of range ({distance} > {max_range})"
        )

    return ActionValidation.success()
