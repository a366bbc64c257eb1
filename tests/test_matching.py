from sim.core.types import Role, Team
from tactics import CombatAgent, TheaterContext, find_partner, find_squad


def _agents(world, units):
    return [CombatAgent(u, world) for u in units]


def test_partner_is_symmetric_and_closest_in_lifetime(world, spawn):
    fighter = spawn(Team.BLUE, (5, 5), Role.MELEE, ticks_to_live=1000)
    near = spawn(Team.BLUE, (6, 5), Role.HEALER, ticks_to_live=1100)
    spawn(Team.BLUE, (7, 5), Role.HEALER, ticks_to_live=1500)

    f, h_near, h_far = _agents(world, world.units(Team.BLUE))
    partner = find_partner(f, [h_near, h_far])

    assert partner is h_near
    assert fighter.memory["partner"] == near.id
    assert near.memory["partner"] == fighter.id


def test_partner_outside_tolerance_is_rejected(world, spawn):
    spawn(Team.BLUE, (5, 5), Role.MELEE, ticks_to_live=800)
    spawn(Team.BLUE, (6, 5), Role.HEALER, ticks_to_live=1500)

    f, h = _agents(world, world.units(Team.BLUE))

    assert find_partner(f, [h], tolerance_ticks=650) is None
    assert f.partner_id is None
    assert find_partner(f, [h], tolerance_ticks=700) is h


def test_unknown_lifetime_counts_as_full_lifetime(world, spawn):
    spawn(Team.BLUE, (5, 5), Role.MELEE)
    spawn(Team.BLUE, (6, 5), Role.HEALER, ticks_to_live=1400)

    f, h = _agents(world, world.units(Team.BLUE))
    assert f.lifetime == 1500
    assert find_partner(f, [h]) is h


def test_partner_lookup_is_idempotent(world, spawn):
    spawn(Team.BLUE, (5, 5), Role.MELEE, ticks_to_live=1000)
    spawn(Team.BLUE, (6, 5), Role.HEALER, ticks_to_live=1000)
    spawn(Team.BLUE, (7, 5), Role.HEALER, ticks_to_live=1000)

    f, h1, h2 = _agents(world, world.units(Team.BLUE))
    first = find_partner(f, [h1, h2])
    assert first is h1  # equal lifetimes: lowest id

    # Fresh per-tick agents read the same persisted relation
    f, h1, h2 = _agents(world, world.units(Team.BLUE))
    assert find_partner(f, [h1, h2]) is h1
    assert find_partner(h1, [f]) is f
    assert find_partner(h2, [f]) is None


def test_dead_partner_is_cleared_and_replaced(world, spawn):
    spawn(Team.BLUE, (5, 5), Role.MELEE, ticks_to_live=1000)
    first = spawn(Team.BLUE, (6, 5), Role.HEALER, ticks_to_live=1000)
    spawn(Team.BLUE, (7, 5), Role.HEALER, ticks_to_live=1200)

    f, h1, h2 = _agents(world, world.units(Team.BLUE))
    assert find_partner(f, [h1, h2]) is h1

    world.remove_entity(first.id)
    f, h2 = _agents(world, world.units(Team.BLUE))
    assert find_partner(f, [h2]) is h2
    assert f.partner_id == h2.id
    assert h2.partner_id == f.id


def test_one_sided_claim_is_adopted(world, spawn):
    spawn(Team.BLUE, (5, 5), Role.MELEE, ticks_to_live=1000)
    healer = spawn(Team.BLUE, (6, 5), Role.HEALER, ticks_to_live=1000)
    fighter_id = world.units(Team.BLUE)[0].id
    healer.memory["partner"] = fighter_id

    f, h = _agents(world, world.units(Team.BLUE))
    assert find_partner(f, [h]) is h
    assert f.partner_id == healer.id


def test_squad_caps_split_units_into_two_squads(world, spawn):
    roles = [Role.MELEE, Role.MELEE, Role.RANGED, Role.HEALER] * 2
    for i, role in enumerate(roles):
        spawn(Team.BLUE, (5 + i, 5), role, ticks_to_live=1500 - 10 * i)

    context = TheaterContext(world, Team.BLUE)
    caps = {Role.MELEE: 2, Role.RANGED: 1, Role.HEALER: 1}
    squads = context.make_squads(context.agents(), caps)

    assert sorted(squads) == ["000000", "000001"]
    for squad in squads.values():
        assert squad.role_counts() == {Role.MELEE: 2, Role.RANGED: 1, Role.HEALER: 1}
    assert [m.id for m in squads["000000"].members] == [1, 2, 3, 4]
    assert context.theater.next_squad == 2


def test_squad_membership_is_sticky_across_ticks(world, spawn):
    for i, role in enumerate([Role.MELEE, Role.HEALER]):
        spawn(Team.BLUE, (5 + i, 5), role, ticks_to_live=1500)
    caps = {Role.MELEE: 2, Role.HEALER: 1}

    context = TheaterContext(world, Team.BLUE)
    refs = set(context.make_squads(context.agents(), caps))
    context.commit()

    context = TheaterContext(world, Team.BLUE)
    assert set(context.make_squads(context.agents(), caps)) == refs


def test_squad_rejects_member_outside_tolerance(world, spawn):
    spawn(Team.BLUE, (5, 5), Role.MELEE, ticks_to_live=1500)
    spawn(Team.BLUE, (6, 5), Role.MELEE, ticks_to_live=600)
    a, b = _agents(world, world.units(Team.BLUE))
    refs = iter(["aaaaaa", "bbbbbb"])
    caps = {Role.MELEE: 2}

    assert find_squad(a, [a, b], caps, mint_ref=lambda: next(refs)) == "aaaaaa"
    assert find_squad(b, [a, b], caps, mint_ref=lambda: next(refs)) == "bbbbbb"


def test_role_without_cap_gets_no_squad(world, spawn):
    spawn(Team.BLUE, (5, 5), Role.MELEE, ticks_to_live=1500)
    spawn(Team.BLUE, (6, 5), Role.DISMANTLER, ticks_to_live=1500)
    context = TheaterContext(world, Team.BLUE)

    squads = context.make_squads(context.agents(), {Role.MELEE: 2})

    assert len(squads) == 1
    assert context.agents(Role.DISMANTLER)[0].squad_ref is None
