import random

from groupchat.states import SessionType, TurnOrder
from groupchat.turns import (
    facilitator_guided_next,
    free_flow_next,
    is_relevant,
    round_robin_next,
    select_next_participants,
)

from conftest import make_session, message_from


def test_round_robin_visits_everyone_once_per_cycle(rng):
    session = make_session(5, SessionType.PROBLEM_SOLVING)
    ids = [p.id for p in session.participants]
    sender = ids[2]
    visited = []
    current = sender
    for _ in range(len(ids)):
        (current,) = round_robin_next(session, message_from(current), rng)
        visited.append(current)
    assert sorted(visited) == sorted(ids)
    assert visited[-1] == sender


def test_round_robin_wraps_around(rng):
    session = make_session(3, SessionType.PROBLEM_SOLVING)
    last = session.participants[-1].id
    assert round_robin_next(session, message_from(last), rng) == [session.participants[0].id]


def test_round_robin_unknown_sender_starts_at_first_active(rng):
    session = make_session(3, SessionType.PROBLEM_SOLVING)
    session.participants[0].is_active = False
    assert round_robin_next(session, message_from("system"), rng) == [session.participants[1].id]


def test_round_robin_skips_inactive(rng):
    session = make_session(4, SessionType.PROBLEM_SOLVING)
    session.participants[1].is_active = False
    first = session.participants[0].id
    assert round_robin_next(session, message_from(first), rng) == [session.participants[2].id]


def test_round_robin_with_nobody_active_is_empty(rng):
    session = make_session(2, SessionType.PROBLEM_SOLVING)
    for p in session.participants:
        p.is_active = False
    assert round_robin_next(session, message_from(session.participants[0].id), rng) == []


def test_facilitator_guided_hands_back_to_facilitator(rng):
    session = make_session(4, SessionType.SYNTHESIS)
    contributor = session.participants[1].id
    assert facilitator_guided_next(session, message_from(contributor), rng) == [session.facilitator_id]


def test_facilitator_picks_one_active_non_facilitator(rng):
    session = make_session(4, SessionType.SYNTHESIS)
    session.participants[2].is_active = False
    allowed = {session.participants[1].id, session.participants[3].id}
    for _ in range(20):
        picked = facilitator_guided_next(session, message_from(session.facilitator_id), rng)
        assert len(picked) == 1
        assert picked[0] in allowed


def test_facilitator_alone_has_nobody_to_pick(rng):
    session = make_session(1, SessionType.SYNTHESIS)
    assert facilitator_guided_next(session, message_from(session.facilitator_id), rng) == []


def test_inactive_facilitator_stalls_guided_flow(rng):
    session = make_session(3, SessionType.SYNTHESIS)
    session.participants[0].is_active = False
    assert facilitator_guided_next(session, message_from(session.participants[1].id), rng) == []


def test_relevance_matches_tag_inside_specialization():
    session = make_session(7)
    cosmos = session.participants[6]
    assert is_relevant(message_from("x", tags=["systems"]), cosmos)
    assert is_relevant(message_from("x", tags=["EMERGENCE"]), cosmos)
    assert not is_relevant(message_from("x", tags=["ethics"]), cosmos)


def test_free_flow_prefers_specialists(rng):
    session = make_session(7)
    cosmos = session.participants[6]
    # "emergence" only matches Cosmos
    picked = free_flow_next(session, message_from(session.participants[0].id, tags=["emergence"]), rng)
    assert picked == [cosmos.id]


def test_free_flow_picks_at_most_two_relevant(rng):
    session = make_session(7)
    # "synthesis" matches Aria (synthesis) and Echo (knowledge-synthesis)
    sender = session.participants[1].id
    picked = free_flow_next(session, message_from(sender, tags=["synthesis", "systems"]), rng)
    relevant = {session.participants[0].id, session.participants[3].id, session.participants[6].id}
    assert len(picked) == 2
    assert len(set(picked)) == 2
    assert set(picked) <= relevant


def test_free_flow_falls_back_to_single_random_participant(rng):
    session = make_session(4)
    sender = session.participants[0].id
    picked = free_flow_next(session, message_from(sender, tags=[]), rng)
    assert len(picked) == 1
    assert picked[0] != sender


def test_free_flow_never_selects_sender(rng):
    session = make_session(2)
    aria = session.participants[0].id
    for _ in range(10):
        assert free_flow_next(session, message_from(aria, tags=["synthesis"]), rng) == [session.participants[1].id]


def test_free_flow_is_reproducible_with_seed():
    session = make_session(7)
    msg = message_from(session.participants[0].id)
    first = [free_flow_next(session, msg, random.Random(3)) for _ in range(5)]
    second = [free_flow_next(session, msg, random.Random(3)) for _ in range(5)]
    assert first == second


def test_dispatch_follows_turn_order(rng):
    session = make_session(3, SessionType.PROBLEM_SOLVING)
    assert session.coordination_rules.turn_order == TurnOrder.ROUND_ROBIN
    first = session.participants[0].id
    assert select_next_participants(session, message_from(first), rng) == [session.participants[1].id]
