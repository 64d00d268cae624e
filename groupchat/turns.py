"""Next-speaker selection for each turn-order policy.

Every selector returns an ordered list of participant IDs; the coordination
engine consumes it one entry per tick. An empty list means nobody is eligible.
"""

from __future__ import annotations

import random
from typing import Callable, Dict, List

from .states import GroupSession, Message, Participant, TurnOrder


def _active(session: GroupSession) -> List[Participant]:
    return [p for p in session.participants if p.is_active]


def round_robin_next(session: GroupSession, message: Message, rng: random.Random) -> List[str]:
    active = _active(session)
    if not active:
        return []
    ids = [p.id for p in active]
    # unknown sender (system author, inactive participant) -> start at the top
    index = ids.index(message.participant_id) if message.participant_id in ids else -1
    return [ids[(index + 1) % len(ids)]]


def facilitator_guided_next(session: GroupSession, message: Message, rng: random.Random) -> List[str]:
    facilitator_id = session.facilitator_id
    if message.participant_id == facilitator_id:
        others = [p for p in _active(session) if p.id != facilitator_id]
        if not others:
            return []
        return [rng.choice(others).id]
    facilitator = session.find_participant(facilitator_id)
    if facilitator is None or not facilitator.is_active:
        return []
    return [facilitator_id]


def is_relevant(message: Message, participant: Participant) -> bool:
    return any(tag.lower() in spec.lower() for spec in participant.specializations for tag in message.tags)


def free_flow_next(session: GroupSession, message: Message, rng: random.Random) -> List[str]:
    candidates = [p for p in _active(session) if p.id != message.participant_id]
    relevant = [p for p in candidates if is_relevant(message, p)]
    count = min(2, max(1, len(relevant)))
    pool = list(relevant or candidates)
    rng.shuffle(pool)
    return [p.id for p in pool[:count]]


_SELECTORS: Dict[TurnOrder, Callable[[GroupSession, Message, random.Random], List[str]]] = {
    TurnOrder.ROUND_ROBIN: round_robin_next,
    TurnOrder.FACILITATOR_GUIDED: facilitator_guided_next,
    TurnOrder.FREE_FLOW: free_flow_next,
}


def select_next_participants(session: GroupSession, message: Message, rng: random.Random) -> List[str]:
    selector = _SELECTORS.get(session.coordination_rules.turn_order, free_flow_next)
    return selector(session, message, rng)
