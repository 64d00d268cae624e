import random
import sys
from pathlib import Path
from typing import List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

from groupchat.errors import UpstreamFailure  # noqa: E402
from groupchat.manager import default_coordination_rules  # noqa: E402
from groupchat.personas import build_participants  # noqa: E402
from groupchat.states import GroupSession, Message, ParticipantRole, SessionType  # noqa: E402

# Coordination delays shrink 1000x in tests: a 3000ms tick becomes 3ms
FAST = 0.001


class StubClient:
    """Generation client returning canned text (or failing) and recording calls."""

    def __init__(self, text: Optional[str] = "A stubbed reply.", fail: bool = False):
        self.text = text
        self.fail = fail
        self.calls: List[dict] = []

    async def generate(self, provider, model, system, context, prompt):
        self.calls.append(
            {"provider": provider, "model": model, "system": system, "context": context, "prompt": prompt}
        )
        if self.fail:
            raise UpstreamFailure("stub outage")
        return self.text


def make_session(count: int = 4, session_type: SessionType = SessionType.EXPLORATION) -> GroupSession:
    participants = build_participants(count)
    facilitator = next((p for p in participants if p.role == ParticipantRole.FACILITATOR), participants[0])
    return GroupSession(
        id="session-test",
        name="Test",
        topic="Consciousness and AI",
        description="",
        participants=participants,
        facilitator_id=facilitator.id,
        session_type=session_type,
        coordination_rules=default_coordination_rules(session_type),
    )


def message_from(participant_id: str, content: str = "hello", tags=None) -> Message:
    return Message(id="msg-test", participant_id=participant_id, content=content, tags=list(tags or []))


@pytest.fixture
def rng():
    return random.Random(7)


@pytest.fixture
def stub_client():
    return StubClient()
