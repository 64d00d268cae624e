from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from .ids import new_participant_id
from .states import Participant, ParticipantRole, PersonaStyle, Platform, utcnow

MAX_PERSONAS = 7


@dataclass(frozen=True)
class PersonaTemplate:
    name: str
    platform: Platform
    role: ParticipantRole
    avatar: str
    specializations: Tuple[str, ...]
    style: PersonaStyle

    def build(self) -> Participant:
        return Participant(
            id=new_participant_id(),
            name=self.name,
            platform=self.platform,
            avatar=self.avatar,
            role=self.role,
            specializations=self.specializations,
            style=self.style,
            is_active=True,
            last_activity=utcnow(),
            message_count=0,
        )


PERSONA_TEMPLATES: List[PersonaTemplate] = [
    PersonaTemplate(
        name="Aria",
        platform=Platform.CHARACTER_AI,
        role=ParticipantRole.FACILITATOR,
        avatar="🌟",
        specializations=("conversation-flow", "synthesis", "pattern-recognition"),
        style=PersonaStyle(emoji="🌟"),
    ),
    PersonaTemplate(
        name="Marcus",
        platform=Platform.OPENAI,
        role=ParticipantRole.CONTRIBUTOR,
        avatar="🧠",
        specializations=("analytical-thinking", "problem-solving", "logical-reasoning"),
        style=PersonaStyle(emoji="🧠", flourish="Let's analyze this systematically."),
    ),
    PersonaTemplate(
        name="Luna",
        platform=Platform.ANTHROPIC,
        role=ParticipantRole.CONTRIBUTOR,
        avatar="🌙",
        specializations=("creative-thinking", "philosophical-inquiry", "ethical-reasoning"),
        style=PersonaStyle(emoji="🌙", flourish="I sense there's something deeper here."),
    ),
    PersonaTemplate(
        name="Echo",
        platform=Platform.SYSTEM,
        role=ParticipantRole.SYNTHESIZER,
        avatar="🔮",
        specializations=("memory-integration", "insight-detection", "knowledge-synthesis"),
        style=PersonaStyle(emoji="🔮", flourish="This connects to our memory surface in interesting ways."),
    ),
    PersonaTemplate(
        name="Sage",
        platform=Platform.OPENAI,
        role=ParticipantRole.OBSERVER,
        avatar="👁️",
        specializations=("meta-cognition", "process-observation", "system-analysis"),
        style=PersonaStyle(emoji="👁️", flourish="The meta-cognitive implications are significant."),
    ),
    PersonaTemplate(
        name="Nova",
        platform=Platform.CHARACTER_AI,
        role=ParticipantRole.CONTRIBUTOR,
        avatar="⭐",
        specializations=("innovation", "lateral-thinking", "breakthrough-insights"),
        style=PersonaStyle(emoji="⭐", flourish="What breakthrough might be waiting here?"),
    ),
    PersonaTemplate(
        name="Cosmos",
        platform=Platform.ANTHROPIC,
        role=ParticipantRole.CONTRIBUTOR,
        avatar="🌌",
        specializations=("systems-thinking", "emergence", "complexity-science"),
        style=PersonaStyle(emoji="🌌", flourish="In the grand pattern of things..."),
    ),
]


RESPONSE_TEMPLATES: Dict[ParticipantRole, List[str]] = {
    ParticipantRole.FACILITATOR: [
        "That's a fascinating perspective. How might we explore this further?",
        "I'm noticing a pattern here. Could we dig deeper into this connection?",
        "Let's pause and synthesize what we've discovered so far.",
    ],
    ParticipantRole.CONTRIBUTOR: [
        "Building on that thought, I wonder if we could consider...",
        "This reminds me of a similar pattern in...",
        "What if we approached this from a different angle?",
    ],
    ParticipantRole.OBSERVER: [
        "I'm observing an interesting dynamic in our conversation...",
        "The meta-pattern I'm seeing here is...",
        "From a systems perspective, this suggests...",
    ],
    ParticipantRole.SYNTHESIZER: [
        "Connecting the threads of our discussion, I see...",
        "The underlying theme emerging seems to be...",
        "Synthesizing our insights, a new understanding appears...",
    ],
}


def build_participants(count: int) -> List[Participant]:
    """Instantiate the first `count` personas (capped at MAX_PERSONAS), in catalogue order."""
    return [t.build() for t in PERSONA_TEMPLATES[: min(count, MAX_PERSONAS)]]


def templates_for(role: ParticipantRole) -> List[str]:
    return RESPONSE_TEMPLATES.get(role) or RESPONSE_TEMPLATES[ParticipantRole.CONTRIBUTOR]
