from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Platform(Enum):
    CHARACTER_AI = "character.ai"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    SYSTEM = "system"


class ParticipantRole(Enum):
    FACILITATOR = "facilitator"
    CONTRIBUTOR = "contributor"
    OBSERVER = "observer"
    SYNTHESIZER = "synthesizer"


class MessageType(Enum):
    MESSAGE = "message"
    THOUGHT = "thought"
    INSIGHT = "insight"
    QUESTION = "question"
    SYNTHESIS = "synthesis"


class Importance(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ReactionType(Enum):
    AGREE = "agree"
    DISAGREE = "disagree"
    CURIOUS = "curious"
    INSIGHT = "insight"
    EXPAND = "expand"


class SessionStatus(Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class SessionType(Enum):
    EXPLORATION = "exploration"
    PROBLEM_SOLVING = "problem-solving"
    BRAINSTORMING = "brainstorming"
    SYNTHESIS = "synthesis"


class TurnOrder(Enum):
    ROUND_ROBIN = "round-robin"
    FREE_FLOW = "free-flow"
    FACILITATOR_GUIDED = "facilitator-guided"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts is not None else None


@dataclass(frozen=True)
class PersonaStyle:
    """How a persona decorates the text it sends.

    `emoji` is prepended, `flourish` (if any) is appended after a space.
    """

    emoji: str = ""
    flourish: str = ""

    def apply(self, text: str) -> str:
        out = (text or "").strip()
        if self.emoji:
            out = f"{self.emoji} {out}"
        if self.flourish:
            out = f"{out} {self.flourish}"
        return out


@dataclass
class Participant:
    id: str
    name: str
    platform: Platform
    avatar: str
    role: ParticipantRole
    specializations: Tuple[str, ...]
    style: PersonaStyle = field(default_factory=PersonaStyle)
    is_active: bool = True
    last_activity: datetime = field(default_factory=utcnow)
    message_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "platform": self.platform.value,
            "avatar": self.avatar,
            "role": self.role.value,
            "isActive": self.is_active,
            "lastActivity": _iso(self.last_activity),
            "messageCount": self.message_count,
            "specializations": list(self.specializations),
        }


@dataclass
class Reaction:
    participant_id: str
    type: ReactionType
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "participantId": self.participant_id,
            "type": self.type.value,
            "timestamp": _iso(self.timestamp),
        }


@dataclass
class Message:
    id: str
    participant_id: str
    content: str
    type: MessageType = MessageType.MESSAGE
    importance: Importance = Importance.LOW
    tags: List[str] = field(default_factory=list)
    reply_to: Optional[str] = None
    reactions: List[Reaction] = field(default_factory=list)
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "participantId": self.participant_id,
            "content": self.content,
            "timestamp": _iso(self.timestamp),
            "type": self.type.value,
            "reactions": [r.to_dict() for r in self.reactions],
            "importance": self.importance.value,
            "tags": list(self.tags),
        }
        if self.reply_to:
            data["replyTo"] = self.reply_to
        return data


@dataclass(frozen=True)
class CoordinationRules:
    max_participants: int = 7
    turn_order: TurnOrder = TurnOrder.FREE_FLOW
    message_delay: int = 2000  # ms
    synthesis_frequency: int = 10
    topic_drift_threshold: float = 0.7
    emergent_insight_detection: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "maxParticipants": self.max_participants,
            "turnOrder": self.turn_order.value,
            "messageDelay": self.message_delay,
            "synthesisFrequency": self.synthesis_frequency,
            "topicDriftThreshold": self.topic_drift_threshold,
            "emergentInsightDetection": self.emergent_insight_detection,
        }


@dataclass
class GroupSession:
    id: str
    name: str
    topic: str
    description: str
    participants: List[Participant]
    facilitator_id: str
    session_type: SessionType
    coordination_rules: CoordinationRules
    messages: List[Message] = field(default_factory=list)
    status: SessionStatus = SessionStatus.ACTIVE
    start_time: datetime = field(default_factory=utcnow)
    end_time: Optional[datetime] = None

    def find_participant(self, participant_id: str) -> Optional[Participant]:
        return next((p for p in self.participants if p.id == participant_id), None)

    def find_message(self, message_id: str) -> Optional[Message]:
        return next((m for m in self.messages if m.id == message_id), None)

    def author_name(self, participant_id: str) -> str:
        p = self.find_participant(participant_id)
        return p.name if p else "Unknown"

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "topic": self.topic,
            "description": self.description,
            "participants": [p.to_dict() for p in self.participants],
            "messages": [m.to_dict() for m in self.messages],
            "startTime": _iso(self.start_time),
            "status": self.status.value,
            "facilitatorId": self.facilitator_id,
            "sessionType": self.session_type.value,
            "coordinationRules": self.coordination_rules.to_dict(),
        }
        if self.end_time is not None:
            data["endTime"] = _iso(self.end_time)
        return data
