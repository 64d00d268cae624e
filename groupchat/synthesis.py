from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from loguru import logger

from .states import GroupSession, Importance, Message, MessageType, utcnow

MAX_KEY_INSIGHTS = 10
MAX_THEMES = 5
QUESTION_WINDOW = 3
EXCERPT_CHARS = 100
DEFAULT_DIRECTION = "Continue exploring the themes that emerged"


@dataclass
class SessionSynthesis:
    session_name: str
    duration: str
    message_count: int
    participant_count: int
    themes: List[Tuple[str, int]] = field(default_factory=list)
    key_insights: List[str] = field(default_factory=list)
    directions: List[str] = field(default_factory=list)

    def render(self) -> str:
        themes = "\n".join(f"• {tag} ({count} mentions)" for tag, count in self.themes)
        insights = "\n".join(f"• {text}..." for text in self.key_insights)
        directions = "\n".join(f"• {d}" for d in self.directions)
        return (
            f"🌟 Session Synthesis: \"{self.session_name}\"\n"
            "\n"
            "📊 **Discussion Metrics:**\n"
            f"- Duration: {self.duration}\n"
            f"- Messages: {self.message_count}\n"
            f"- Participants: {self.participant_count}\n"
            f"- Key Insights: {len(self.key_insights)}\n"
            "\n"
            "🔍 **Emergent Themes:**\n"
            f"{themes}\n"
            "\n"
            "💡 **Key Insights:**\n"
            f"{insights}\n"
            "\n"
            "🌱 **Future Exploration Directions:**\n"
            f"{directions}"
        )


def format_duration(start: datetime, end: Optional[datetime]) -> str:
    seconds = max(0, int(((end or utcnow()) - start).total_seconds()))
    hours, rest = divmod(seconds, 3600)
    return f"{hours}h {rest // 60}m"


def key_insights(messages: List[Message]) -> List[Message]:
    picked = [m for m in messages if m.importance == Importance.HIGH or m.type == MessageType.INSIGHT]
    return picked[-MAX_KEY_INSIGHTS:]


def emergent_themes(messages: List[Message]) -> List[Tuple[str, int]]:
    # Counter keeps first-seen order and most_common sorts stably
    counts = Counter(tag for m in messages for tag in m.tags)
    return counts.most_common(MAX_THEMES)


def future_directions(messages: List[Message]) -> List[str]:
    questions = [m for m in messages if "?" in m.content][-QUESTION_WINDOW:]
    directions = [f"{m.content.split('?', 1)[0]}?" for m in questions]
    return directions or [DEFAULT_DIRECTION]


def synthesize_session(session: GroupSession) -> SessionSynthesis:
    """Summarize a finished session: metrics, themes, insights and follow-ups."""
    insights = key_insights(session.messages)
    result = SessionSynthesis(
        session_name=session.name,
        duration=format_duration(session.start_time, session.end_time),
        message_count=len(session.messages),
        participant_count=len(session.participants),
        themes=emergent_themes(session.messages),
        key_insights=[m.content[:EXCERPT_CHARS] for m in insights],
        directions=future_directions(session.messages),
    )
    logger.info(
        f"synthesis:done | session={session.id} messages={result.message_count} "
        f"insights={len(result.key_insights)} themes={len(result.themes)}"
    )
    return result
