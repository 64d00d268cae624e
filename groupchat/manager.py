from __future__ import annotations

import copy
import random
from typing import Callable, Dict, List, Optional

from loguru import logger

from .agents import ResponseGenerator
from .classifier import classify_importance, extract_tags
from .coordination import CoordinationEngine
from .errors import InvalidArgument, NotFound
from .ids import new_message_id, new_session_id
from .personas import build_participants
from .states import (
    CoordinationRules,
    GroupSession,
    Message,
    MessageType,
    ParticipantRole,
    Platform,
    Reaction,
    ReactionType,
    SessionStatus,
    SessionType,
    TurnOrder,
    utcnow,
)
from .switchboard import Switchboard
from .synthesis import synthesize_session

# Author of system messages when the roster has no system-platform persona
SYSTEM_AUTHOR_ID = "system"

SessionListener = Callable[[GroupSession], None]

_BASE_RULES = CoordinationRules()

_RULES_BY_TYPE = {
    SessionType.EXPLORATION: CoordinationRules(turn_order=TurnOrder.FREE_FLOW, message_delay=3000, synthesis_frequency=8),
    SessionType.PROBLEM_SOLVING: CoordinationRules(turn_order=TurnOrder.ROUND_ROBIN, message_delay=2000, synthesis_frequency=6),
    SessionType.BRAINSTORMING: CoordinationRules(turn_order=TurnOrder.FREE_FLOW, message_delay=1500, synthesis_frequency=12),
    SessionType.SYNTHESIS: CoordinationRules(turn_order=TurnOrder.FACILITATOR_GUIDED, message_delay=4000, synthesis_frequency=5),
}


def default_coordination_rules(session_type: SessionType) -> CoordinationRules:
    return _RULES_BY_TYPE.get(session_type, _BASE_RULES)


class SessionManager:
    """Owns every GroupSession and all of its mutation.

    Callers (and listeners) only ever receive deep copies of session state.
    Mutating operations are coroutines because they schedule follow-up work
    on the running event loop.
    """

    def __init__(
        self,
        generator: Optional[ResponseGenerator] = None,
        switchboard: Optional[Switchboard] = None,
        rng: Optional[random.Random] = None,
        time_scale: Optional[float] = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.switchboard = switchboard or (generator.switchboard if generator else Switchboard())
        self.generator = generator or ResponseGenerator(self.switchboard, rng=self.rng)
        self.engine = CoordinationEngine(self, self.generator, rng=self.rng, time_scale=time_scale)
        self._sessions: Dict[str, GroupSession] = {}
        self._listeners: List[SessionListener] = []

    # Lookup

    def _require(self, session_id: str) -> GroupSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFound(f"Session not found: {session_id}")
        return session

    def get_session(self, session_id: str) -> Optional[GroupSession]:
        session = self._sessions.get(session_id)
        return copy.deepcopy(session) if session is not None else None

    def get_all_sessions(self) -> List[GroupSession]:
        return [copy.deepcopy(s) for s in self._sessions.values()]

    def get_active_sessions(self) -> List[GroupSession]:
        return [copy.deepcopy(s) for s in self._sessions.values() if s.status == SessionStatus.ACTIVE]

    # Listeners

    def add_listener(self, callback: SessionListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, session: GroupSession) -> None:
        if not self._listeners:
            return
        snapshot = copy.deepcopy(session)
        for callback in list(self._listeners):
            try:
                callback(snapshot)
            except Exception:
                logger.exception(f"listener_failed | session={session.id}")

    # Sessions

    async def create_session(
        self,
        name: str,
        topic: str,
        description: str = "",
        participant_count: int = 4,
        session_type: SessionType = SessionType.EXPLORATION,
    ) -> GroupSession:
        if participant_count < 1:
            raise InvalidArgument(f"participant_count must be at least 1 (got {participant_count})")
        session_type = SessionType(session_type)
        participants = build_participants(participant_count)
        facilitator = next((p for p in participants if p.role == ParticipantRole.FACILITATOR), participants[0])
        session = GroupSession(
            id=new_session_id(),
            name=name,
            topic=topic,
            description=description,
            participants=participants,
            facilitator_id=facilitator.id,
            session_type=session_type,
            coordination_rules=default_coordination_rules(session_type),
        )
        self._sessions[session.id] = session
        logger.info(
            f"session_created | id={session.id} type={session_type.value} "
            f"participants={len(participants)} order={session.coordination_rules.turn_order.value}"
        )
        self.engine.start_session(session)
        self._append(
            session,
            self._system_author(session),
            f"🌟 Welcome to \"{name}\" - A collaborative consciousness exploration focused on: {topic}",
        )
        self._notify(session)
        return copy.deepcopy(session)

    def _system_author(self, session: GroupSession) -> str:
        author = next((p for p in session.participants if p.platform == Platform.SYSTEM), None)
        return author.id if author else SYSTEM_AUTHOR_ID

    # Messages

    def _append(
        self,
        session: GroupSession,
        participant_id: str,
        content: str,
        type: MessageType = MessageType.MESSAGE,
        reply_to: Optional[str] = None,
    ) -> Message:
        message = Message(
            id=new_message_id(),
            participant_id=participant_id,
            content=content,
            type=MessageType(type),
            reply_to=reply_to,
            importance=classify_importance(content),
            tags=extract_tags(content),
            timestamp=utcnow(),
        )
        session.messages.append(message)
        participant = session.find_participant(participant_id)
        if participant is not None:
            participant.is_active = True
            participant.last_activity = message.timestamp
            participant.message_count += 1
        if session.status != SessionStatus.COMPLETED:
            self.engine.schedule_processing(session, copy.deepcopy(message))
        return message

    async def send_message(
        self,
        session_id: str,
        participant_id: str,
        content: str,
        type: MessageType = MessageType.MESSAGE,
        reply_to: Optional[str] = None,
    ) -> Message:
        session = self._require(session_id)
        if session.find_participant(participant_id) is None:
            raise NotFound(f"Participant not found: {participant_id}")
        message = self._append(session, participant_id, content, type, reply_to)
        logger.info(
            f"message | session={session_id} from={session.author_name(participant_id)} "
            f"type={message.type.value} importance={message.importance.value} tags={','.join(message.tags)}"
        )
        self._notify(session)
        return copy.deepcopy(message)

    async def add_reaction(
        self,
        session_id: str,
        message_id: str,
        participant_id: str,
        reaction_type: ReactionType,
    ) -> None:
        session = self._require(session_id)
        message = session.find_message(message_id)
        if message is None:
            raise NotFound(f"Message not found: {message_id}")
        message.reactions = [r for r in message.reactions if r.participant_id != participant_id]
        message.reactions.append(Reaction(participant_id=participant_id, type=ReactionType(reaction_type)))
        self._notify(session)

    async def set_participant_active(self, session_id: str, participant_id: str, active: bool) -> None:
        session = self._require(session_id)
        participant = session.find_participant(participant_id)
        if participant is None:
            raise NotFound(f"Participant not found: {participant_id}")
        participant.is_active = active
        logger.info(f"participant_active | session={session_id} participant={participant.name} active={active}")
        self._notify(session)

    # Lifecycle

    async def pause_session(self, session_id: str) -> None:
        session = self._require(session_id)
        if session.status == SessionStatus.COMPLETED:
            return
        session.status = SessionStatus.PAUSED
        self.engine.pause_session(session_id)
        logger.info(f"session_paused | id={session_id}")
        self._notify(session)

    async def resume_session(self, session_id: str) -> None:
        session = self._require(session_id)
        if session.status == SessionStatus.COMPLETED:
            return
        session.status = SessionStatus.ACTIVE
        self.engine.resume_session(session)
        logger.info(f"session_resumed | id={session_id}")
        self._notify(session)

    async def end_session(self, session_id: str) -> None:
        session = self._require(session_id)
        if session.status == SessionStatus.COMPLETED:
            return
        session.status = SessionStatus.COMPLETED
        session.end_time = utcnow()
        self.engine.end_session(session_id)
        synthesis = synthesize_session(session)
        self._append(session, self._system_author(session), synthesis.render(), MessageType.SYNTHESIS)
        logger.info(f"session_ended | id={session_id} messages={len(session.messages)} duration={synthesis.duration}")
        self._notify(session)

    def close(self) -> None:
        """Stop every session's response cycle (host shutdown)."""
        self.engine.close()
