from __future__ import annotations

import asyncio
import random
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Coroutine, Deque, Dict, List, Optional, Set

from loguru import logger

from . import config
from .agents import ResponseGenerator
from .errors import NotFound
from .states import GroupSession, Message, Participant, SessionStatus
from .turns import select_next_participants

if TYPE_CHECKING:
    from .manager import SessionManager

# Lower bound on the ticker period, seconds
MIN_TICK_SECONDS = 0.001


@dataclass
class SessionCycle:
    """Scheduling state for one session: ticker, pending speakers, in-flight work."""

    session_id: str
    period: float  # seconds between ticks
    queue: Deque[str] = field(default_factory=deque)
    ticker: Optional[asyncio.Task] = None
    tasks: Set[asyncio.Task] = field(default_factory=set)
    stalled: bool = False

    @property
    def running(self) -> bool:
        return self.ticker is not None and not self.ticker.done()


class CoordinationEngine:
    """Drives the response cycle of every session owned by a SessionManager.

    Sessions are always read back through the manager by ID; the engine keeps
    only the per-session SessionCycle.
    """

    def __init__(
        self,
        store: "SessionManager",
        generator: ResponseGenerator,
        rng: Optional[random.Random] = None,
        time_scale: Optional[float] = None,
    ) -> None:
        self.store = store
        self.generator = generator
        self.rng = rng or random.Random()
        self.time_scale = config.TIME_SCALE if time_scale is None else time_scale
        self._cycles: Dict[str, SessionCycle] = {}

    def _seconds(self, ms: float) -> float:
        return max(0.0, ms * self.time_scale / 1000.0)

    def _spawn(self, cycle: SessionCycle, coro: Coroutine) -> asyncio.Task:
        task = asyncio.create_task(coro)
        cycle.tasks.add(task)
        task.add_done_callback(cycle.tasks.discard)
        return task

    # Lifecycle

    def start_session(self, session: GroupSession) -> None:
        cycle = self._cycles.get(session.id)
        if cycle is None:
            period = max(MIN_TICK_SECONDS, self._seconds(session.coordination_rules.message_delay))
            cycle = SessionCycle(session_id=session.id, period=period)
            self._cycles[session.id] = cycle
        self._install_ticker(cycle)
        logger.info(f"cycle_start | session={session.id} period={cycle.period:.3f}s")

    def resume_session(self, session: GroupSession) -> None:
        self.start_session(session)

    def pause_session(self, session_id: str) -> None:
        cycle = self._cycles.get(session_id)
        if cycle is None:
            return
        self._cancel_ticker(cycle)
        logger.info(f"cycle_pause | session={session_id} queued={len(cycle.queue)}")

    def end_session(self, session_id: str) -> None:
        cycle = self._cycles.pop(session_id, None)
        if cycle is None:
            return
        self._cancel_ticker(cycle)
        current = asyncio.current_task()
        for task in list(cycle.tasks):
            if task is not current:
                task.cancel()
        cycle.queue.clear()
        logger.info(f"cycle_end | session={session_id}")

    def close(self) -> None:
        for session_id in list(self._cycles):
            self.end_session(session_id)

    def _install_ticker(self, cycle: SessionCycle) -> None:
        self._cancel_ticker(cycle)
        cycle.ticker = asyncio.create_task(self._run_ticker(cycle))

    def _cancel_ticker(self, cycle: SessionCycle) -> None:
        if cycle.ticker is not None and cycle.ticker is not asyncio.current_task():
            cycle.ticker.cancel()
        cycle.ticker = None

    # Introspection

    def pending(self, session_id: str) -> List[str]:
        cycle = self._cycles.get(session_id)
        return list(cycle.queue) if cycle else []

    def is_running(self, session_id: str) -> bool:
        cycle = self._cycles.get(session_id)
        return bool(cycle and cycle.running)

    # Turn processing

    def schedule_processing(self, session: GroupSession, message: Message) -> None:
        """Run process_message for `message` after the session's message delay."""
        cycle = self._cycles.get(session.id)
        if cycle is None:
            return
        delay = self._seconds(session.coordination_rules.message_delay)
        self._spawn(cycle, self._process_later(session.id, message, delay))

    async def _process_later(self, session_id: str, message: Message, delay: float) -> None:
        await asyncio.sleep(delay)
        self.process_message(session_id, message)

    def process_message(self, session_id: str, message: Message) -> List[str]:
        """Replace the session's pending queue with the speakers chosen for `message`."""
        cycle = self._cycles.get(session_id)
        session = self.store.get_session(session_id)
        if cycle is None or session is None or session.status == SessionStatus.COMPLETED:
            return []
        selected = select_next_participants(session, message, self.rng)
        cycle.queue = deque(selected)
        if selected:
            cycle.stalled = False
            names = ",".join(session.author_name(pid) for pid in selected)
            logger.debug(
                f"turn_selected | session={session_id} order={session.coordination_rules.turn_order.value} "
                f"after={session.author_name(message.participant_id)} next={names}"
            )
        elif not cycle.stalled:
            cycle.stalled = True
            logger.warning(f"turn_stall | session={session_id} no eligible participant to respond")
        return selected

    async def _run_ticker(self, cycle: SessionCycle) -> None:
        while True:
            await asyncio.sleep(cycle.period)
            session = self.store.get_session(cycle.session_id)
            if session is None or session.status != SessionStatus.ACTIVE:
                logger.debug(f"cycle_ticker_stop | session={cycle.session_id}")
                cycle.ticker = None
                return
            self._tick(cycle, session)

    def _tick(self, cycle: SessionCycle, session: GroupSession) -> None:
        if not cycle.queue:
            return
        participant_id = cycle.queue.popleft()
        participant = session.find_participant(participant_id)
        if participant is None or not participant.is_active:
            logger.debug(f"turn_skip | session={session.id} participant={participant_id} inactive or gone")
            self._reselect(cycle, session)
            return
        self._spawn(cycle, self._respond(session, participant))

    def _reselect(self, cycle: SessionCycle, session: GroupSession) -> None:
        """Refill an emptied queue from the latest message after a turn was dropped."""
        if not cycle.queue and session.messages:
            self.process_message(session.id, session.messages[-1])

    async def _respond(self, session: GroupSession, participant: Participant) -> None:
        try:
            reply = await self.generator.generate(session, participant)
        except Exception:
            logger.exception(f"reply_failed | session={session.id} participant={participant.name}")
            return

        span = config.REPLY_DELAY_MAX_MS - config.REPLY_DELAY_MIN_MS
        await asyncio.sleep(self._seconds(config.REPLY_DELAY_MIN_MS + self.rng.random() * span))

        current = self.store.get_session(session.id)
        if current is None or current.status == SessionStatus.COMPLETED:
            return
        speaker = current.find_participant(participant.id)
        if speaker is None or not speaker.is_active:
            logger.info(f"reply_dropped | session={session.id} participant={participant.name} deactivated mid-reply")
            cycle = self._cycles.get(session.id)
            if cycle is not None:
                self._reselect(cycle, current)
            return
        try:
            await self.store.send_message(session.id, participant.id, reply.content, reply.type)
        except NotFound as e:
            logger.warning(f"reply_dropped | session={session.id} participant={participant.name} err={e}")
