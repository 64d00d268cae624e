from __future__ import annotations

import argparse
import asyncio
import json
import random
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from groupchat import config
from groupchat.agents import DirectGenerationClient, HttpGenerationClient, ResponseGenerator
from groupchat.manager import SessionManager
from groupchat.personas import MAX_PERSONAS
from groupchat.states import GroupSession, SessionType
from groupchat.switchboard import ProviderConfig, Switchboard


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run a multi-agent group chat session")
    p.add_argument("--name", type=str, default="New Echo Session", help="Session name")
    p.add_argument("--topic", type=str, default="Consciousness and AI", help="Discussion topic")
    p.add_argument(
        "--description",
        type=str,
        default="Exploring the intersection of consciousness and artificial intelligence",
        help="Session description",
    )
    p.add_argument("--participants", type=int, default=4, help=f"Number of personas (1-{MAX_PERSONAS})")
    p.add_argument(
        "--session-type",
        type=str,
        choices=[t.value for t in SessionType],
        default=SessionType.EXPLORATION.value,
        help="Session type; picks the turn-order policy and pacing",
    )
    p.add_argument("--duration", type=float, default=60.0, help="Seconds to let the session run before ending it")
    p.add_argument("--time-scale", type=float, default=config.TIME_SCALE, help="Multiplier for all coordination delays")
    p.add_argument("--seed", type=int, default=None, help="Seed for turn selection, templates and pacing")
    p.add_argument(
        "--provider",
        action="append",
        default=[],
        metavar="NAME=PROVIDER[:MODEL]",
        help="Route a persona to a real provider, e.g. Marcus=openai or Luna=anthropic:claude-3-haiku-20240307",
    )
    p.add_argument("--generate-url", type=str, default=None, help="Use a running /generate endpoint instead of calling providers directly")
    p.add_argument("--opening", type=str, default=None, help="Optional first message posted by the facilitator")
    p.add_argument("--output", type=str, default=None, help="Write the final session JSON here")
    p.add_argument("--log-level", type=str, default=config.LOG_LEVEL, help="Loguru level")
    return p.parse_args(argv)


def parse_provider_specs(specs: List[str]) -> Dict[str, ProviderConfig]:
    """Parse NAME=PROVIDER[:MODEL] flags into configs keyed by persona name."""
    out: Dict[str, ProviderConfig] = {}
    for spec in specs:
        name, sep, target = spec.partition("=")
        if not sep or not name or not target:
            raise ValueError(f"Invalid --provider value: {spec!r}")
        provider, _, model = target.partition(":")
        out[name.strip()] = ProviderConfig(enabled=True, provider=provider.strip(), model=model.strip() or None)
    return out


def _log_turn(session: GroupSession, seen: Dict[str, int]) -> None:
    start = seen.get(session.id, 0)
    for m in session.messages[start:]:
        one_line = " ".join(m.content.split())
        snippet = one_line if len(one_line) <= 400 else one_line[:400] + "..."
        logger.info(f"turn | spk={session.author_name(m.participant_id)} type={m.type.value} imp={m.importance.value} | msg='{snippet}'")
    seen[session.id] = len(session.messages)


async def run(args: argparse.Namespace) -> GroupSession:
    rng = random.Random(args.seed)
    switchboard = Switchboard()
    client = HttpGenerationClient(args.generate_url) if args.generate_url else DirectGenerationClient()
    generator = ResponseGenerator(switchboard, client=client, rng=rng)
    manager = SessionManager(generator=generator, rng=rng, time_scale=args.time_scale)

    seen: Dict[str, int] = {}
    manager.add_listener(lambda s: _log_turn(s, seen))

    session = await manager.create_session(
        args.name,
        args.topic,
        args.description,
        participant_count=args.participants,
        session_type=SessionType(args.session_type),
    )
    by_name = {p.name: p.id for p in session.participants}
    for name, provider_config in parse_provider_specs(args.provider).items():
        if name not in by_name:
            logger.warning(f"provider_skip | no persona named {name} in this session")
            continue
        switchboard.set_participant_config(by_name[name], provider_config)

    if args.opening:
        await manager.send_message(session.id, session.facilitator_id, args.opening)

    t0 = time.perf_counter()
    await asyncio.sleep(args.duration)
    await manager.end_session(session.id)
    manager.close()
    logger.info(f"Session completed in {time.perf_counter() - t0:.1f}s")
    return manager.get_session(session.id)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper(), colorize=True, format="{time:HH:mm:ss} | {level} | {message}")

    final = asyncio.run(run(args))
    payload = json.dumps(final.to_dict(), ensure_ascii=False, indent=2)
    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(payload, encoding="utf-8")
        logger.info(f"Wrote session to {out}")
    else:
        print(payload)


if __name__ == "__main__":
    main()
