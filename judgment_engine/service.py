# judgment_engine/service.py
from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping, Optional, Union

from .cards import Card, dict_to_card
from .config import Settings, configure_logging
from .engine import GameEngine
from .errors import GameNotFoundError, InvalidActionError
from .events import GameEvent, GameObserver, GameStateChanged
from .snapshot import GameSnapshot

logger = logging.getLogger(__name__)


@dataclass
class _GameEntry:
    engine: GameEngine
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    # Set while no decided trick is waiting to be cleared.
    idle: asyncio.Event = field(default_factory=asyncio.Event)
    snapshot: Optional[GameSnapshot] = None
    resolver: Optional["asyncio.Task[None]"] = None


class GameService:
    """
    Owns every live game and serializes access to each one.

    Mutations of one game run one at a time under that game's lock; games
    share nothing but the registry. After every mutation the service takes
    a fresh snapshot and publishes it, followed by any derived events, to
    the registered observers.

    When a trick is decided the game stays frozen for
    `settings.trick_resolution_delay` seconds. Human actions arriving in
    that window wait for it to close; AI driving stops and resumes once
    the trick is cleared.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        observers: Optional[Iterable[GameObserver]] = None,
        rng_seed: Optional[int] = None,
    ) -> None:
        self.settings = settings if settings is not None else Settings.from_env()
        configure_logging(self.settings.log_level)
        self._observers: List[GameObserver] = list(observers or [])
        self._games: Dict[str, _GameEntry] = {}
        self._rng_seed = rng_seed
        self._games_created = 0

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def add_observer(self, observer: GameObserver) -> None:
        self._observers.append(observer)

    def game_ids(self) -> List[str]:
        return list(self._games)

    async def create_game_with_ai(
        self,
        participant_count: int,
        human_name: str,
        total_rounds: int,
    ) -> GameSnapshot:
        game_id = self._new_game_id()
        engine_seed = (
            None
            if self._rng_seed is None
            else self._rng_seed + self._games_created
        )
        engine = GameEngine.with_ai(
            game_id,
            participant_count,
            human_name,
            total_rounds,
            rng_seed=engine_seed,
        )
        self._games_created += 1

        entry = _GameEntry(engine=engine)
        entry.idle.set()
        self._games[game_id] = entry

        async with entry.lock:
            self._commit(entry)
            if self.settings.auto_drive_ai:
                self._drive_locked(entry)
        return entry.snapshot

    def get_game_state(self, game_id: str) -> GameSnapshot:
        """Latest published snapshot; the same object until the next mutation."""
        return self._entry(game_id).snapshot

    async def place_bid(self, game_id: str, player_id: str, bid: int) -> None:
        entry = self._entry(game_id)
        async with self._acquire(game_id, entry) as engine:
            engine.place_bid(player_id, bid)
            self._commit(entry)
            if self.settings.auto_drive_ai:
                self._drive_locked(entry)

    async def play_card(
        self,
        game_id: str,
        player_id: str,
        card: Union[Card, Mapping[str, Any]],
    ) -> None:
        entry = self._entry(game_id)
        if not isinstance(card, Card):
            try:
                card = dict_to_card(dict(card))
            except (TypeError, ValueError) as exc:
                raise InvalidActionError(str(exc)) from exc

        async with self._acquire(game_id, entry) as engine:
            engine.play_card(player_id, card)
            self._commit(entry)
            if self.settings.auto_drive_ai:
                self._drive_locked(entry)

    async def drive_ai_turns(self, game_id: str) -> int:
        """
        Apply consecutive AI actions until a human is due or a trick is
        being resolved. Returns the number of actions applied.
        """
        entry = self._entry(game_id)
        async with entry.lock:
            if entry.engine.state.resolution_in_progress:
                return 0
            return self._drive_locked(entry)

    async def wait_until_settled(self, game_id: str) -> None:
        """Wait for pending trick resolutions, including any they trigger."""
        entry = self._entry(game_id)
        while entry.resolver is not None and not entry.resolver.done():
            await entry.resolver

    def discard_game(self, game_id: str) -> None:
        entry = self._games.pop(game_id, None)
        if entry is None:
            raise GameNotFoundError(game_id)
        if entry.resolver is not None:
            entry.resolver.cancel()
        # Wake anyone waiting on the resolution window so they see the game is gone.
        entry.idle.set()
        logger.info("Discarded game %s", game_id)

    async def shutdown(self) -> None:
        resolvers = [
            e.resolver for e in self._games.values()
            if e.resolver is not None and not e.resolver.done()
        ]
        for task in resolvers:
            task.cancel()
        results = await asyncio.gather(*resolvers, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception) and not isinstance(result, asyncio.CancelledError):
                logger.error("Trick resolution task failed: %s", result)
        self._games.clear()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _new_game_id(self) -> str:
        while True:
            game_id = uuid.uuid4().hex[:9]
            if game_id not in self._games:
                return game_id

    def _entry(self, game_id: str) -> _GameEntry:
        entry = self._games.get(game_id)
        if entry is None:
            raise GameNotFoundError(game_id)
        return entry

    @asynccontextmanager
    async def _acquire(self, game_id: str, entry: _GameEntry) -> AsyncIterator[GameEngine]:
        """Take the game's lock once no trick is waiting to be cleared."""
        while True:
            await entry.idle.wait()
            await entry.lock.acquire()
            if self._games.get(game_id) is not entry:
                entry.lock.release()
                raise GameNotFoundError(game_id)
            if not entry.engine.state.resolution_in_progress:
                break
            entry.lock.release()

        try:
            yield entry.engine
        finally:
            entry.lock.release()

    def _drive_locked(self, entry: _GameEntry) -> int:
        applied = 0
        while entry.engine.take_ai_turn():
            applied += 1
            self._commit(entry)
        return applied

    def _commit(self, entry: _GameEntry) -> None:
        """Publish the new state; schedule clearing of a freshly decided trick."""
        engine = entry.engine
        entry.snapshot = engine.snapshot()
        self._publish(GameStateChanged(game_id=engine.state.id, snapshot=entry.snapshot))
        for event in engine.pop_events():
            self._publish(event)

        if engine.state.resolution_in_progress and entry.idle.is_set():
            entry.idle.clear()
            entry.resolver = asyncio.get_running_loop().create_task(
                self._resolve_after_delay(entry)
            )

    async def _resolve_after_delay(self, entry: _GameEntry) -> None:
        await asyncio.sleep(self.settings.trick_resolution_delay)
        async with entry.lock:
            entry.engine.complete_trick_resolution()
            entry.idle.set()
            self._commit(entry)
            if self.settings.auto_drive_ai:
                self._drive_locked(entry)

    def _publish(self, event: GameEvent) -> None:
        for observer in list(self._observers):
            try:
                observer.notify(event)
            except Exception:
                logger.exception(
                    "Observer %r failed on %s",
                    observer,
                    type(event).__name__,
                )
