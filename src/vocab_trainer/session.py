"""Quiz session state machine and the repeat pass for wrong answers."""
import logging
import random
from concurrent.futures import Executor, Future, wait
from datetime import datetime
from enum import Enum

from vocab_trainer.errors import CardNotFound, InvalidQuality, PersistenceFailure, SessionStateError
from vocab_trainer.models import (
    DIRECTION_MODES, DIRECTIONS, RANDOM_DIRECTION, SOURCE_TO_TARGET,
    Card, SessionResult, SessionStats,
)
from vocab_trainer.sm2 import PASSING_QUALITY, apply_sm2_update
from vocab_trainer.store import CardStore

logger = logging.getLogger(__name__)


class SessionState(Enum):
    PRESENTING = "presenting"
    REVEALING_ANSWER = "revealing_answer"
    AWAITING_RATING = "awaiting_rating"
    COMPLETED = "completed"
    EXITED = "exited"


TERMINAL_STATES = (SessionState.COMPLETED, SessionState.EXITED)
RATEABLE_STATES = (SessionState.REVEALING_ANSWER, SessionState.AWAITING_RATING)


class QuizSession:
    """One ordered run through a list of cards.

    The session owns its position, results and statistics. Card schedules are
    updated in memory on each rating and handed to the store for persistence;
    the store owns durability. With an executor, persist calls are submitted
    in rating order and not awaited (failures show up after
    wait_for_persistence); without one they run inline.
    """

    def __init__(
        self,
        cards: list[Card],
        store: CardStore | None = None,
        direction_mode: str = SOURCE_TO_TARGET,
        rng: random.Random | None = None,
        repeat: bool = False,
        executor: Executor | None = None,
    ):
        if direction_mode not in DIRECTION_MODES:
            raise ValueError(f"Unknown direction mode: {direction_mode!r}")
        self.cards = list(cards)
        self.store = store
        self.direction_mode = direction_mode
        self.rng = rng or random.Random()
        self.repeat = repeat
        self.executor = executor

        self.index = 0
        self.direction = None
        self.results: list[SessionResult] = []
        self.stats = SessionStats()
        self.persistence_failures: list[PersistenceFailure] = []
        self._pending: list[tuple[str, Future]] = []
        self._withdrawn: set = set()

        if not self.cards:
            self.state = SessionState.COMPLETED
            logger.info("Empty %s, nothing to review", self._label)
        else:
            logger.info("Starting %s with %d cards", self._label, len(self.cards))
            self._present(0)

    @property
    def _label(self) -> str:
        return "repeat session" if self.repeat else "quiz session"

    @property
    def is_finished(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def current_card(self) -> Card | None:
        if self.is_finished:
            return None
        return self.cards[self.index]

    @property
    def prompt(self) -> str:
        card = self._require_active()
        return card.sides(self.direction)[0]

    @property
    def answer(self) -> str:
        card = self._require_active()
        if self.state == SessionState.PRESENTING:
            raise SessionStateError("Answer is hidden until revealed")
        return card.sides(self.direction)[1]

    @property
    def progress(self) -> tuple[int, int]:
        """(1-based position, session length)."""
        return min(self.index + 1, len(self.cards)), len(self.cards)

    def _require_active(self) -> Card:
        if self.is_finished:
            raise SessionStateError(f"Session is {self.state.value}")
        return self.cards[self.index]

    def _draw_direction(self) -> str:
        if self.direction_mode == RANDOM_DIRECTION:
            return self.rng.choice(DIRECTIONS)
        return self.direction_mode

    def _present(self, index: int) -> None:
        self.index = index
        self.direction = self._draw_direction()
        self.state = SessionState.PRESENTING

    def _advance(self) -> None:
        if self.index + 1 >= len(self.cards):
            self.state = SessionState.COMPLETED
            logger.info(
                "Completed %s: %d/%d correct, best streak %d",
                self._label, self.stats.correct, self.stats.total, self.stats.max_streak,
            )
        else:
            self._present(self.index + 1)

    def reveal(self) -> str:
        """Show the answer side of the current card."""
        self._require_active()
        if self.state != SessionState.PRESENTING:
            raise SessionStateError("Answer is already revealed")
        self.state = SessionState.REVEALING_ANSWER
        return self.answer

    def withdraw(self, card_id) -> None:
        """Drop a card from the working set, e.g. after it was deleted."""
        self._withdrawn.add(card_id)

    def rate(self, quality: int, now: datetime, card_id=None) -> SessionResult:
        """Grade the current card and move on.

        Raises:
            InvalidQuality: quality outside 1-5; the session keeps waiting for
                a rating of the same card.
            CardNotFound: the card left the working set or card_id does not
                name the current card.
            SessionStateError: the answer has not been revealed, or the
                session is over.
        """
        card = self._require_active()
        if self.state not in RATEABLE_STATES:
            raise SessionStateError("Reveal the answer before rating")

        if card_id is not None and card_id != card.id:
            raise CardNotFound(card_id)
        if card.id in self._withdrawn:
            logger.warning("Card %s left the working set, skipping it", card.id)
            self._advance()
            raise CardNotFound(card.id)

        try:
            schedule = apply_sm2_update(card.schedule, quality, now)
        except InvalidQuality:
            self.state = SessionState.AWAITING_RATING
            raise

        card.schedule = schedule
        self._persist(card)

        result = SessionResult(card=card, quality=quality, direction=self.direction)
        self.results.append(result)
        self.stats.record(quality)
        self._advance()
        return result

    def _persist(self, card: Card) -> None:
        if self.store is None:
            return
        if self.executor is not None:
            future = self.executor.submit(self.store.persist, card.id, card.schedule)
            self._pending.append((card.id, future))
            return
        try:
            ok = self.store.persist(card.id, card.schedule)
        except Exception as exc:
            self._record_failure(PersistenceFailure(card.id, exc))
            return
        if not ok:
            self._record_failure(PersistenceFailure(card.id))

    def _record_failure(self, failure: PersistenceFailure) -> None:
        logger.error("%s", failure)
        self.persistence_failures.append(failure)

    def wait_for_persistence(self) -> list[PersistenceFailure]:
        """Block until issued persist calls finish and return all failures."""
        pending, self._pending = self._pending, []
        wait([future for _, future in pending])
        for card_id, future in pending:
            exc = future.exception()
            if exc is not None:
                self._record_failure(PersistenceFailure(card_id, exc))
            elif not future.result():
                self._record_failure(PersistenceFailure(card_id))
        return list(self.persistence_failures)

    def exit(self) -> None:
        """Abandon the session. Ratings already submitted stay persisted."""
        self._require_active()
        logger.info(
            "Left %s at card %d of %d", self._label, self.index + 1, len(self.cards),
        )
        self.state = SessionState.EXITED

    def wrong_answers(self) -> list[Card]:
        """Cards rated below passing, in the order they were rated."""
        return [r.card for r in self.results if r.quality < PASSING_QUALITY]


def build_repeat_session(session: QuizSession, **overrides) -> QuizSession:
    """Start a new pass over the cards a completed session got wrong."""
    if session.state != SessionState.COMPLETED:
        raise SessionStateError("Only a completed session can be repeated")
    options = {
        "store": session.store,
        "direction_mode": session.direction_mode,
        "rng": session.rng,
        "executor": session.executor,
    }
    options.update(overrides)
    wrong = session.wrong_answers()
    logger.info("Building repeat session over %d wrong answers", len(wrong))
    return QuizSession(wrong, repeat=True, **options)
