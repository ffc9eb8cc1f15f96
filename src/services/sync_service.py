"""
Client-side synchronization of the shared game record.

There is no game server: every client validates moves against its own simulation of the game
and writes the result to the central record. The store's change notifications are the single ordering authority:
the local simulation is never advanced by the client's own write, it is only ever replaced by rebuilding it
from the latest stored record (reconcile). A move that lost a race against the opponent's client
is thereby discarded on the next notification, and a failed write leaves the simulation untouched.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import chess

from src.api.models import GameStateResponse, JoinSeatRequest, MoveRequest
from src.core.exceptions import (
    AlreadyClaimedError,
    GameStateError,
    MovePendingError,
    NotAuthenticatedError,
    NotYourTurnError,
    ReplayError,
    RepositoryError,
    StoreUnavailableError,
)
from src.core.models import OPEN_SEAT, ChangeEvent, GameModel, GameRecord
from src.core.shared_types import Color, PieceType, Status
from src.db.change_feed import ALL_RECORDS, SubscriptionHandle
from src.db.repository import GameRecordStore
from src.rules import engine
from src.services import turn_authority
from src.services.auth import AuthProvider
from src.services.history_logger import HistoryLogger
from src.services.notifier import TurnNotifier

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalSimulationState:
    """
    The client's private rules engine state, rebuilt from a stored record.

    Never mutated: moves are tried on a copy of the board, and every reconcile creates a new instance.
    from_history is False when the move log could not be replayed and the board was loaded from the position instead
    (no move history, so repetitions are not detected).
    """

    record: GameRecord
    board: chess.Board
    from_history: bool

    @property
    def side_to_move(self) -> Color:
        return engine.side_to_move(self.board)

    @property
    def position(self) -> str:
        return engine.to_position(self.board)


class StateSynchronizer:
    """Loads, mirrors and mutates the shared game record on behalf of the current user."""

    def __init__(
        self,
        store: GameRecordStore,
        history: HistoryLogger,
        notifier: TurnNotifier,
        auth: AuthProvider,
    ) -> None:
        self.store = store
        self.history = history
        self.notifier = notifier
        self.auth = auth
        self._simulation: Optional[LocalSimulationState] = None
        self._subscription: Optional[SubscriptionHandle] = None
        self._move_pending = False
        # record our last move was built on, until a newer record is reconciled
        self._unconfirmed: Optional[GameRecord] = None

    # -- Lifecycle ---
    def start(self) -> GameRecord:
        """Load (or create) the game and follow every change made to it."""
        self.load_or_create()
        if not self.subscribed:
            self._subscription = self.store.subscribe(ALL_RECORDS, self._on_change)
        return self.record

    def close(self) -> None:
        """Stop following changes (e.g. on logout)."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.active

    @property
    def simulation(self) -> LocalSimulationState:
        if self._simulation is None:
            raise GameStateError("No game loaded yet.")
        return self._simulation

    @property
    def record(self) -> GameRecord:
        return self.simulation.record

    # -- Synchronization ---
    def load_or_create(self) -> GameRecord:
        """
        Fetch the most recently created game, create a new one if there is none.
        ----

        Two clients may both find nothing and both create a game. That is tolerated:
        the next read of "most recent" returns the same record to both of them.
        """
        record = self.store.get_latest_game()
        if record is None:
            log.info("No game found, creating a new one.")
            record = self.store.create_game(self._new_game())
        self.reconcile(record)
        return record

    def reconcile(self, remote_record: GameRecord) -> LocalSimulationState:
        """
        Rebuild the local simulation from a stored record.
        ----

        The move log is authoritative. If it cannot be replayed, load the position directly:
        move history is lost, but the game stays playable. Only a record whose position is invalid as well raises.
        """
        board, from_history = self._rebuild_board(remote_record)
        self._simulation = LocalSimulationState(remote_record, board, from_history)
        if self._unconfirmed is not None and not self._same_state(self._unconfirmed, remote_record):
            self._unconfirmed = None
        log.debug(
            "Reconciled game %s: %s, %d moves",
            remote_record.id,
            remote_record.status,
            len(board.move_stack),
        )
        return self._simulation

    def _rebuild_board(self, record: GameRecord) -> tuple[chess.Board, bool]:
        if record.move_log.strip():
            try:
                board = engine.replay(record.move_log)
            except ReplayError as e:
                log.warning(
                    "Cannot replay move log of game %s, loading its position instead: %s",
                    record.id,
                    e,
                )
            else:
                if engine.to_position(board) != record.position:
                    log.warning(
                        "Stored position of game %s disagrees with its move log. Using the move log.",
                        record.id,
                    )
                return board, True
        return engine.load_position(record.position), False

    def _on_change(self, event: ChangeEvent) -> None:
        """Notifications carry no data: re-fetch the latest game and rebuild from it."""
        log.debug("Received %s of game %s", event.action, event.record_id)
        try:
            latest = self.store.get_latest_game()
        except StoreUnavailableError:
            log.warning(
                "Could not fetch game after %s notification, waiting for the next one.",
                event.action,
            )
            return
        if latest is None:
            log.warning("Game %s is gone from the store.", event.record_id)
            return
        self.reconcile(latest)

    def _after_write(self) -> None:
        """Without a subscription nobody delivers the notification of our own write: fetch it ourselves."""
        if self.subscribed:
            return
        latest = self.store.get_latest_game()
        if latest is not None:
            self.reconcile(latest)

    # -- Player actions ---
    def propose_move(
        self,
        from_square: str,
        to_square: str,
        promotion: Optional[PieceType | str] = None,
    ) -> None:
        """
        Attempt a move for the current user.
        ----

        1. game must not be over
        2. it must be the user's turn
        3. the rules engine must accept the move
        4. compute the new status
        5. write position / move log / status to the store (last writer wins)
        6. game over? --> write the history record
        7. notify the opponent

        Steps 1-4 happen on the local simulation, without any call to the store.
        The simulation itself is left as is: it gets rebuilt from the notification caused by the write.
        Until that notification has been reconciled, further moves raise MovePendingError.
        """
        request = MoveRequest(
            from_square=from_square, to_square=to_square, promote_to=promotion
        )
        if self._move_pending or self._unconfirmed is not None:
            raise MovePendingError("Wait for the previous move to be stored first.")

        simulation = self.simulation
        record = simulation.record

        # make sure the game is (still) in progress
        if record.status.is_terminal:
            raise GameStateError(f"Game is over. status: {record.status}")

        # make sure it is your turn
        user_id = self.auth.current_user_id
        side_to_move = simulation.side_to_move
        if not turn_authority.is_my_turn(record, side_to_move, user_id):
            raise NotYourTurnError(f"It is not your turn. Waiting for {side_to_move} to move first.")

        # try the move on a copy of the simulated board
        after = engine.apply_move(
            simulation.board, request.from_square, request.to_square, request.promote_to
        )
        status = engine.status_of(after)

        self._move_pending = True
        self._unconfirmed = record
        try:
            try:
                written = self.store.update_game(
                    record.id,
                    position=engine.to_position(after),
                    move_log=engine.serialize_history(after),
                    status=status,
                    last_move=engine.last_move(after),
                )
                if written is None:
                    raise RepositoryError(f"Game with id={record.id} not found.")
            except RepositoryError:
                # nothing was stored, so no notification will confirm it
                self._unconfirmed = None
                raise
            log.info(
                "%s played %s%s in game %s, status: %s",
                user_id,
                request.from_square,
                request.to_square,
                record.id,
                status,
            )

            if status.is_terminal:
                self.history.log_conclusion(written, status)

            opponent = turn_authority.opponent_of(written, user_id)
            if opponent:
                self.notifier.send_turn_notification(opponent)
        finally:
            self._move_pending = False

        self._after_write()

    def reset_game(self) -> GameRecord:
        """Back to the initial position with both seats open. Resetting a reset game changes nothing."""
        fresh = self._new_game()
        record = None
        if self._simulation is not None:
            record = self.store.update_game(
                self.record.id,
                position=fresh.position,
                move_log=fresh.move_log,
                white_player=fresh.white_player,
                black_player=fresh.black_player,
                status=fresh.status,
                last_move=fresh.last_move,
            )
        if record is None:
            record = self.store.create_game(fresh)
        log.info("Game %s reset.", record.id)
        self._after_write()
        return record

    def join_seat(self, color: Color | str) -> GameRecord:
        """Claim an open seat for the current user. A claimed seat is never taken over."""
        request = JoinSeatRequest(color=color)
        user_id = self.auth.current_user_id
        if not user_id:
            raise NotAuthenticatedError("Must be logged in to take a seat.")

        # check against the stored record, not against the (possibly stale) local copy
        current = self.store.get_game(self.record.id)
        if current is None:
            raise RepositoryError(f"Game with id={self.record.id} not found.")
        owner = turn_authority.seat_owner(current, request.color)
        if owner != OPEN_SEAT:
            raise AlreadyClaimedError(f"The {request.color} seat is already taken.")

        seat_field = "white_player" if request.color == Color.WHITE else "black_player"
        record = self.store.update_game(current.id, **{seat_field: user_id})
        if record is None:
            raise RepositoryError(f"Game with id={current.id} not found.")
        log.info("%s took the %s seat in game %s", user_id, request.color, record.id)
        self._after_write()
        return record

    # -- Views ---
    def legal_moves(self, square: str) -> list[str]:
        """Moves (UCI) available to the piece on the square, in the current simulation."""
        return engine.moves_from(self.simulation.board, square)

    def snapshot(self) -> GameStateResponse:
        simulation = self.simulation
        record = simulation.record
        user_id = self.auth.current_user_id
        return GameStateResponse(
            game_id=record.id,
            fen_state=simulation.position,
            move_history=record.move_log,
            status=record.status,
            players={
                color: owner
                for color in Color
                if (owner := turn_authority.seat_owner(record, color))
            },
            side_to_move=simulation.side_to_move,
            last_move=record.last_move,
            player_color=turn_authority.player_color(record, user_id),
            is_my_turn=turn_authority.is_my_turn(record, simulation.side_to_move, user_id),
            is_spectator=turn_authority.is_spectator(record, user_id),
        )

    # -- Internal helpers --
    @staticmethod
    def _new_game() -> GameModel:
        return GameModel(
            position=engine.initial_position(),
            move_log="",
            white_player=OPEN_SEAT,
            black_player=OPEN_SEAT,
            status=Status.NEW,
        )

    @staticmethod
    def _same_state(old: GameRecord, new: GameRecord) -> bool:
        return (old.id, old.position, old.move_log, old.status, old.white_player, old.black_player) == (
            new.id,
            new.position,
            new.move_log,
            new.status,
            new.white_player,
            new.black_player,
        )
