"""
Headless game controller for a player-vs-opponent match.

Drives the menu / countdown / play / game-over cycle over an ArenaEnvironment
and reports to a GameView (any UI). Time is passed in explicitly, in seconds.
"""

import logging
from enum import Enum
from typing import Generator, Optional, Protocol

from .agent import FirefighterAgent
from .config import MatchConfig
from .env import ArenaEnvironment

logger = logging.getLogger(__name__)


class GameState(Enum):
    DEFAULT = "default"
    MAIN_MENU = "main_menu"
    PREPARING = "preparing"
    PLAYING = "playing"
    PAUSED = "paused"
    GAMEOVER = "gameover"


class GameView(Protocol):
    """What the game controller shows to the user."""

    def show_banner(self, text: str) -> None: ...

    def show_button(self, text: str) -> None: ...

    def hide_button(self) -> None: ...

    def set_timer(self, time_remaining: float) -> None: ...

    def set_player_progress(self, fraction: float) -> None: ...

    def set_opponent_progress(self, fraction: float) -> None: ...


class GameManager:
    """
    Manages match flow.

    The countdown runs as a generator that yields how long to wait before its
    next banner; ``update`` resumes it once that much time has passed.
    """

    def __init__(
        self,
        env: ArenaEnvironment,
        view: GameView,
        match: Optional[MatchConfig] = None,
        player: str = "player",
        opponent: str = "opponent",
    ):
        self.env = env
        self.view = view
        self.match = match or MatchConfig()
        self.player: FirefighterAgent = env.agents[player]
        self.opponent: FirefighterAgent = env.agents[opponent]
        self.state = GameState.DEFAULT
        self._paused_at: Optional[float] = None
        self.winner: Optional[str] = None

        self._timer_start: Optional[float] = None
        self._countdown: Optional[Generator[float, None, None]] = None
        self._resume_at = 0.0

    def start(self, now: float) -> None:
        """Enter the main menu."""
        self.main_menu(now)

    def time_remaining(self, now: float) -> float:
        if self._timer_start is None:
            return 0.0
        if self._paused_at is not None:
            now = self._paused_at
        return max(0.0, self.match.game_timer - (now - self._timer_start))

    # transitions

    def button_clicked(self, now: float) -> None:
        """Handle the single UI button in the current state."""
        if self.state == GameState.GAMEOVER:
            self.main_menu(now)
        elif self.state == GameState.MAIN_MENU:
            self.start_game(now)
        elif self.state == GameState.PAUSED:
            self.resume(now)
        else:
            logger.warning("Button clicked in unexpected state: %s", self.state.name)

    def main_menu(self, now: float) -> None:
        self.state = GameState.MAIN_MENU
        self._paused_at = None
        self.winner = None
        self._timer_start = None
        self._countdown = None

        self.view.show_banner("")
        self.view.show_button("Start")

        self.env.field.reset_all()
        self.player.on_episode_begin(self.env.rng)
        self.opponent.on_episode_begin(self.env.rng)
        self.player.freeze()
        self.opponent.freeze()

    def start_game(self, now: float) -> None:
        self.state = GameState.PREPARING
        self.view.show_banner("")
        self.view.hide_button()
        self._countdown = self._run_countdown()
        self._resume_at = now
        self._advance_countdown(now)

    def pause(self, now: float) -> None:
        """Stop play and the game clock until the button is clicked."""
        if self.state != GameState.PLAYING:
            logger.warning("Cannot pause in state: %s", self.state.name)
            return
        self.state = GameState.PAUSED
        self._paused_at = now
        self.player.freeze()
        self.opponent.freeze()
        self.view.show_button("Resume")

    def resume(self, now: float) -> None:
        self.state = GameState.PLAYING
        # Time spent paused does not count against the timer
        self._timer_start += now - self._paused_at
        self._paused_at = None
        self.player.unfreeze()
        self.opponent.unfreeze()
        self.view.hide_button()

    def end_game(self) -> None:
        self.state = GameState.GAMEOVER
        self.player.freeze()
        self.opponent.freeze()

        if self.player.fires_extinguished <= self.opponent.fires_extinguished:
            self.winner = self.opponent.name
            self.view.show_banner("Agent wins!")
        else:
            self.winner = self.player.name
            self.view.show_banner("You win!")
        self.view.show_button("Main Menu")

    # countdown

    def _run_countdown(self) -> Generator[float, None, None]:
        for text in self.match.countdown:
            self.view.show_banner(text)
            yield self.match.countdown_interval
        self.view.show_banner("")

    def _advance_countdown(self, now: float) -> None:
        while self._countdown is not None and now >= self._resume_at:
            try:
                wait = next(self._countdown)
            except StopIteration:
                self._countdown = None
                self._begin_play(self._resume_at)
                return
            self._resume_at += wait

    def _begin_play(self, now: float) -> None:
        self.state = GameState.PLAYING
        self._timer_start = now
        self.player.unfreeze()
        self.opponent.unfreeze()

    # per frame

    def update(self, now: float) -> None:
        """Check end conditions and refresh the view; call every frame."""
        if self.state == GameState.PREPARING:
            self._advance_countdown(now)

        if self.state == GameState.PLAYING:
            winning = self.match.winning_fires
            if (self.time_remaining(now) <= 0.0
                    or self.player.fires_extinguished >= winning
                    or self.opponent.fires_extinguished >= winning):
                self.end_game()

            self.view.set_timer(self.time_remaining(now))
            self.view.set_player_progress(self.player.fires_extinguished / winning)
            self.view.set_opponent_progress(self.opponent.fires_extinguished / winning)
        elif self.state in (GameState.PREPARING, GameState.PAUSED, GameState.GAMEOVER):
            self.view.set_timer(self.time_remaining(now))
        else:
            # Hide the timer
            self.view.set_timer(-1.0)
            self.view.set_player_progress(0.0)
            self.view.set_opponent_progress(0.0)

    def step(self, now: float) -> None:
        """Advance the arena by one fixed step while playing, then update."""
        if self.state == GameState.PLAYING:
            self.env.step()
        self.update(now)
