"""Optimistic like toggle.

The displayed state flips as soon as the user acts, before the server
answers. The server's answer then replaces the guess, or the guess is
rolled back if the call fails. While a call is in flight further
activations are ignored, so a burst of clicks sends one request.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from vivvers.schemas.project import LikeToggleResponse
from vivvers.services.base import APIError

logger = logging.getLogger(__name__)

ToggleCall = Callable[[str], Awaitable[LikeToggleResponse]]

TOGGLE_FAILED_MESSAGE = "좋아요 처리 중 오류가 발생했습니다"


class ToggleState(Enum):
    IDLE = "idle"
    PENDING = "pending"
    ROLLING_BACK = "rolling_back"


@dataclass(frozen=True)
class ToggleOutcome:
    """What one activation did.

    ``sent`` is true only when a request went to the server. A
    ``redirect_to`` means the caller must send the user there instead.
    """

    sent: bool
    liked: bool
    count: int
    redirect_to: str | None = None
    error: str | None = None


class LikeToggle:
    """Like button state for one project or comment."""

    def __init__(
        self,
        target_id: str,
        liked: bool,
        count: int,
        toggle: ToggleCall,
        current_user_id: str | None = None,
        signin_path: str = "/signin",
    ) -> None:
        self.target_id = target_id
        self.liked = liked
        self.count = count
        self.current_user_id = current_user_id
        self.signin_path = signin_path
        self._toggle = toggle
        self._state = ToggleState.IDLE

    @property
    def state(self) -> ToggleState:
        return self._state

    def _outcome(self, sent: bool, **extra) -> ToggleOutcome:
        return ToggleOutcome(sent=sent, liked=self.liked, count=self.count, **extra)

    def sync(self, liked: bool, count: int) -> None:
        """Adopt state fetched elsewhere. Ignored while a toggle is in flight."""
        if self._state is ToggleState.IDLE:
            self.liked = liked
            self.count = count

    async def activate(self) -> ToggleOutcome:
        """Handle one click on the like button.

        Any failure of the call rolls the display back; nothing is raised
        to the caller and the toggle is always IDLE again afterwards.
        """
        if not self.current_user_id:
            return self._outcome(False, redirect_to=self.signin_path)

        if self._state is not ToggleState.IDLE:
            return self._outcome(False)

        previous = (self.liked, self.count)
        self.liked = not self.liked
        self.count = max(0, self.count + (1 if self.liked else -1))
        self._state = ToggleState.PENDING

        try:
            try:
                result = await self._toggle(self.target_id)
            except Exception as e:
                logger.warning("Like toggle failed for %s: %r", self.target_id, e)
                message = str(e) if isinstance(e, APIError) else ""
                return self._roll_back(previous, message or TOGGLE_FAILED_MESSAGE)

            if not result.success:
                return self._roll_back(previous, TOGGLE_FAILED_MESSAGE)

            self.liked = result.is_liked
            self.count = result.like_count
            self._state = ToggleState.IDLE
            return self._outcome(True)
        finally:
            # Cancellation skips the handlers above
            if self._state is not ToggleState.IDLE:
                self.liked, self.count = previous
                self._state = ToggleState.IDLE

    def _roll_back(self, previous: tuple[bool, int], error: str) -> ToggleOutcome:
        self._state = ToggleState.ROLLING_BACK
        self.liked, self.count = previous
        self._state = ToggleState.IDLE
        return self._outcome(True, error=error)
