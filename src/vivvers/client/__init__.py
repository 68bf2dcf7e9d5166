"""Client-side helpers for talking to the Vivvers API."""

from vivvers.client.api import VivversClient
from vivvers.client.like_toggle import LikeToggle, ToggleOutcome, ToggleState

__all__ = ["LikeToggle", "ToggleOutcome", "ToggleState", "VivversClient"]
