"""Shared pytest fixtures and helpers for workflow tests."""

from .core import *  # noqa: F401,F403
from .events import *  # noqa: F401,F403
from .http import *  # noqa: F401,F403
