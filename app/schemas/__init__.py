# ruff: noqa: F403, F401
"""Schemas package initialization."""

from .base import *
from .campaign import *
from .rss_feed import *
from .subscriber import *
from .template import *
from .user import *
