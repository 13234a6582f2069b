"""Directory sync domain — cycle state, profile rotation and interval tuning."""

from .models import *  # noqa: F401,F403
from .ports import *  # noqa: F401,F403
from .interval import recompute_interval  # noqa: F401
from .registry import ProfileRegistry  # noqa: F401
from .cycle_store import CycleStateStore  # noqa: F401
