"""
clockwise: a controllable virtual clock for testing time-dependent code.
"""

from clockwise.time import Clock, VirtualClock, current_clock, now

__version__ = "0.1.0"

__all__ = ["Clock", "VirtualClock", "current_clock", "now", "__version__"]
