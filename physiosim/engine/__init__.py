"""
physiosim.engine
================

Process-wide pharmacological lookup tables.  :mod:`registry` maps receptor,
transporter and enzyme identifiers to the physiological signals they act on.
The tables are constants: they are built once at import time and never
mutated by a simulation run, so every run may read them without locking.
"""

from .registry import RECEPTORS, TRANSPORTERS, ENZYMES, targets_of  # noqa: F401

__all__ = ["RECEPTORS", "TRANSPORTERS", "ENZYMES", "targets_of"]
