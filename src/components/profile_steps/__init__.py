"""
Profile steps component - Registration extensions.
"""

from .component import ProfileStepRegistry, TimezoneStep, run_profile_steps
from .ports import ProfileStepPort

__all__ = [
    "run_profile_steps",
    "ProfileStepRegistry",
    "ProfileStepPort",
    "TimezoneStep",
]
