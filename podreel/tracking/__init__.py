"""
Completion tracking module.

Provides the CorrelationTracker, which maps remote job ids to their
completion state and resolves waiters once all the ids they asked for
are done.
"""

from .tracker import CorrelationTracker, JobRecord, WaitRegistration

__all__ = ["CorrelationTracker", "JobRecord", "WaitRegistration"]
