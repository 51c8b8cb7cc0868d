"""
Adaptive study scheduler.

Decides what a learner should study next and how mastery evolves:
- Retention decay and review scheduling
- EMA mastery with rolling accuracy
- Prerequisite credit propagation (FIRe)
- Task selection with consolidation and interleaving
"""

__version__ = "0.1.0"
