"""
Momentum persistence core.

Embedded record store for users, tasks, milestones and the remembered
login session, plus the domain access layer and service facade consumed by
UI collaborators.
"""

__version__ = "0.1.0"
