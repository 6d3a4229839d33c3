"""
eLN notebook service.

Access, listing and update of experiments, database items and experiment
templates, with team administration of groups, statuses and item types.
"""

__version__ = "1.0.0"
