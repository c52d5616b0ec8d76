"""
Payroll wage calculator.

Converts between gross and net wages over a progressive bracket schedule,
a flat contribution rate and an optional health-insurance premium scheme.
"""
from __future__ import annotations

__version__ = "0.1.0"
