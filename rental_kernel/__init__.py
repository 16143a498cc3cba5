"""
rental_kernel -- persistence, time, month arithmetic, errors and logging for
the advance-deposit and early-termination engine.
"""

__version__ = "0.1.0"
