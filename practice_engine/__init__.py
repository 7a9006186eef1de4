"""
Practice Engine

Adaptive practice core for a coding-exercise tutor: spaced-repetition
scheduling per subconcept, exercise selection, and multi-strategy grading
with construct coaching.
"""

__version__ = "0.1.0"
