"""Services package for scheduling, exercise selection, and grading."""
