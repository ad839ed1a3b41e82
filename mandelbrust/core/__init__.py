"""Escape-time arithmetic, plotting algorithms and the reference grid evaluator."""
