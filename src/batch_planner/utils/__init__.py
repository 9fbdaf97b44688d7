"""Utility modules for the Bakery Batch Planner."""
