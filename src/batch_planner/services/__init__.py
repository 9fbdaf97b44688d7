"""Service layer for the Bakery Batch Planner."""
