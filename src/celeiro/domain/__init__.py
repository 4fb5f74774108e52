"""Domain layer: entities, errors and services."""
