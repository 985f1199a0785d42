"""Domain layer: entities and services of the data engine."""
