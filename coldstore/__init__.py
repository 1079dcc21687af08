"""Core package for the cold-storage legacy produce migration engine."""

__all__: list[str] = []
