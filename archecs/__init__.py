"""Archetype-based entity component system with entity references, deferred commands, singletons and a scheduler."""

__version__ = "0.1.0"