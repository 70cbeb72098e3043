"""
Infrastructure Layer

Concrete implementations of the interfaces defined in the domain layer.

Components:
- events/: In-memory event bus and the domain event publisher
- persistence/: In-memory repositories with versioned bundle writes
"""
