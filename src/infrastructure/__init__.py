"""Infrastructure Layer.

Adapters that perform I/O and return domain Value Objects.
"""
