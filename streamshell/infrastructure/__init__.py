"""Infrastructure Layer — transport adapters and cross-cutting concerns.

Invariants:
    - Infrastructure implements the Protocols declared in core/
    - Infrastructure never decides how a failure is classified
"""
