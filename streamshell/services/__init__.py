"""Services — request-scoped orchestration between core logic and the transport.

Invariants:
    - Services receive their collaborators through constructors or arguments
    - No service reads ambient request state
"""
