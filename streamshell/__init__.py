"""streamshell — HTTP service shell with normalized errors and incremental streaming.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
