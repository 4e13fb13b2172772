"""Infrastructure Layer — store access and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from api/
    - Every store call is wrapped with a deadline and error mapping
"""
