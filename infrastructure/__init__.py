"""Infrastructure layer — shared state and observability for the music map engine.

Modules:
    metrics         Prometheus metrics registry.
    timeline_store  Lock-guarded owner of the current panel timeline.
"""
