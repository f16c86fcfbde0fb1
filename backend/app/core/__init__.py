"""
Core package — cross-cutting concerns.

Modules:
    config     — environment variables, settings & frozen AlertConfig
    logging    — structured JSON logging
    errors     — exception hierarchy & handlers
    cors       — origin allow-list (exact + single-label wildcard)
    middleware — request logging, correlation IDs, origin guard
    health     — health check aggregation
"""
