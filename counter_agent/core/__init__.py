"""Application wiring: logging, middleware, lifespan, shutdown."""
