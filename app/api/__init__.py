"""HTTP API for AuthentiCheck: scan routes, rate limiter and body size middleware."""
