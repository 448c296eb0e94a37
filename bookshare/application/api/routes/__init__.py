"""
API Routes Package

- books.py: listing CRUD and the cached listing read
- users.py: the caller's own user record
- webhooks.py: identity-provider user sync
- health.py: liveness, readiness and detailed health
- metrics.py: Prometheus exposition
"""
