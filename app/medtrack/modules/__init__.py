"""
Feature modules live under this package.

One module per registry. Each owns its models, service layer and blueprint,
while reusing platform primitives (access control, audit, counters, DB session).
Dependencies only point downward: service_scheduling reads devices and
technicians through injected lookups; those two never import each other.
"""
