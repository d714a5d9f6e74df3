"""Business domains, one package per resource family.

Each domain keeps its request/response models, service, routes and
exceptions together. Package modules stay free of imports so domains can
depend on each other's services without import cycles.
"""
