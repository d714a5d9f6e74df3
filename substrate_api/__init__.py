"""Substrate API: the multi-tenant backend behind the architecture governance dashboard."""
