"""Core application components.

This module provides the foundational components of the Substrate API:
- The in-memory resource store and its entity definitions
- Application settings and configuration
- The route trie and the request dispatcher
"""
