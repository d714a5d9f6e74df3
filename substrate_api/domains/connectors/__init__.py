"""
Connector marketplace, installed connectors and sync jobs.
"""
