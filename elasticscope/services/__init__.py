"""
Service layer for the ElasticScope server.

This module contains the session manager and client pool, the cluster
gateway and the cross-cluster copy orchestrator.
"""
