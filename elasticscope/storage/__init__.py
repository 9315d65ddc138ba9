"""
Persistence for connection profiles and saved queries.
"""
