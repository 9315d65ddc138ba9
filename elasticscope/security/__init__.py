"""
Credential encryption.
"""
