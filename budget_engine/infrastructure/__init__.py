"""
Infrastructure Layer - Adapters to collaborators outside the import engine.
"""
