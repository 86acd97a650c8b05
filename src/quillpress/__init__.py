"""
QuillPress

Blog content-management backend: posts, categories, tags, users and
settings over PostgreSQL (server runtime) or SQLite (edge runtime).
"""

__version__ = "0.1.0"
