"""
QuillPress CMS API

FastAPI application serving posts, categories, tags, users and settings.
"""
