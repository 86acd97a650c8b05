"""QuillPress HTTP API."""
