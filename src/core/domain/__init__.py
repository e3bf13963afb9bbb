"""Domain models and entities.

Why:
- Pure, strict data structures (Pydantic v2) live here.
- The domain knows nothing about TLS sockets, Telegram or the CLI.
"""
