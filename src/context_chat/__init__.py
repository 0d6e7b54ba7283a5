"""Grounded chat: local notes retrieval, web search fallback, bounded memory."""
