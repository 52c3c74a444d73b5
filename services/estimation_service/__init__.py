"""Estimation service: HTTP/WebSocket surface over the session use cases."""
