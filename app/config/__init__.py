# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Settings, root URLs and the ASGI application (HTTP + WebSocket).
# =============================================================================
