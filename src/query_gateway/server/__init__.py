"""서버 진입점."""
