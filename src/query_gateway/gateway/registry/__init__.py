"""환경별 연결 레지스트리."""
