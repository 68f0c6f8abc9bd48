"""데이터베이스 드라이버 어댑터."""
