"""SQL 안전성 검증과 스키마 한정."""
