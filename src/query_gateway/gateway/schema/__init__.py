"""스키마 조회, 테이블 검색, 실행 계획."""
