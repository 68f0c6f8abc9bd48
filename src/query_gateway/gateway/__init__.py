"""쿼리 게이트웨이 - 검증, 재작성, 실행, 결과 변환."""
