"""Core 모듈 - 설정, 데이터 모델, 예외."""
