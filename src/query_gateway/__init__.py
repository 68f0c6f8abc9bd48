"""Oracle 읽기 전용 쿼리 게이트웨이."""

__version__ = "0.1.0"
