"""게이트웨이 예외 정의."""


class GatewayError(Exception):
    """게이트웨이 예외의 기본 클래스."""

    pass


class ConfigurationError(GatewayError):
    """필수 설정(환경 URL, 스키마)이 누락된 경우. 기동 시 치명적."""

    pass


class DatabaseConnectionError(GatewayError):
    """드라이버 연결 또는 생존 확인 실패."""

    pass


class ValidationRejectedError(GatewayError):
    """SQL 안전성 검증에서 거부된 문장."""

    def __init__(self, reason: str) -> None:
        """예외 초기화.

        Args:
            reason: 거부 사유
        """
        super().__init__(reason)
        self.reason = reason


class QueryExecutionError(GatewayError):
    """승인된 문장 실행 중 드라이버 오류."""

    pass


class QueryTimeoutError(QueryExecutionError):
    """쿼리 또는 연결 타임아웃 초과."""

    pass
