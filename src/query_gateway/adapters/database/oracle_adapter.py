"""Oracle 데이터베이스 어댑터."""

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import oracledb

from query_gateway.core.config import Settings
from query_gateway.core.errors import (
    DatabaseConnectionError,
    QueryExecutionError,
    QueryTimeoutError,
)

logger = logging.getLogger(__name__)

LIVENESS_QUERY = "SELECT 1 FROM DUAL"

# 호출 타임아웃/취소로 판단하는 드라이버 메시지
_TIMEOUT_MARKERS = (
    "DPI-1067",  # call timeout exceeded
    "DPI-1080",  # connection closed by call timeout
    "ORA-01013",  # user requested cancel of current operation
    "ORA-03136",  # inbound connection timed out
    "TIMED OUT",
    "TIMEOUT",
)


def is_timeout_error(error: BaseException) -> bool:
    """드라이버 예외가 타임아웃인지 판단."""
    message = str(error).upper()
    return any(marker in message for marker in _TIMEOUT_MARKERS)


def init_driver(settings: Settings) -> None:
    """드라이버 전역 설정 (Kerberos 환경 변수, thick 모드).

    Args:
        settings: 애플리케이션 설정
    """
    if settings.kerberos_config_path:
        os.environ["KRB5_CONFIG"] = settings.kerberos_config_path
    if settings.kerberos_ccache_path:
        os.environ["KRB5CCNAME"] = settings.kerberos_ccache_path
    if settings.kerberos_debug:
        os.environ.setdefault("KRB5_TRACE", "/dev/stderr")

    if settings.thick_mode:
        oracledb.init_oracle_client(lib_dir=settings.oracle_client_lib_dir or None)
        logger.info("Oracle client initialized in thick mode")


class OracleAdapter:
    """python-oracledb 기반 데이터베이스 드라이버."""

    def connect(
        self, url: str, properties: dict[str, Any], login_timeout: int
    ) -> Any:
        """Oracle 데이터베이스에 연결.

        Args:
            url: DSN
            properties: oracledb.connect() 키워드 인자
            login_timeout: 로그인 타임아웃 (초 단위)

        Returns:
            데이터베이스 연결 객체

        Raises:
            DatabaseConnectionError: 연결 실패 시
        """
        connect_kwargs = dict(properties)
        connect_kwargs.setdefault("tcp_connect_timeout", float(login_timeout))
        try:
            return oracledb.connect(dsn=url, **connect_kwargs)
        except oracledb.Error as e:
            raise DatabaseConnectionError(str(e)) from e

    @contextmanager
    def query(
        self,
        connection: Any,
        sql: str,
        timeout: int,
        parameters: Optional[dict[str, Any]] = None,
    ) -> Iterator[Any]:
        """쿼리를 실행하고 커서를 넘겨준다.

        블록 안(fetch 포함)에서 발생한 드라이버 오류도 게이트웨이 예외로 변환되며,
        커서는 블록을 벗어날 때 항상 닫힌다.

        Args:
            connection: 데이터베이스 연결 객체
            sql: 실행할 SQL
            timeout: 호출 타임아웃 (초 단위)
            parameters: 바인드 변수

        Yields:
            실행된 커서

        Raises:
            QueryTimeoutError: 타임아웃 초과 시
            QueryExecutionError: 그 밖의 드라이버 오류
        """
        # 타임아웃 설정 (밀리초 단위로 변환)
        connection.call_timeout = timeout * 1000

        cursor = connection.cursor()
        try:
            cursor.execute(sql, parameters or {})
            yield cursor
        except oracledb.Error as e:
            if is_timeout_error(e):
                raise QueryTimeoutError(
                    f"Query exceeded timeout of {timeout}s: {e}"
                ) from e
            raise QueryExecutionError(str(e)) from e
        finally:
            cursor.close()

    def ping(self, connection: Any, timeout: int) -> None:
        """생존 확인 쿼리를 실행.

        Args:
            connection: 데이터베이스 연결 객체
            timeout: 타임아웃 (초 단위)
        """
        with self.query(connection, LIVENESS_QUERY, timeout) as cursor:
            cursor.fetchone()

    def is_open(self, connection: Any) -> bool:
        """연결이 아직 사용 가능한지 (네트워크 왕복 없이) 확인."""
        try:
            return bool(connection.is_healthy())
        except oracledb.Error as e:
            logger.debug("Connection health check failed: %s", e)
            return False

    def close(self, connection: Any) -> None:
        """연결을 닫는다.

        Raises:
            DatabaseConnectionError: 닫기 실패 시
        """
        try:
            connection.close()
        except oracledb.Error as e:
            raise DatabaseConnectionError(str(e)) from e
