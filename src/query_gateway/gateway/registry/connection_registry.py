"""환경/스키마별 연결 레지스트리."""

import logging
import threading
import time
from contextlib import AbstractContextManager, contextmanager
from typing import Any, Iterator, Optional, Protocol

from query_gateway.core.config import Settings
from query_gateway.core.errors import DatabaseConnectionError, GatewayError
from query_gateway.core.models import Environment, ResultTable, Schema
from query_gateway.gateway.result.result_materializer import ResultMaterializer

logger = logging.getLogger(__name__)


class DBDriver(Protocol):
    """레지스트리가 사용하는 드라이버 인터페이스."""

    def connect(
        self, url: str, properties: dict[str, Any], login_timeout: int
    ) -> Any: ...

    def query(
        self,
        connection: Any,
        sql: str,
        timeout: int,
        parameters: Optional[dict[str, Any]] = None,
    ) -> AbstractContextManager[Any]: ...

    def ping(self, connection: Any, timeout: int) -> None: ...

    def is_open(self, connection: Any) -> bool: ...

    def close(self, connection: Any) -> None: ...


class ConnectionRegistry:
    """환경마다 하나의 살아 있는 연결을 소유하고 현재 환경/스키마를 추적한다.

    하나의 재진입 락이 연결 캐시, 현재 환경/스키마 포인터,
    그리고 범위 실행(전환-실행-복원) 구간 전체를 직렬화한다.
    """

    def __init__(
        self,
        settings: Settings,
        driver: DBDriver,
        materializer: Optional[ResultMaterializer] = None,
    ) -> None:
        """레지스트리 초기화.

        Args:
            settings: 애플리케이션 설정
            driver: 데이터베이스 드라이버
            materializer: 결과 적재기
        """
        self._settings = settings
        self._driver = driver
        self._materializer = materializer or ResultMaterializer()
        self._handles: dict[Environment, Any] = {}
        self._lock = threading.RLock()
        self._current_environment = Environment.DEV
        self._current_schema = settings.get_default_schema()

    @property
    def current_environment(self) -> Environment:
        with self._lock:
            return self._current_environment

    @property
    def current_schema(self) -> Schema:
        with self._lock:
            return self._current_schema

    def connect_to(self, environment: Environment) -> Any:
        """환경에 대한 살아 있는 연결을 반환하고 현재 환경으로 설정.

        캐시된 연결이 살아 있으면 재사용하고, 없거나 닫혔으면 새로 연결한 뒤
        생존 확인 쿼리가 성공한 경우에만 캐시한다.

        Args:
            environment: 대상 환경

        Returns:
            데이터베이스 연결 객체

        Raises:
            DatabaseConnectionError: URL 미설정 또는 연결/생존 확인 실패 시
        """
        with self._lock:
            existing = self._handles.get(environment)
            if existing is not None:
                if self._driver.is_open(existing):
                    self._current_environment = environment
                    return existing
                logger.warning(
                    "Cached connection for %s is no longer usable; reconnecting",
                    environment.key,
                )
                self._discard(environment)

            connection = self._open(environment)
            self._handles[environment] = connection
            self._current_environment = environment
            logger.info("Connected to %s environment", environment.display_name)
            return connection

    def _open(self, environment: Environment) -> Any:
        """새 연결을 열고 생존 확인까지 마친다."""
        url = self._settings.get_environment_url(environment)
        if not url:
            raise DatabaseConnectionError(
                f"No database URL configured for environment: {environment.key}"
            )

        properties = self._settings.get_connection_properties(environment)
        try:
            connection = self._driver.connect(
                url, properties, self._settings.login_timeout
            )
        except GatewayError as e:
            raise DatabaseConnectionError(
                f"Failed to connect to {environment.key} environment: {e}"
            ) from e

        try:
            self._driver.ping(connection, self._settings.liveness_timeout)
        except GatewayError as e:
            self._close_quietly(connection, environment)
            raise DatabaseConnectionError(
                f"Liveness check failed for {environment.key} environment: {e}"
            ) from e

        return connection

    def _discard(self, environment: Environment) -> None:
        connection = self._handles.pop(environment, None)
        if connection is not None:
            self._close_quietly(connection, environment)

    def _close_quietly(self, connection: Any, environment: Environment) -> None:
        try:
            self._driver.close(connection)
        except GatewayError as e:
            logger.warning("Error closing %s connection: %s", environment.key, e)

    def current_connection(self) -> Any:
        """현재 환경의 연결을 반환 (없거나 닫혔으면 다시 연결)."""
        with self._lock:
            return self.connect_to(self._current_environment)

    def switch_environment(self, environment: Environment) -> None:
        """현재 환경을 전환하고 살아 있는 연결을 확보."""
        self.connect_to(environment)

    def switch_schema(self, schema: Schema) -> None:
        with self._lock:
            self._current_schema = schema

    @contextmanager
    def session(
        self,
        environment: Optional[Environment] = None,
        schema: Optional[Schema] = None,
    ) -> Iterator[Any]:
        """지정한 환경/스키마로 잠시 전환한 범위를 연다.

        범위 동안 락을 잡고 있으며, 성공/실패와 관계없이 빠져나갈 때
        이전 환경/스키마를 복원한다.

        Args:
            environment: 전환할 환경 (None이면 현재 환경)
            schema: 전환할 스키마 (None이면 현재 스키마)

        Yields:
            해당 환경의 연결 객체
        """
        with self._lock:
            previous_environment = self._current_environment
            previous_schema = self._current_schema
            try:
                if environment is not None:
                    self.switch_environment(environment)
                if schema is not None:
                    self.switch_schema(schema)
                yield self.current_connection()
            finally:
                self._current_environment = previous_environment
                self._current_schema = previous_schema

    def execute(
        self,
        sql: str,
        environment: Optional[Environment] = None,
        schema: Optional[Schema] = None,
        *,
        statement: Optional[str] = None,
        parameters: Optional[dict[str, Any]] = None,
        timeout: Optional[int] = None,
    ) -> ResultTable:
        """SQL을 실행하고 결과를 전부 적재한다.

        환경/스키마를 지정하면 그 범위에서 실행한 뒤 이전 값으로 복원한다.

        Args:
            sql: 실행할 (재작성된) SQL
            environment: 실행 환경 (None이면 현재 환경)
            schema: 실행 스키마 (None이면 현재 스키마)
            statement: 결과에 기록할 호출자 원본 문장
            parameters: 바인드 변수
            timeout: 쿼리 타임아웃 (초 단위, None이면 설정값)

        Returns:
            ResultTable
        """
        query_timeout = timeout or self._settings.query_timeout
        with self.session(environment, schema) as connection:
            started_at = time.perf_counter()
            with self._driver.query(
                connection, sql, query_timeout, parameters
            ) as cursor:
                return self._materializer.materialize(
                    cursor,
                    self._current_environment,
                    self._current_schema,
                    statement=statement if statement is not None else sql,
                    started_at=started_at,
                )

    def test_connection(self, environment: Environment) -> bool:
        """환경에 연결하고 생존 확인 쿼리를 실행한다. 예외를 던지지 않는다.

        Args:
            environment: 대상 환경

        Returns:
            연결 성공 여부
        """
        with self._lock:
            previous_environment = self._current_environment
            try:
                connection = self.connect_to(environment)
                self._driver.ping(connection, self._settings.liveness_timeout)
                return True
            except GatewayError as e:
                logger.error("Connection test failed for %s: %s", environment.key, e)
                return False
            finally:
                self._current_environment = previous_environment

    def close_all(self) -> None:
        """캐시된 모든 연결을 닫는다. 하나가 실패해도 나머지는 계속 닫는다."""
        with self._lock:
            for environment in list(self._handles):
                self._discard(environment)
            logger.info("All database connections closed")
