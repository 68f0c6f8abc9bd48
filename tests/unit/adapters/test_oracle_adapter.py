"""Oracle 어댑터 테스트."""

import os
from unittest.mock import MagicMock, patch

import oracledb
import pytest

from query_gateway.adapters.database.oracle_adapter import (
    LIVENESS_QUERY,
    OracleAdapter,
    init_driver,
    is_timeout_error,
)
from query_gateway.core.config import Settings
from query_gateway.core.errors import (
    DatabaseConnectionError,
    QueryExecutionError,
    QueryTimeoutError,
)


@pytest.fixture
def adapter() -> OracleAdapter:
    """Oracle 어댑터 fixture."""
    return OracleAdapter()


class TestOracleAdapterConnection:
    """Oracle 어댑터 연결 테스트."""

    def test_should_connect_with_dsn_and_properties(self, adapter: OracleAdapter) -> None:
        """DSN과 연결 속성으로 연결해야 함."""
        with patch(
            "query_gateway.adapters.database.oracle_adapter.oracledb.connect"
        ) as mock_connect:
            mock_connection = MagicMock()
            mock_connect.return_value = mock_connection

            # When
            connection = adapter.connect(
                "testhost:1521/TESTDB", {"user": "reader", "password": "secret"}, 30
            )

            # Then
            call_kwargs = mock_connect.call_args[1]
            assert call_kwargs["dsn"] == "testhost:1521/TESTDB"
            assert call_kwargs["user"] == "reader"
            assert call_kwargs["tcp_connect_timeout"] == 30.0
            assert connection == mock_connection

    def test_should_translate_driver_error_on_connect(self, adapter: OracleAdapter) -> None:
        """드라이버 연결 오류는 DatabaseConnectionError로 변환해야 함."""
        with patch(
            "query_gateway.adapters.database.oracle_adapter.oracledb.connect"
        ) as mock_connect:
            # Given
            mock_connect.side_effect = oracledb.DatabaseError("ORA-12541: no listener")

            # When / Then
            with pytest.raises(DatabaseConnectionError, match="ORA-12541"):
                adapter.connect("testhost:1521/TESTDB", {}, 30)


class TestOracleAdapterQuery:
    """Oracle 어댑터 쿼리 실행 테스트."""

    def test_should_set_call_timeout_and_close_cursor(self, adapter: OracleAdapter) -> None:
        """호출 타임아웃을 설정하고 블록 종료 시 커서를 닫아야 함."""
        # Given
        mock_connection = MagicMock()
        mock_cursor = mock_connection.cursor.return_value

        # When
        with adapter.query(
            mock_connection, "SELECT * FROM USERS WHERE ID = :id", 60, {"id": 1}
        ) as cursor:
            assert cursor is mock_cursor

        # Then
        assert mock_connection.call_timeout == 60000
        mock_cursor.execute.assert_called_once_with(
            "SELECT * FROM USERS WHERE ID = :id", {"id": 1}
        )
        mock_cursor.close.assert_called_once()

    def test_should_raise_timeout_error(self, adapter: OracleAdapter) -> None:
        """타임아웃 오류는 QueryTimeoutError로 변환해야 함."""
        # Given
        mock_connection = MagicMock()
        mock_cursor = mock_connection.cursor.return_value
        mock_cursor.execute.side_effect = oracledb.DatabaseError(
            "DPI-1067: call timeout of 1000 ms exceeded"
        )

        # When / Then
        with pytest.raises(QueryTimeoutError):
            with adapter.query(mock_connection, "SELECT 1 FROM DUAL", 1):
                pass
        mock_cursor.close.assert_called_once()

    def test_should_translate_fetch_error(self, adapter: OracleAdapter) -> None:
        """블록 안의 fetch 오류도 QueryExecutionError로 변환해야 함."""
        # Given
        mock_connection = MagicMock()
        mock_cursor = mock_connection.cursor.return_value
        mock_cursor.fetchall.side_effect = oracledb.DatabaseError(
            "ORA-00942: table or view does not exist"
        )

        # When / Then
        with pytest.raises(QueryExecutionError, match="ORA-00942") as exc_info:
            with adapter.query(mock_connection, "SELECT * FROM MISSING", 60) as cursor:
                cursor.fetchall()
        assert not isinstance(exc_info.value, QueryTimeoutError)
        mock_cursor.close.assert_called_once()

    def test_ping_runs_liveness_query(self, adapter: OracleAdapter) -> None:
        """생존 확인 쿼리를 실행해야 함."""
        mock_connection = MagicMock()
        mock_cursor = mock_connection.cursor.return_value

        adapter.ping(mock_connection, 10)

        mock_cursor.execute.assert_called_once_with(LIVENESS_QUERY, {})
        mock_cursor.fetchone.assert_called_once()
        assert mock_connection.call_timeout == 10000


class TestOracleAdapterLifecycle:
    """연결 상태 확인과 종료 테스트."""

    def test_is_open_uses_health_check(self, adapter: OracleAdapter) -> None:
        """is_healthy() 결과를 반환해야 함."""
        mock_connection = MagicMock()
        mock_connection.is_healthy.return_value = False

        assert adapter.is_open(mock_connection) is False

    def test_is_open_returns_false_on_driver_error(self, adapter: OracleAdapter) -> None:
        """상태 확인 중 드라이버 오류가 나면 False를 반환해야 함."""
        mock_connection = MagicMock()
        mock_connection.is_healthy.side_effect = oracledb.InterfaceError("DPI-1010: not connected")

        assert adapter.is_open(mock_connection) is False

    def test_close_translates_driver_error(self, adapter: OracleAdapter) -> None:
        """닫기 오류는 DatabaseConnectionError로 변환해야 함."""
        mock_connection = MagicMock()
        mock_connection.close.side_effect = oracledb.InterfaceError("DPI-1010: not connected")

        with pytest.raises(DatabaseConnectionError):
            adapter.close(mock_connection)


class TestDriverInitialization:
    """드라이버 전역 설정 테스트."""

    def test_is_timeout_error(self) -> None:
        """타임아웃 메시지를 판별해야 함."""
        assert is_timeout_error(Exception("ORA-01013: user requested cancel"))
        assert not is_timeout_error(Exception("ORA-00942: table or view does not exist"))

    def test_init_driver_sets_kerberos_environment(self, monkeypatch) -> None:
        """Kerberos 경로를 환경 변수로 설정하고 thick 모드를 초기화해야 함."""
        monkeypatch.delenv("KRB5_CONFIG", raising=False)
        monkeypatch.delenv("KRB5CCNAME", raising=False)
        settings = Settings(
            _env_file=None,
            thick_mode=True,
            oracle_client_lib_dir="/opt/oracle/instantclient",
            kerberos_config_path="/etc/krb5.conf",
            kerberos_ccache_path="/tmp/krb5cc_1000",
        )

        with patch(
            "query_gateway.adapters.database.oracle_adapter.oracledb.init_oracle_client"
        ) as mock_init:
            init_driver(settings)

        assert os.environ["KRB5_CONFIG"] == "/etc/krb5.conf"
        assert os.environ["KRB5CCNAME"] == "/tmp/krb5cc_1000"
        mock_init.assert_called_once_with(lib_dir="/opt/oracle/instantclient")

    def test_init_driver_skips_thick_mode_by_default(self) -> None:
        """thick 모드가 꺼져 있으면 클라이언트를 초기화하지 않아야 함."""
        with patch(
            "query_gateway.adapters.database.oracle_adapter.oracledb.init_oracle_client"
        ) as mock_init:
            init_driver(Settings(_env_file=None))

        mock_init.assert_not_called()
