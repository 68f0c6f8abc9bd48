"""실행 계획 조회 - EXPLAIN PLAN 결과를 DBMS_XPLAN으로 읽는다."""

import logging
import uuid
from typing import Any

from query_gateway.core.errors import QueryExecutionError

logger = logging.getLogger(__name__)

DATABASE_ROLE_QUERY = "SELECT DATABASE_ROLE FROM V$DATABASE"

PLAN_OUTPUT_QUERY = """
    SELECT PLAN_TABLE_OUTPUT
    FROM TABLE(DBMS_XPLAN.DISPLAY('PLAN_TABLE', :statement_id, 'TYPICAL'))
"""

STANDBY_ROLES = ("PHYSICAL STANDBY", "LOGICAL STANDBY")

# ORA-16397: Active Data Guard 대기 DB에서 허용되지 않는 작업
READ_ONLY_ERROR_CODE = "ORA-16397"


class ExecutionPlanExplainer:
    """검증된 SELECT 문의 실행 계획을 조회하는 서비스."""

    def __init__(self, registry: Any, metadata_timeout: int = 30) -> None:
        """서비스 초기화.

        Args:
            registry: 연결 레지스트리
            metadata_timeout: 계획 조회 타임아웃 (초 단위)
        """
        self._registry = registry
        self._metadata_timeout = metadata_timeout

    def explain(self, sql: str) -> str:
        """현재 환경에서 실행 계획을 조회한다.

        Args:
            sql: 검증과 스키마 한정이 끝난 SQL

        Returns:
            DBMS_XPLAN 출력 문자열 (읽기 전용 대기 DB에서는 안내 메시지)
        """
        statement_id = f"QGW_{uuid.uuid4().hex[:20].upper()}"

        with self._registry.session():
            if self._is_read_only_database():
                return (
                    "EXPLAIN PLAN not available on read-only database "
                    "(Active Data Guard standby).\n"
                    f"Query: {sql}"
                )

            self._registry.execute(
                f"EXPLAIN PLAN SET STATEMENT_ID = '{statement_id}' FOR {sql}",
                timeout=self._metadata_timeout,
            )
            result = self._registry.execute(
                PLAN_OUTPUT_QUERY,
                parameters={"statement_id": statement_id},
                timeout=self._metadata_timeout,
            )

        return "\n".join(str(row.get("PLAN_TABLE_OUTPUT") or "") for row in result.rows)

    def _is_read_only_database(self) -> bool:
        """현재 DB가 Active Data Guard 대기 DB인지 확인."""
        try:
            result = self._registry.execute(
                DATABASE_ROLE_QUERY, timeout=self._metadata_timeout
            )
        except QueryExecutionError as e:
            # V$DATABASE 권한이 없으면 역할을 알 수 없으므로 ORA-16397일 때만 대기 DB로 본다
            logger.debug("Could not determine database role: %s", e)
            return READ_ONLY_ERROR_CODE in str(e)

        if not result.rows:
            return False
        return result.rows[0].get("DATABASE_ROLE") in STANDBY_ROLES
