"""쿼리 게이트웨이 오케스트레이터."""

import logging
import time
from typing import Any, Optional

from query_gateway.core.config import Settings
from query_gateway.core.errors import GatewayError, ValidationRejectedError
from query_gateway.core.models import Environment, GatewayResponse, Schema
from query_gateway.gateway.guard.schema_qualifier import SchemaQualifier
from query_gateway.gateway.guard.sql_validator import SQLValidator, create_validator
from query_gateway.gateway.registry.connection_registry import ConnectionRegistry
from query_gateway.gateway.result.result_materializer import (
    ResultMaterializer,
    render_result,
)
from query_gateway.gateway.schema.execution_plan import ExecutionPlanExplainer
from query_gateway.gateway.schema.schema_introspector import SchemaIntrospector
from query_gateway.gateway.schema.table_search import TableSearch

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 20


class QueryGateway:
    """호출자가 사용하는 게이트웨이 진입점.

    검증 → 스키마 한정 → 실행 → 결과 적재 순서로 처리하며,
    모든 게이트웨이 예외를 메시지와 오류 플래그를 가진 응답으로 바꾼다.
    """

    def __init__(
        self,
        settings: Settings,
        registry: Any,
        introspector: Any,
        table_search: Any,
        plan_explainer: Any,
        validator: Any = None,
        qualifier: Any = None,
    ) -> None:
        """게이트웨이 초기화.

        Args:
            settings: 애플리케이션 설정
            registry: 연결 레지스트리
            introspector: 스키마 조회기
            table_search: 테이블 검색 서비스
            plan_explainer: 실행 계획 조회 서비스
            validator: SQL 검증기 (StatementValidator)
            qualifier: 스키마 한정자 (StatementRewriter)
        """
        self._settings = settings
        self._registry = registry
        self._introspector = introspector
        self._table_search = table_search
        self._plan_explainer = plan_explainer
        self._validator = validator or SQLValidator()
        self._qualifier = qualifier or SchemaQualifier()

    def _validate(self, sql: str) -> str:
        """검증 후 실행용 문장 (끝 세미콜론 제거)을 반환.

        Raises:
            ValidationRejectedError: 검증 실패 시
        """
        verdict = self._validator.validate(sql)
        if not verdict.accepted:
            logger.warning("Rejected statement: %s", verdict.reason)
            raise ValidationRejectedError(verdict.reason or "Statement rejected")
        return sql.strip().rstrip(";").rstrip()

    def execute_query(self, sql: Optional[str]) -> GatewayResponse:
        """현재 환경/스키마에서 SELECT 문을 실행.

        Args:
            sql: 호출자가 보낸 SQL

        Returns:
            GatewayResponse (결과 구조체와 텍스트 렌더링 포함)
        """
        operation = "execute_query"
        if not sql or not sql.strip():
            return GatewayResponse.error(operation, "sql parameter is required")

        try:
            statement = self._validate(sql)
            with self._registry.session():
                environment = self._registry.current_environment
                schema = self._registry.current_schema
                executed_sql = self._qualifier.qualify(statement, schema)
                result = self._registry.execute(
                    executed_sql, environment, schema, statement=sql
                )
        except ValidationRejectedError as e:
            return GatewayResponse.error(operation, f"Query rejected: {e.reason}")
        except GatewayError as e:
            return GatewayResponse.error(operation, f"Database error: {e}")

        return GatewayResponse(
            operation=operation,
            message=f"{result.row_count} rows returned",
            payload={
                "environment": environment.key,
                "schema": schema.name,
                "executed_sql": executed_sql,
                "result": result.to_dict(),
                "formatted_result": render_result(result),
            },
        )

    def connect_to_environment(self, environment_name: Optional[str]) -> GatewayResponse:
        """환경에 연결하고 현재 환경으로 전환.

        Args:
            environment_name: 환경 이름 (dev/uat/prod 및 동의어)

        Returns:
            GatewayResponse (연결 실패 시 is_error=True)
        """
        operation = "connect_to_environment"
        if not environment_name or not environment_name.strip():
            return GatewayResponse.error(operation, "environment parameter is required")

        environment = Environment.from_string(environment_name)
        display = environment.display_name

        connected = self._registry.test_connection(environment)
        if connected:
            try:
                self._registry.switch_environment(environment)
                message = f"Successfully connected to {display} environment"
            except GatewayError as e:
                connected = False
                message = f"Connection attempt failed for {display} environment: {e}"
        else:
            message = (
                f"Connection test failed for {display} environment. Please verify "
                "your database configuration and network connectivity."
            )

        return GatewayResponse(
            operation=operation,
            message=message,
            is_error=not connected,
            payload={
                "environment": environment.key,
                "environment_display": display,
                "connected": connected,
                "status": "connected" if connected else "failed",
                "timestamp": int(time.time() * 1000),
            },
        )

    def get_current_status(self) -> GatewayResponse:
        """현재 환경/스키마, 연결 상태, 테이블/뷰 수를 반환."""
        operation = "get_current_status"
        environment = self._registry.current_environment
        schema = self._registry.current_schema

        connected = self._registry.test_connection(environment)
        payload: dict[str, Any] = {
            "environment": environment.key,
            "environment_display": environment.display_name,
            "schema": schema.name,
            "connected": connected,
            "connection_status": "connected" if connected else "disconnected",
        }

        if connected:
            try:
                payload.update(self._introspector.count_objects(schema))
            except GatewayError as e:
                payload["schema_summary_error"] = f"Error retrieving schema info: {e}"

        return GatewayResponse(
            operation=operation,
            message=f"{environment.display_name} / {schema.name}",
            payload=payload,
        )

    def switch_schema(self, schema_name: Optional[str]) -> GatewayResponse:
        """현재 스키마를 설정된 스키마 중 하나로 전환.

        Args:
            schema_name: 스키마 이름 (대소문자 무시)

        Returns:
            GatewayResponse (설정에 없는 이름이면 is_error=True)
        """
        operation = "switch_schema"
        available = [schema.name for schema in self._settings.get_all_schemas()]
        if not schema_name or not schema_name.strip():
            return GatewayResponse.error(
                operation, "schema parameter is required", available_schemas=available
            )

        schema = self._settings.find_schema_by_name(schema_name)
        if schema.name.upper() != schema_name.strip().upper():
            return GatewayResponse.error(
                operation,
                f"Unknown schema: {schema_name}",
                available_schemas=available,
            )

        self._registry.switch_schema(schema)
        return GatewayResponse(
            operation=operation,
            message=f"Current schema is now {schema.name}",
            payload={"schema": schema.name, "available_schemas": available},
        )

    def search_tables(
        self,
        keyword: Optional[str],
        schema_name: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
        min_score: Optional[int] = None,
    ) -> GatewayResponse:
        """키워드로 테이블을 검색.

        Args:
            keyword: 검색 키워드
            schema_name: 대상 스키마 (None이면 설정된 모든 스키마)
            limit: 최대 결과 수
            min_score: 최소 관련도 점수 (None이면 점수 0인 테이블도 포함)

        Returns:
            GatewayResponse (관련도 순 결과)
        """
        operation = "search_tables"
        if not keyword or not keyword.strip():
            return GatewayResponse.error(operation, "keyword parameter is required")

        schema = self._settings.find_schema_by_name(schema_name) if schema_name else None
        try:
            hits = self._table_search.search(
                keyword, schema=schema, limit=limit, min_score=min_score
            )
        except GatewayError as e:
            return GatewayResponse.error(operation, f"Error searching tables: {e}")

        return GatewayResponse(
            operation=operation,
            message=f"Ranked {len(hits)} tables",
            payload={
                "keyword": keyword,
                "schema": schema.name if schema else None,
                "results": [hit.to_dict() for hit in hits],
            },
        )

    def get_table_details(self, table_ref: Optional[str]) -> GatewayResponse:
        """테이블의 컬럼과 인덱스 정보를 반환.

        Args:
            table_ref: "SCHEMA.TABLE" 또는 "TABLE" (현재 스키마)

        Returns:
            GatewayResponse
        """
        operation = "get_table_details"
        if not table_ref or not table_ref.strip():
            return GatewayResponse.error(operation, "table parameter is required")

        schema, table_name = self._split_table_ref(table_ref)
        try:
            details = self._introspector.describe_table(schema, table_name)
        except GatewayError as e:
            return GatewayResponse.error(operation, f"Error loading table details: {e}")

        if details is None:
            return GatewayResponse.error(
                operation, f"Table not found: {schema.name}.{table_name.upper()}"
            )

        table, indexes = details
        return GatewayResponse(
            operation=operation,
            message=f"{schema.name}.{table.name} ({len(table.columns)} columns)",
            payload={
                "schema": schema.name,
                "full_table_name": f"{schema.name}.{table.name}",
                "table": table.to_dict(),
                "indexes": [index.to_dict() for index in indexes],
            },
        )

    def _split_table_ref(self, table_ref: str) -> tuple[Schema, str]:
        """테이블 참조를 스키마와 테이블 이름으로 나눈다."""
        owner, dot, table_name = table_ref.strip().rpartition(".")
        if not dot:
            return self._registry.current_schema, table_name

        for schema in self._settings.get_all_schemas():
            if schema.name.upper() == owner.upper():
                return schema, table_name
        return Schema(owner.upper()), table_name

    def get_schema_info(self, schema_name: Optional[str] = None) -> GatewayResponse:
        """스키마 전체 메타데이터 스냅샷을 반환.

        Args:
            schema_name: 대상 스키마 (None이면 현재 스키마)

        Returns:
            GatewayResponse
        """
        operation = "get_schema_info"
        schema = (
            self._settings.find_schema_by_name(schema_name)
            if schema_name
            else self._registry.current_schema
        )
        try:
            snapshot = self._introspector.snapshot(schema)
        except GatewayError as e:
            return GatewayResponse.error(operation, f"Error loading schema info: {e}")

        return GatewayResponse(
            operation=operation,
            message=(
                f"{schema.name}: {snapshot.metadata['table_count']} tables, "
                f"{snapshot.metadata['view_count']} views"
            ),
            payload=snapshot.to_dict(),
        )

    def get_execution_plan(self, sql: Optional[str]) -> GatewayResponse:
        """SELECT 문의 실행 계획을 반환.

        Args:
            sql: 호출자가 보낸 SQL

        Returns:
            GatewayResponse
        """
        operation = "get_execution_plan"
        if not sql or not sql.strip():
            return GatewayResponse.error(operation, "sql parameter is required")

        try:
            statement = self._validate(sql)
            with self._registry.session():
                environment = self._registry.current_environment
                executed_sql = self._qualifier.qualify(
                    statement, self._registry.current_schema
                )
                plan = self._plan_explainer.explain(executed_sql)
        except ValidationRejectedError as e:
            return GatewayResponse.error(operation, f"Query rejected: {e.reason}")
        except GatewayError as e:
            return GatewayResponse.error(operation, f"Database error: {e}")

        return GatewayResponse(
            operation=operation,
            message="Execution plan generated",
            payload={
                "environment": environment.key,
                "executed_sql": executed_sql,
                "plan": plan,
            },
        )

    def close(self) -> None:
        """모든 연결을 닫는다."""
        self._registry.close_all()


def create_gateway(settings: Settings, driver: Any) -> QueryGateway:
    """설정과 드라이버로 게이트웨이 구성요소를 한 번 조립한다.

    Args:
        settings: 애플리케이션 설정
        driver: 데이터베이스 드라이버

    Returns:
        QueryGateway
    """
    registry = ConnectionRegistry(settings, driver, ResultMaterializer())
    introspector = SchemaIntrospector(registry, settings.metadata_timeout)
    return QueryGateway(
        settings=settings,
        registry=registry,
        introspector=introspector,
        table_search=TableSearch(settings, introspector),
        plan_explainer=ExecutionPlanExplainer(registry, settings.metadata_timeout),
        validator=create_validator(settings.word_boundary_validation),
    )
