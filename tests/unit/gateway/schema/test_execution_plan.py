"""실행 계획 조회 테스트."""

from query_gateway.core.errors import QueryExecutionError
from query_gateway.gateway.schema.execution_plan import (
    DATABASE_ROLE_QUERY,
    PLAN_OUTPUT_QUERY,
    ExecutionPlanExplainer,
)


class TestExecutionPlanExplainer:
    """EXPLAIN PLAN 테스트."""

    def test_should_explain_and_read_plan_output(self, make_registry) -> None:
        """계획을 만들고 같은 STATEMENT_ID로 출력을 읽어야 함."""
        # Given
        registry = make_registry(
            {
                DATABASE_ROLE_QUERY: [{"DATABASE_ROLE": "PRIMARY"}],
                PLAN_OUTPUT_QUERY: [
                    {"PLAN_TABLE_OUTPUT": "Plan hash value: 1234"},
                    {"PLAN_TABLE_OUTPUT": "| 0 | SELECT STATEMENT |"},
                ],
            }
        )

        # When
        plan = ExecutionPlanExplainer(registry).explain("SELECT * FROM APP.USERS")

        # Then
        assert plan == "Plan hash value: 1234\n| 0 | SELECT STATEMENT |"
        explain_sql = registry.calls[1][0]
        assert explain_sql.startswith("EXPLAIN PLAN SET STATEMENT_ID = 'QGW_")
        assert explain_sql.endswith("FOR SELECT * FROM APP.USERS")
        statement_id = registry.calls[2][1]["statement_id"]
        assert f"'{statement_id}'" in explain_sql

    def test_should_skip_on_standby_database(self, make_registry) -> None:
        """대기 DB에서는 계획을 만들지 않고 안내해야 함."""
        registry = make_registry({DATABASE_ROLE_QUERY: [{"DATABASE_ROLE": "PHYSICAL STANDBY"}]})

        plan = ExecutionPlanExplainer(registry).explain("SELECT * FROM APP.USERS")

        assert "read-only database" in plan
        assert len(registry.calls) == 1

    def test_should_detect_read_only_error(self, make_registry) -> None:
        """역할 조회가 ORA-16397로 실패하면 대기 DB로 봐야 함."""
        registry = make_registry(
            {DATABASE_ROLE_QUERY: QueryExecutionError("ORA-16397: not allowed")}
        )

        plan = ExecutionPlanExplainer(registry).explain("SELECT 1 FROM DUAL")

        assert "read-only database" in plan

    def test_should_continue_when_role_is_unknown(self, make_registry) -> None:
        """권한 부족으로 역할을 모르면 계획 조회를 계속해야 함."""
        registry = make_registry(
            {
                DATABASE_ROLE_QUERY: QueryExecutionError("ORA-00942: table or view does not exist"),
                PLAN_OUTPUT_QUERY: [{"PLAN_TABLE_OUTPUT": "Plan hash value: 1"}],
            }
        )

        plan = ExecutionPlanExplainer(registry).explain("SELECT 1 FROM DUAL")

        assert plan == "Plan hash value: 1"
