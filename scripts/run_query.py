#!/usr/bin/env python
"""게이트웨이 수동 점검 스크립트.

MCP 클라이언트 없이 터미널에서 게이트웨이 연산을 실행합니다.

사용법:
    python scripts/run_query.py validate "SELECT * FROM USERS"     # DB 없이 검증/한정만
    python scripts/run_query.py test-connection --env uat          # 연결 테스트
    python scripts/run_query.py query "SELECT * FROM USERS" --env prod --schema APP
    python scripts/run_query.py search trade                       # 테이블 검색
    python scripts/run_query.py status                             # 현재 상태
"""

import argparse
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# 프로젝트 루트 경로 추가
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from query_gateway.adapters.database.oracle_adapter import OracleAdapter, init_driver
from query_gateway.core.config import Settings
from query_gateway.core.errors import ConfigurationError
from query_gateway.core.models import Environment, GatewayResponse
from query_gateway.gateway.guard.schema_qualifier import SchemaQualifier
from query_gateway.gateway.guard.sql_validator import create_validator
from query_gateway.gateway.query_gateway import create_gateway
from query_gateway.gateway.result.result_materializer import MAX_DISPLAY_ROWS
from query_gateway.server.mcp_server import configure_logging

console = Console()


def print_error(response: GatewayResponse) -> None:
    console.print(f"[red]❌ {response.operation}: {response.message}[/red]")


def print_result(response: GatewayResponse) -> None:
    """execute_query 결과를 rich 표로 출력."""
    result = response.payload["result"]

    console.print(
        Panel(
            f"환경: {result['environment'].upper()}  스키마: {result['schema']}\n"
            f"실행 SQL: {response.payload['executed_sql']}\n"
            f"행 수: {result['row_count']}  실행 시간: {result['execution_time_ms']}ms",
            title="[bold blue]쿼리 결과[/bold blue]",
            border_style="blue",
        )
    )

    table = Table(show_header=True, header_style="bold magenta")
    for name, type_name in zip(result["column_names"], result["column_types"]):
        table.add_column(f"{name}\n[dim]{type_name}[/dim]", overflow="fold", max_width=50)
    for row in result["rows"][:MAX_DISPLAY_ROWS]:
        table.add_row(
            *("NULL" if row[name] is None else str(row[name]) for name in result["column_names"])
        )
    console.print(table)

    if result["row_count"] > MAX_DISPLAY_ROWS:
        omitted = result["row_count"] - MAX_DISPLAY_ROWS
        console.print(f"[dim]... and {omitted} more rows[/dim]")


def print_search(response: GatewayResponse) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("점수", justify="right")
    table.add_column("테이블")
    table.add_column("컬럼 수", justify="right")
    table.add_column("ID 컬럼")
    table.add_column("상태 컬럼")
    for hit in response.payload["results"]:
        table.add_row(
            str(hit["relevance_score"]),
            hit["full_table_name"],
            str(hit["column_count"]),
            ", ".join(hit["id_columns"]),
            ", ".join(hit["status_columns"]),
        )
    console.print(table)


def run_validate(sql: str, schema_name: str) -> int:
    """DB 연결 없이 검증과 스키마 한정 결과를 보여준다."""
    settings = Settings()
    verdict = create_validator(settings.word_boundary_validation).validate(sql)
    if not verdict.accepted:
        console.print(f"[red]❌ 거부됨: {verdict.reason}[/red]")
        return 1

    schema = settings.find_schema_by_name(schema_name) if schema_name else settings.get_default_schema()
    console.print("[green]✅ 승인됨[/green]")
    console.print(f"   한정된 SQL: {SchemaQualifier().qualify(sql, schema)}")
    return 0


def main():
    """메인 함수."""
    parser = argparse.ArgumentParser(
        description="Oracle 쿼리 게이트웨이 점검 도구",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "command",
        choices=["validate", "test-connection", "query", "search", "status", "plan"],
        help="실행할 연산",
    )
    parser.add_argument("text", nargs="?", default=None, help="SQL 또는 검색 키워드")
    parser.add_argument("--env", default=None, help="환경 (dev/uat/prod)")
    parser.add_argument("--schema", default=None, help="스키마 이름")
    parser.add_argument("--limit", type=int, default=20, help="검색 결과 최대 수")

    args = parser.parse_args()

    if args.command == "validate":
        if not args.text:
            parser.error("validate 명령에는 SQL이 필요합니다.")
        sys.exit(run_validate(args.text, args.schema))

    settings = Settings()
    configure_logging(settings.log_level)
    try:
        settings.ensure_serviceable()
    except ConfigurationError as e:
        console.print(f"[red]❌ 설정 오류: {e}[/red]")
        sys.exit(2)

    init_driver(settings)
    gateway = create_gateway(settings, OracleAdapter())

    try:
        if args.env and args.command != "test-connection":
            response = gateway.connect_to_environment(args.env)
            if response.is_error:
                print_error(response)
                sys.exit(1)
            console.print(f"[green]✅ {response.message}[/green]")
        if args.schema and args.command != "search":
            response = gateway.switch_schema(args.schema)
            if response.is_error:
                print_error(response)
                sys.exit(1)

        if args.command == "test-connection":
            environment = Environment.from_string(args.env)
            response = gateway.connect_to_environment(environment.key)
        elif args.command == "query":
            response = gateway.execute_query(args.text)
        elif args.command == "search":
            response = gateway.search_tables(args.text, args.schema, args.limit)
        elif args.command == "plan":
            response = gateway.get_execution_plan(args.text)
        else:
            response = gateway.get_current_status()

        if response.is_error:
            print_error(response)
            sys.exit(1)

        if args.command == "query":
            print_result(response)
        elif args.command == "search":
            print_search(response)
        elif args.command == "plan":
            console.print(response.payload["plan"])
        else:
            console.print(response.to_dict())
    finally:
        gateway.close()


if __name__ == "__main__":
    main()
