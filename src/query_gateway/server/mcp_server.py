"""MCP 서버 - 게이트웨이 연산을 stdio 도구로 노출한다."""

import logging
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP
from rich.console import Console
from rich.logging import RichHandler

from query_gateway.adapters.database.oracle_adapter import OracleAdapter, init_driver
from query_gateway.core.config import Settings
from query_gateway.core.errors import ConfigurationError
from query_gateway.gateway.query_gateway import QueryGateway, create_gateway

SERVER_NAME = "oracle-query-gateway"

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """stderr로 로그를 출력한다 (stdout은 프로토콜 채널)."""
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def register_tools(server: FastMCP, gateway: QueryGateway) -> None:
    """게이트웨이 연산을 MCP 도구로 등록."""

    @server.tool()
    def execute_query(sql: str) -> dict[str, Any]:
        """Execute a read-only SELECT statement against the current environment and schema.

        Unqualified table names are prefixed with the current schema. Use
        search_tables and get_table_details first to discover the structure.
        """
        return gateway.execute_query(sql).to_dict()

    @server.tool()
    def connect_to_environment(environment: str) -> dict[str, Any]:
        """Connect to a database environment: dev, uat, or prod."""
        return gateway.connect_to_environment(environment).to_dict()

    @server.tool()
    def get_current_status() -> dict[str, Any]:
        """Get the current environment, schema, and connection status."""
        return gateway.get_current_status().to_dict()

    @server.tool()
    def switch_schema(schema_name: str) -> dict[str, Any]:
        """Switch the current schema to one of the configured schemas."""
        return gateway.switch_schema(schema_name).to_dict()

    @server.tool()
    def search_tables(
        keyword: str,
        schema_name: Optional[str] = None,
        limit: int = 20,
        min_score: Optional[int] = None,
    ) -> dict[str, Any]:
        """Search tables by keyword across configured schemas, ranked by relevance."""
        return gateway.search_tables(keyword, schema_name, limit, min_score).to_dict()

    @server.tool()
    def get_table_details(table: str) -> dict[str, Any]:
        """Get columns and indexes of a table given as SCHEMA.TABLE or TABLE."""
        return gateway.get_table_details(table).to_dict()

    @server.tool()
    def get_schema_info(schema_name: Optional[str] = None) -> dict[str, Any]:
        """Get tables, views, and indexes of a schema (current schema by default)."""
        return gateway.get_schema_info(schema_name).to_dict()

    @server.tool()
    def get_execution_plan(sql: str) -> dict[str, Any]:
        """Get the execution plan of a read-only SELECT statement."""
        return gateway.get_execution_plan(sql).to_dict()


def create_server(settings: Optional[Settings] = None) -> tuple[FastMCP, QueryGateway]:
    """설정을 검증하고 서버와 게이트웨이를 만든다.

    Args:
        settings: 미리 로드한 설정 (None이면 환경 변수에서 로드)

    Returns:
        (FastMCP 서버, QueryGateway) 튜플

    Raises:
        ConfigurationError: 필수 설정이 없을 때
    """
    settings = settings or Settings()
    settings.ensure_serviceable()

    init_driver(settings)
    gateway = create_gateway(settings, OracleAdapter())

    server = FastMCP(SERVER_NAME)
    register_tools(server, gateway)
    return server, gateway


def main() -> None:
    """MCP 서버를 stdio로 실행."""
    settings = Settings()
    configure_logging(settings.log_level)

    try:
        server, gateway = create_server(settings)
    except ConfigurationError as e:
        logger.error("Cannot start Oracle query gateway: %s", e)
        raise SystemExit(2) from e

    logger.info("Oracle query gateway started. Waiting for requests...")
    try:
        server.run()
    finally:
        gateway.close()
        logger.info("Oracle query gateway stopped.")


if __name__ == "__main__":
    main()
