"""결과 적재기 - 커서를 끝까지 읽어 ResultTable을 만든다."""

import time
from typing import Any, Optional

from query_gateway.core.models import Environment, ResultTable, Schema
from query_gateway.gateway.result.type_normalizer import (
    normalize_type_name,
    normalize_value,
)

# 텍스트 렌더링 제한
MAX_COLUMN_WIDTH = 50
MAX_DISPLAY_ROWS = 100
ELLIPSIS = "..."
NULL_DISPLAY = "NULL"


class ResultMaterializer:
    """커서 결과를 메모리에 전부 적재하는 서비스."""

    def materialize(
        self,
        cursor: Any,
        environment: Environment,
        schema: Schema,
        statement: Optional[str] = None,
        started_at: Optional[float] = None,
    ) -> ResultTable:
        """커서의 컬럼 정보와 모든 행을 읽어 ResultTable을 생성.

        Args:
            cursor: 실행이 끝난 DB-API 커서
            environment: 실행 환경
            schema: 실행 스키마
            statement: 호출자가 보낸 원본 문장
            started_at: time.perf_counter() 기준 실행 시작 시각

        Returns:
            불변 ResultTable
        """
        if started_at is None:
            started_at = time.perf_counter()

        description = cursor.description or []
        column_names = self._unique_names([col[0] for col in description])
        column_types = tuple(normalize_type_name(col[1]) for col in description)

        rows: list[dict[str, Any]] = []
        if description:
            for raw_row in cursor.fetchall():
                rows.append(
                    {
                        name: normalize_value(value)
                        for name, value in zip(column_names, raw_row)
                    }
                )

        elapsed_ms = int((time.perf_counter() - started_at) * 1000)
        return ResultTable(
            column_names=column_names,
            column_types=column_types,
            rows=tuple(rows),
            execution_time_ms=elapsed_ms,
            environment=environment,
            schema=schema,
            statement=statement,
        )

    def _unique_names(self, names: list[str]) -> tuple[str, ...]:
        """중복 컬럼 이름에 _2, _3 ... 접미사를 붙인다."""
        seen: set[str] = set()
        unique = []
        for name in names:
            candidate = name
            suffix = 2
            while candidate in seen:
                candidate = f"{name}_{suffix}"
                suffix += 1
            seen.add(candidate)
            unique.append(candidate)
        return tuple(unique)


def render_result(result: ResultTable) -> str:
    """ResultTable을 고정폭 텍스트 표로 렌더링.

    Args:
        result: 렌더링할 결과

    Returns:
        사람이 읽기 위한 문자열
    """
    lines = [
        "Query Results",
        "=============",
        f"Environment: {result.environment.key.upper()}",
        f"Schema: {result.schema.name}",
        f"Rows: {result.row_count}",
        f"Execution Time: {result.execution_time_ms}ms",
        "",
    ]

    if result.row_count == 0:
        lines.append("No rows returned.")
        return "\n".join(lines) + "\n"

    widths = []
    for name in result.column_names:
        width = len(name)
        for row in result.rows:
            width = max(width, len(_display(row.get(name))))
        widths.append(min(width, MAX_COLUMN_WIDTH))

    lines.append(
        " | ".join(_fit(name, width) for name, width in zip(result.column_names, widths))
    )
    lines.append("-+-".join("-" * width for width in widths))

    for row in result.rows[:MAX_DISPLAY_ROWS]:
        cells = []
        for name, width in zip(result.column_names, widths):
            cells.append(_fit(_display(row.get(name)), width))
        lines.append(" | ".join(cells))

    omitted = result.row_count - MAX_DISPLAY_ROWS
    if omitted > 0:
        lines.append("")
        lines.append(f"... and {omitted} more rows")

    return "\n".join(lines) + "\n"


def _display(value: Any) -> str:
    return NULL_DISPLAY if value is None else str(value)


def _fit(text: str, width: int) -> str:
    """폭에 맞게 자르고 왼쪽 정렬. 결과는 width보다 길지 않다."""
    if len(text) > width:
        if width <= len(ELLIPSIS):
            return text[:width]
        text = text[: width - len(ELLIPSIS)] + ELLIPSIS
    return text.ljust(width)
