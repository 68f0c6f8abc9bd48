"""스키마 조회기 - Oracle 딕셔너리 뷰에서 스키마 메타데이터를 읽는다."""

import logging
from collections import defaultdict
from typing import Any, Optional

from query_gateway.core.models import (
    ColumnMeta,
    IndexMeta,
    Schema,
    SchemaSnapshot,
    TableMeta,
    ViewMeta,
)

logger = logging.getLogger(__name__)

TABLES_QUERY = """
    SELECT TABLE_NAME, NUM_ROWS, LAST_ANALYZED
    FROM ALL_TABLES
    WHERE OWNER = :owner
    ORDER BY TABLE_NAME
"""

COLUMNS_QUERY = """
    SELECT TABLE_NAME, COLUMN_NAME, DATA_TYPE, DATA_LENGTH, DATA_PRECISION,
           DATA_SCALE, NULLABLE, COLUMN_ID
    FROM ALL_TAB_COLUMNS
    WHERE OWNER = :owner
    ORDER BY TABLE_NAME, COLUMN_ID
"""

VIEWS_QUERY = """
    SELECT VIEW_NAME, TEXT
    FROM ALL_VIEWS
    WHERE OWNER = :owner
    ORDER BY VIEW_NAME
"""

INDEXES_QUERY = """
    SELECT INDEX_NAME, TABLE_NAME, UNIQUENESS, INDEX_TYPE
    FROM ALL_INDEXES
    WHERE OWNER = :owner
    ORDER BY TABLE_NAME, INDEX_NAME
"""

TABLE_QUERY = """
    SELECT TABLE_NAME, NUM_ROWS, LAST_ANALYZED
    FROM ALL_TABLES
    WHERE OWNER = :owner AND TABLE_NAME = :table_name
"""

TABLE_COLUMNS_QUERY = """
    SELECT TABLE_NAME, COLUMN_NAME, DATA_TYPE, DATA_LENGTH, DATA_PRECISION,
           DATA_SCALE, NULLABLE, COLUMN_ID
    FROM ALL_TAB_COLUMNS
    WHERE OWNER = :owner AND TABLE_NAME = :table_name
    ORDER BY COLUMN_ID
"""

TABLE_INDEXES_QUERY = """
    SELECT INDEX_NAME, TABLE_NAME, UNIQUENESS, INDEX_TYPE
    FROM ALL_INDEXES
    WHERE OWNER = :owner AND TABLE_NAME = :table_name
    ORDER BY INDEX_NAME
"""

COUNTS_QUERY = """
    SELECT (SELECT COUNT(*) FROM ALL_TABLES WHERE OWNER = :owner) AS TABLE_COUNT,
           (SELECT COUNT(*) FROM ALL_VIEWS WHERE OWNER = :owner) AS VIEW_COUNT
    FROM DUAL
"""


class SchemaIntrospector:
    """스키마 메타데이터를 조회하는 서비스. 결과는 캐시하지 않는다."""

    def __init__(self, registry: Any, metadata_timeout: int = 30) -> None:
        """조회기 초기화.

        Args:
            registry: 연결 레지스트리
            metadata_timeout: 딕셔너리 조회 타임아웃 (초 단위)
        """
        self._registry = registry
        self._metadata_timeout = metadata_timeout

    def snapshot(self, schema: Schema) -> SchemaSnapshot:
        """스키마의 테이블, 뷰, 인덱스를 모두 조회한다.

        Args:
            schema: 대상 스키마

        Returns:
            SchemaSnapshot
        """
        with self._registry.session():
            columns_by_table = self._load_columns(schema)
            tables = self._load_tables(schema, columns_by_table)
            views = self._load_views(schema, columns_by_table)
            indexes = self._load_indexes(schema)

        logger.debug(
            "Loaded %d tables, %d views, %d indexes for schema %s",
            len(tables),
            len(views),
            len(indexes),
            schema.name,
        )
        return SchemaSnapshot(
            schema=schema,
            tables=tuple(tables),
            views=tuple(views),
            indexes=tuple(indexes),
            metadata={"table_count": len(tables), "view_count": len(views)},
        )

    def load_tables(self, schema: Schema) -> list[TableMeta]:
        """테이블과 컬럼만 조회한다 (검색용).

        Args:
            schema: 대상 스키마

        Returns:
            TableMeta 리스트 (테이블 이름순)
        """
        with self._registry.session():
            columns_by_table = self._load_columns(schema)
            return self._load_tables(schema, columns_by_table)

    def describe_table(
        self, schema: Schema, table_name: str
    ) -> Optional[tuple[TableMeta, list[IndexMeta]]]:
        """테이블 하나의 컬럼과 인덱스를 조회한다.

        ALL_TABLES에 없고 컬럼만 있는 객체(뷰 등)는 통계 없이 반환한다.

        Args:
            schema: 대상 스키마
            table_name: 테이블 이름

        Returns:
            (TableMeta, 인덱스 리스트) 튜플 또는 None
        """
        extra = {"table_name": table_name.upper()}
        with self._registry.session():
            column_rows = self._fetch(TABLE_COLUMNS_QUERY, schema, extra)
            table_rows = self._fetch(TABLE_QUERY, schema, extra)
            index_rows = self._fetch(TABLE_INDEXES_QUERY, schema, extra)

        if not column_rows and not table_rows:
            return None

        columns = tuple(_column_from_row(row) for row in column_rows)
        if table_rows:
            table = _table_from_row(table_rows[0], columns)
        else:
            table = TableMeta(name=table_name.upper(), columns=columns)
        return table, [_index_from_row(row) for row in index_rows]

    def count_objects(self, schema: Schema) -> dict[str, int]:
        """테이블 수와 뷰 수를 조회한다.

        Args:
            schema: 대상 스키마

        Returns:
            {"table_count": n, "view_count": m}
        """
        rows = self._fetch(COUNTS_QUERY, schema)
        if not rows:
            return {"table_count": 0, "view_count": 0}
        return {
            "table_count": _as_int(rows[0].get("TABLE_COUNT")) or 0,
            "view_count": _as_int(rows[0].get("VIEW_COUNT")) or 0,
        }

    def _fetch(
        self,
        query: str,
        schema: Schema,
        extra: Optional[dict[str, Any]] = None,
    ) -> tuple[dict[str, Any], ...]:
        # Oracle 딕셔너리의 OWNER는 대문자
        parameters = {"owner": schema.name.upper(), **(extra or {})}
        result = self._registry.execute(
            query, parameters=parameters, timeout=self._metadata_timeout
        )
        return result.rows

    def _load_columns(self, schema: Schema) -> dict[str, list[ColumnMeta]]:
        columns_by_table: dict[str, list[ColumnMeta]] = defaultdict(list)
        for row in self._fetch(COLUMNS_QUERY, schema):
            columns_by_table[row["TABLE_NAME"]].append(_column_from_row(row))
        return columns_by_table

    def _load_tables(
        self, schema: Schema, columns_by_table: dict[str, list[ColumnMeta]]
    ) -> list[TableMeta]:
        return [
            _table_from_row(row, tuple(columns_by_table.get(row["TABLE_NAME"], ())))
            for row in self._fetch(TABLES_QUERY, schema)
        ]

    def _load_views(
        self, schema: Schema, columns_by_table: dict[str, list[ColumnMeta]]
    ) -> list[ViewMeta]:
        return [
            ViewMeta(
                name=row["VIEW_NAME"],
                definition=row.get("TEXT"),
                columns=tuple(columns_by_table.get(row["VIEW_NAME"], ())),
            )
            for row in self._fetch(VIEWS_QUERY, schema)
        ]

    def _load_indexes(self, schema: Schema) -> list[IndexMeta]:
        return [_index_from_row(row) for row in self._fetch(INDEXES_QUERY, schema)]


def _column_from_row(row: dict[str, Any]) -> ColumnMeta:
    return ColumnMeta(
        name=row["COLUMN_NAME"],
        data_type=row["DATA_TYPE"],
        length=_as_int(row.get("DATA_LENGTH")) or 0,
        precision=_as_int(row.get("DATA_PRECISION")),
        scale=_as_int(row.get("DATA_SCALE")),
        nullable=row.get("NULLABLE") == "Y",
        position=_as_int(row.get("COLUMN_ID")) or 0,
    )


def _table_from_row(row: dict[str, Any], columns: tuple[ColumnMeta, ...]) -> TableMeta:
    return TableMeta(
        name=row["TABLE_NAME"],
        columns=columns,
        num_rows=_as_int(row.get("NUM_ROWS")),
        last_analyzed=row.get("LAST_ANALYZED"),
    )


def _index_from_row(row: dict[str, Any]) -> IndexMeta:
    return IndexMeta(
        name=row["INDEX_NAME"],
        table_name=row["TABLE_NAME"],
        unique=row.get("UNIQUENESS") == "UNIQUE",
        index_type=row.get("INDEX_TYPE"),
    )


def _as_int(value: Any) -> Optional[int]:
    """정규화된 숫자 값을 int로 변환 (None은 그대로)."""
    if value is None:
        return None
    return int(value)
