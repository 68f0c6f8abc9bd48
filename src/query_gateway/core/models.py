"""Core 데이터 모델 정의."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Environment(Enum):
    """데이터베이스 환경."""

    DEV = "dev"
    UAT = "uat"
    PROD = "prod"

    @property
    def key(self) -> str:
        """설정 키로 사용되는 소문자 이름."""
        return self.value

    @property
    def display_name(self) -> str:
        """사용자에게 보여줄 환경 이름."""
        return _ENVIRONMENT_DISPLAY_NAMES[self]

    @classmethod
    def from_string(cls, value: Optional[str]) -> "Environment":
        """자유 형식 입력에서 환경을 해석한다.

        대소문자를 구분하지 않으며 동의어를 허용한다.
        입력이 없거나 인식할 수 없으면 DEV를 반환한다.

        Args:
            value: 환경 이름 (예: "prod", "production", "live")

        Returns:
            해석된 Environment
        """
        if value is None:
            return cls.DEV
        return _ENVIRONMENT_SYNONYMS.get(value.strip().lower(), cls.DEV)

    @classmethod
    def parse_from_text(cls, text: Optional[str]) -> "Environment":
        """문장 안에 언급된 환경을 찾는다.

        Args:
            text: 자연어 문장

        Returns:
            언급된 Environment, 없으면 DEV
        """
        if text is None:
            return cls.DEV

        lowered = text.lower()
        if any(word in lowered for word in ("prod", "production", "live")):
            return cls.PROD
        if any(word in lowered for word in ("uat", "test", "sit")):
            return cls.UAT
        return cls.DEV


_ENVIRONMENT_SYNONYMS = {
    "dev": Environment.DEV,
    "development": Environment.DEV,
    "uat": Environment.UAT,
    "sit": Environment.UAT,
    "test": Environment.UAT,
    "testing": Environment.UAT,
    "prod": Environment.PROD,
    "production": Environment.PROD,
    "live": Environment.PROD,
}

_ENVIRONMENT_DISPLAY_NAMES = {
    Environment.DEV: "Development",
    Environment.UAT: "UAT/Testing",
    Environment.PROD: "Production",
}


@dataclass(frozen=True)
class Schema:
    """설정에 정의된 스키마. 동등성은 이름으로만 판단한다."""

    name: str
    is_default: bool = field(default=False, compare=False)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ValidationResult:
    """SQL 안전성 검증 결과."""

    accepted: bool
    reason: Optional[str] = None

    @classmethod
    def accept(cls) -> "ValidationResult":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: str) -> "ValidationResult":
        return cls(accepted=False, reason=reason)


@dataclass(frozen=True)
class ResultTable:
    """쿼리 실행 결과 - 전체가 메모리에 적재된 불변 테이블."""

    column_names: tuple[str, ...]
    column_types: tuple[str, ...]
    rows: tuple[dict[str, Any], ...]
    execution_time_ms: int
    environment: Environment
    schema: Schema
    statement: Optional[str] = None

    @property
    def row_count(self) -> int:
        """결과 행 수."""
        return len(self.rows)

    def to_dict(self) -> dict[str, Any]:
        """직렬화 가능한 딕셔너리로 변환.

        Returns:
            결과 딕셔너리
        """
        result: dict[str, Any] = {
            "environment": self.environment.key,
            "schema": self.schema.name,
            "column_names": list(self.column_names),
            "column_types": list(self.column_types),
            "rows": [dict(row) for row in self.rows],
            "row_count": self.row_count,
            "execution_time_ms": self.execution_time_ms,
        }
        if self.statement is not None:
            result["statement"] = self.statement
        return result


@dataclass(frozen=True)
class ColumnMeta:
    """컬럼 메타데이터."""

    name: str
    data_type: str
    length: int
    precision: Optional[int]
    scale: Optional[int]
    nullable: bool
    position: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "data_type": self.data_type,
            "length": self.length,
            "precision": self.precision,
            "scale": self.scale,
            "nullable": self.nullable,
            "position": self.position,
        }


@dataclass(frozen=True)
class TableMeta:
    """테이블 메타데이터."""

    name: str
    columns: tuple[ColumnMeta, ...] = ()
    num_rows: Optional[int] = None
    last_analyzed: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "num_rows": self.num_rows,
            "last_analyzed": self.last_analyzed,
            "columns": [column.to_dict() for column in self.columns],
        }


@dataclass(frozen=True)
class ViewMeta:
    """뷰 메타데이터."""

    name: str
    definition: Optional[str] = None
    columns: tuple[ColumnMeta, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "definition": self.definition,
            "columns": [column.to_dict() for column in self.columns],
        }


@dataclass(frozen=True)
class IndexMeta:
    """인덱스 메타데이터."""

    name: str
    table_name: str
    unique: bool
    index_type: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "table_name": self.table_name,
            "unique": self.unique,
            "index_type": self.index_type,
        }


@dataclass(frozen=True)
class SchemaSnapshot:
    """스키마 전체 메타데이터 스냅샷. 요청마다 새로 조회한다."""

    schema: Schema
    tables: tuple[TableMeta, ...] = ()
    views: tuple[ViewMeta, ...] = ()
    indexes: tuple[IndexMeta, ...] = ()
    metadata: dict[str, int] = field(default_factory=dict)

    def find_tables(self, pattern: Optional[str]) -> list[TableMeta]:
        """이름에 패턴이 포함된 테이블 목록 (대소문자 무시).

        Args:
            pattern: 검색 패턴 (비어 있으면 전체)

        Returns:
            일치하는 TableMeta 리스트
        """
        if not pattern or not pattern.strip():
            return list(self.tables)
        upper_pattern = pattern.strip().upper()
        return [table for table in self.tables if upper_pattern in table.name.upper()]

    def find_table(self, name: str) -> Optional[TableMeta]:
        """이름이 정확히 일치하는 테이블 (대소문자 무시)."""
        upper_name = name.strip().upper()
        for table in self.tables:
            if table.name.upper() == upper_name:
                return table
        return None

    def indexes_for(self, table_name: str) -> list[IndexMeta]:
        """특정 테이블의 인덱스 목록."""
        upper_name = table_name.upper()
        return [index for index in self.indexes if index.table_name.upper() == upper_name]

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema": self.schema.name,
            "metadata": dict(self.metadata),
            "tables": [table.to_dict() for table in self.tables],
            "views": [view.to_dict() for view in self.views],
            "indexes": [index.to_dict() for index in self.indexes],
        }


@dataclass(frozen=True)
class TableSearchHit:
    """키워드 검색으로 찾은 테이블과 관련도 점수."""

    schema: str
    table: str
    columns: tuple[ColumnMeta, ...]
    relevance_score: int

    @property
    def full_table_name(self) -> str:
        return f"{self.schema}.{self.table}"

    @property
    def id_columns(self) -> list[ColumnMeta]:
        """ID 검색에 쓸 만한 컬럼."""
        return [column for column in self.columns if "id" in column.name.lower()]

    @property
    def status_columns(self) -> list[ColumnMeta]:
        """상태 검색에 쓸 만한 컬럼."""
        return [column for column in self.columns if "status" in column.name.lower()]

    def summary_description(self) -> str:
        """에이전트용 한 줄 요약.

        Returns:
            "Table: SCHEMA.TABLE (N columns) - ID columns: ..." 형식의 문자열
        """
        parts = [f"Table: {self.full_table_name} ({len(self.columns)} columns)"]
        if self.id_columns:
            parts.append("ID columns: " + ", ".join(c.name for c in self.id_columns))
        if self.status_columns:
            parts.append(
                "Status columns: " + ", ".join(c.name for c in self.status_columns)
            )
        return " - ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema": self.schema,
            "table": self.table,
            "full_table_name": self.full_table_name,
            "relevance_score": self.relevance_score,
            "column_count": len(self.columns),
            "columns": [column.to_dict() for column in self.columns],
            "id_columns": [column.name for column in self.id_columns],
            "status_columns": [column.name for column in self.status_columns],
            "summary": self.summary_description(),
        }


@dataclass
class GatewayResponse:
    """호출자에게 돌려주는 응답. 오류는 메시지와 플래그로만 표현한다."""

    operation: str
    message: str = ""
    is_error: bool = False
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def error(cls, operation: str, message: str, **payload: Any) -> "GatewayResponse":
        return cls(operation=operation, message=message, is_error=True, payload=payload)

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "is_error": self.is_error,
            "message": self.message,
            **self.payload,
        }
