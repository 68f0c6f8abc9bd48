"""스키마 한정자 - 스키마가 없는 테이블 참조 앞에 스키마 이름을 붙인다."""

import re
from typing import Protocol

from query_gateway.core.models import Schema

# FROM/JOIN/UPDATE/INSERT INTO 뒤의 객체 참조 (점으로 한정된 이름 포함)
OBJECT_REFERENCE_PATTERN = re.compile(
    r"\b(?:FROM|JOIN|UPDATE|INSERT\s+INTO)\s+([\w$#]+(?:\.[\w$#]+)*)",
    re.IGNORECASE,
)

# 한정되지 않은 식별자 - 뒤에 점이 오지 않아야 함
BARE_REFERENCE_PATTERN = re.compile(
    r"(\b(?:FROM|JOIN|UPDATE|INSERT\s+INTO)\s+)([\w$#]+)(?![\w$#.])",
    re.IGNORECASE,
)

# 시스템/카탈로그 객체 (DUAL, 딕셔너리 뷰, 권한 스키마, 동적 성능 뷰)
SYSTEM_OBJECT_PATTERN = re.compile(
    r"^(DUAL|ALL_\w+|USER_\w+|DBA_\w+|SYS\.[\w$#]+|SYSTEM\.[\w$#]+|V\$[\w$#]*|GV\$[\w$#]*)$",
    re.IGNORECASE,
)


class StatementRewriter(Protocol):
    """문장 재작성기 인터페이스."""

    def qualify(self, sql: str, schema: Schema) -> str: ...


class SchemaQualifier:
    """정규식 기반 단일 패스 스키마 한정자.

    문장 파서가 아니며 best-effort로 동작한다.
    이미 검증을 통과한 문장만 입력으로 받는다.
    """

    def qualify(self, sql: str, schema: Schema) -> str:
        """테이블 참조에 스키마 접두사를 붙인 새 문장을 반환.

        Args:
            sql: 검증된 SQL
            schema: 활성 스키마

        Returns:
            재작성된 SQL (시스템 객체를 참조하면 원본 그대로)
        """
        if not sql or schema is None:
            return sql

        if self.references_system_objects(sql):
            return sql

        prefix = f"{schema.name}."
        return BARE_REFERENCE_PATTERN.sub(
            lambda match: f"{match.group(1)}{prefix}{match.group(2)}", sql
        )

    def references_system_objects(self, sql: str) -> bool:
        """문장이 시스템/카탈로그 객체를 참조하는지 확인."""
        return any(
            SYSTEM_OBJECT_PATTERN.match(reference)
            for reference in OBJECT_REFERENCE_PATTERN.findall(sql)
        )
