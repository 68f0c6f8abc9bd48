"""SQL 안전성 검증기 - 읽기 전용 SELECT 문만 통과시킨다."""

import re
from typing import Optional, Protocol

from query_gateway.core.models import ValidationResult

# 공백 정규화 패턴
WHITESPACE_PATTERN = re.compile(r"\s+")

# DML/DDL/세션 제어 및 프로시저 호출 키워드 (부분 문자열 매칭)
FORBIDDEN_KEYWORDS = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "CREATE",
    "ALTER",
    "TRUNCATE",
    "MERGE",
    "GRANT",
    "REVOKE",
    "COMMIT",
    "ROLLBACK",
    "SAVEPOINT",
    "EXEC",
    "EXECUTE",
    "CALL",
)

# 권한 패키지 접두사
PRIVILEGED_PACKAGE_PREFIXES = ("DBMS_", "UTL_", "OWA_", "HTP.", "HTF.")

# 주석 토큰
COMMENT_TOKENS = ("--", "/*", "*/")

# UNION 인젝션 표식
UNION_INJECTION_MARKERS = ("UNION SELECT NULL", "UNION ALL SELECT NULL")

# 시간 기반 사이드 채널 함수
TIME_PROBE_MARKERS = ("SLEEP(", "PG_SLEEP(", "BENCHMARK(", "WAITFOR")

# 항상 참인 조건
TAUTOLOGY_MARKERS = ("1=1", "1 = 1", "OR 1=1", "OR '1'='1'")

# 'U' 문자 수 상한 (UNION 절 수의 대용 지표)
MAX_U_COUNT = 10


class StatementValidator(Protocol):
    """문장 검증기 인터페이스."""

    def validate(self, sql: str) -> ValidationResult: ...


class SQLValidator:
    """거부 목록 기반 SQL 안전성 검증기.

    문장을 파싱하지 않고 텍스트 규칙을 순서대로 적용하며,
    첫 번째 위반에서 거부한다. 키워드는 부분 문자열로 찾으므로
    CREATED_AT 같은 컬럼 이름도 거부된다.
    """

    def validate(self, sql: str) -> ValidationResult:
        """SQL 문장을 검증한다.

        Args:
            sql: 호출자가 보낸 원본 SQL

        Returns:
            ValidationResult (승인 또는 거부 사유)
        """
        if sql is None or not sql.strip():
            return ValidationResult.reject("SQL statement is empty")

        normalized = self.normalize(sql)

        if not normalized.startswith("SELECT "):
            return ValidationResult.reject(
                "Only SELECT queries are allowed. Query must start with SELECT."
            )

        reason = self._find_forbidden_content(normalized)
        if reason:
            return ValidationResult.reject(reason)

        if ";" in normalized[:-1]:
            return ValidationResult.reject(
                "Multiple statements are not allowed (semicolon before end of statement)"
            )

        if not self._has_balanced_parentheses(normalized):
            return ValidationResult.reject("Unbalanced parentheses")

        if self._has_tautology(normalized):
            return ValidationResult.reject(
                "Tautology condition detected (possible SQL injection)"
            )

        reason = self._check_complexity(normalized)
        if reason:
            return ValidationResult.reject(reason)

        return ValidationResult.accept()

    def normalize(self, sql: str) -> str:
        """키워드 매칭용 작업 사본을 만든다.

        주석 제거는 하지 않는다. 주석 토큰이 있으면 거부 목록에서 걸러진다.

        Args:
            sql: 원본 SQL

        Returns:
            공백이 정리된 대문자 SQL
        """
        return WHITESPACE_PATTERN.sub(" ", sql).strip().upper()

    def _find_forbidden_content(self, normalized: str) -> Optional[str]:
        """거부 목록에 해당하는 내용이 있으면 사유를 반환."""
        semicolon_index = normalized.find(";")
        if semicolon_index != -1 and semicolon_index != len(normalized) - 1:
            return "Statement separator ';' is only allowed at the end"

        keyword = self._find_forbidden_keyword(normalized)
        if keyword:
            return f"Forbidden keyword: {keyword}"

        for prefix in PRIVILEGED_PACKAGE_PREFIXES:
            if prefix in normalized:
                return f"Privileged package reference: {prefix}"

        for token in COMMENT_TOKENS:
            if token in normalized:
                return f"SQL comments are not allowed: {token}"

        for marker in UNION_INJECTION_MARKERS:
            if marker in normalized:
                return f"UNION injection pattern detected: {marker}"

        for marker in TIME_PROBE_MARKERS:
            if marker in normalized:
                return f"Time-based probe function: {marker.rstrip('(')}"

        return None

    def _find_forbidden_keyword(self, normalized: str) -> Optional[str]:
        for keyword in FORBIDDEN_KEYWORDS:
            if keyword in normalized:
                return keyword
        return None

    def _has_tautology(self, normalized: str) -> bool:
        return any(marker in normalized for marker in TAUTOLOGY_MARKERS)

    def _check_complexity(self, normalized: str) -> Optional[str]:
        u_count = normalized.count("U")
        if u_count > MAX_U_COUNT:
            return f"Query too complex ({u_count} 'U' characters > {MAX_U_COUNT})"
        return None

    def _has_balanced_parentheses(self, normalized: str) -> bool:
        depth = 0
        for char in normalized:
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth < 0:
                    return False
        return depth == 0


# 단어 단위 키워드 (WordBoundarySQLValidator 전용)
FORBIDDEN_WORD_PATTERN = re.compile(
    r"\b(" + "|".join(FORBIDDEN_KEYWORDS) + r")\b", re.IGNORECASE
)

TAUTOLOGY_WORD_PATTERN = re.compile(
    r"(?<![\w.])1\s*=\s*1(?![\w.])|'1'\s*=\s*'1'", re.IGNORECASE
)

UNION_WORD_PATTERN = re.compile(r"\bUNION\b", re.IGNORECASE)

MAX_UNION_COUNT = 10


class WordBoundarySQLValidator(SQLValidator):
    """키워드를 단어 단위로 매칭하는 완화된 검증기.

    CREATED_AT, IS_DELETED 같은 식별자를 허용하고, 복잡도 상한은
    'U' 문자 수 대신 UNION 키워드 수로 센다. 설정으로 선택할 때만 사용한다.
    """

    def _find_forbidden_keyword(self, normalized: str) -> Optional[str]:
        match = FORBIDDEN_WORD_PATTERN.search(normalized)
        return match.group(1) if match else None

    def _has_tautology(self, normalized: str) -> bool:
        return bool(TAUTOLOGY_WORD_PATTERN.search(normalized))

    def _check_complexity(self, normalized: str) -> Optional[str]:
        union_count = len(UNION_WORD_PATTERN.findall(normalized))
        if union_count > MAX_UNION_COUNT:
            return f"Too many UNION clauses ({union_count} > {MAX_UNION_COUNT})"
        return None


def create_validator(word_boundary: bool = False) -> SQLValidator:
    """설정에 맞는 검증기를 만든다.

    Args:
        word_boundary: True면 단어 단위 매칭 검증기

    Returns:
        SQLValidator 인스턴스
    """
    if word_boundary:
        return WordBoundarySQLValidator()
    return SQLValidator()
