"""타입 정규화기 - 드라이버 고유 값을 직렬화 가능한 값으로 변환."""

import datetime
import decimal
from typing import Any

import oracledb

_CHARACTER_LOB_TYPES = (oracledb.DB_TYPE_CLOB, oracledb.DB_TYPE_NCLOB)


def normalize_value(value: Any) -> Any:
    """셀 값 하나를 정규화한다.

    변환 규칙:
        - None, bool, int, float, str: 그대로
        - Decimal: 정수이면 int, 아니면 float
        - datetime/date: ISO 형식 문자열 (공백 구분자)
        - CLOB/NCLOB: 전체 문자열
        - BLOB/BFILE, bytes: "[BLOB: n bytes]" 형식의 요약
        - LOB 읽기 실패: "[CLOB: 메시지]" 형식의 표식
        - 그 밖의 타입: str(value)

    Args:
        value: 드라이버가 반환한 값

    Returns:
        정규화된 값
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value

    if isinstance(value, decimal.Decimal):
        if value.is_finite() and value == value.to_integral_value():
            return int(value)
        return float(value)

    if isinstance(value, datetime.datetime):
        return value.isoformat(sep=" ")

    if isinstance(value, datetime.date):
        return value.isoformat()

    if isinstance(value, oracledb.LOB):
        return _normalize_lob(value)

    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"[BINARY: {len(value)} bytes]"

    return str(value)


def _normalize_lob(lob: Any) -> str:
    """LOB 값을 문자열 또는 요약 표식으로 변환."""
    if lob.type in _CHARACTER_LOB_TYPES:
        try:
            return lob.read()
        except oracledb.Error as e:
            return f"[CLOB: {e}]"

    try:
        return f"[BLOB: {lob.size()} bytes]"
    except oracledb.Error as e:
        return f"[BLOB: {e}]"


def normalize_type_name(type_code: Any) -> str:
    """커서 description의 타입 코드를 타입 이름으로 변환.

    Args:
        type_code: oracledb DbType 또는 임의 값

    Returns:
        "NUMBER", "VARCHAR" 같은 타입 이름
    """
    name = getattr(type_code, "name", None) or str(type_code)
    return name.removeprefix("DB_TYPE_")
