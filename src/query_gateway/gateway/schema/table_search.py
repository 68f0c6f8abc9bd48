"""테이블 검색 - 키워드와 테이블/컬럼 이름의 관련도로 순위를 매긴다."""

import logging
from typing import Any, Optional

from query_gateway.core.errors import GatewayError
from query_gateway.core.models import Schema, TableMeta, TableSearchHit

logger = logging.getLogger(__name__)

# 점수 가중치
TABLE_NAME_MATCH_SCORE = 100
COLUMN_MATCH_SCORE = 30
DOMAIN_TERM_SCORE = 50
STATUS_COLUMN_SCORE = 20
ID_COLUMN_SCORE = 10

# 업무 도메인 용어
DOMAIN_TERMS = (
    "trade",
    "user",
    "order",
    "account",
    "customer",
    "payment",
    "position",
    "instrument",
)


def score_table(table: TableMeta, keyword: str) -> int:
    """테이블의 관련도 점수를 계산한다.

    모든 가중치를 독립적으로 합산한다. 키워드와 맞는 것이 없어도
    상태 컬럼 가중치는 받을 수 있다.

    Args:
        table: 테이블 메타데이터
        keyword: 검색 키워드

    Returns:
        관련도 점수
    """
    lowered_keyword = keyword.strip().lower()
    if not lowered_keyword:
        return 0

    table_name = table.name.lower()
    column_names = [column.name.lower() for column in table.columns]

    score = 0
    if lowered_keyword in table_name:
        score += TABLE_NAME_MATCH_SCORE

    score += COLUMN_MATCH_SCORE * sum(
        1 for name in column_names if lowered_keyword in name
    )

    for term in DOMAIN_TERMS:
        if term in lowered_keyword and term in table_name:
            score += DOMAIN_TERM_SCORE

    if any("status" in name for name in column_names):
        score += STATUS_COLUMN_SCORE
    if "id" in lowered_keyword and any("id" in name for name in column_names):
        score += ID_COLUMN_SCORE

    return score


class TableSearch:
    """설정된 스키마들을 가로질러 테이블을 검색하는 서비스."""

    def __init__(self, settings: Any, introspector: Any) -> None:
        """검색 서비스 초기화.

        Args:
            settings: 애플리케이션 설정
            introspector: 스키마 조회기
        """
        self._settings = settings
        self._introspector = introspector

    def search(
        self,
        keyword: str,
        schema: Optional[Schema] = None,
        limit: Optional[int] = None,
        min_score: Optional[int] = None,
    ) -> list[TableSearchHit]:
        """키워드로 테이블을 검색한다.

        점수가 0인 테이블도 결과에 포함된다.

        Args:
            keyword: 검색 키워드
            schema: 대상 스키마 (None이면 설정된 모든 스키마)
            limit: 최대 결과 수 (None이면 제한 없음)
            min_score: 이 점수 미만인 테이블 제외 (None이면 모두 포함)

        Returns:
            관련도 내림차순 TableSearchHit 리스트 (동점은 발견 순서 유지)
        """
        schemas = [schema] if schema is not None else self._settings.get_all_schemas()

        hits = []
        for target in schemas:
            try:
                tables = self._introspector.load_tables(target)
            except GatewayError as e:
                logger.warning("Skipping schema %s during table search: %s", target.name, e)
                continue

            for table in tables:
                score = score_table(table, keyword)
                if min_score is not None and score < min_score:
                    continue
                hits.append(
                    TableSearchHit(
                        schema=target.name,
                        table=table.name,
                        columns=table.columns,
                        relevance_score=score,
                    )
                )

        hits.sort(key=lambda hit: hit.relevance_score, reverse=True)

        if limit:
            hits = hits[:limit]
        return hits
