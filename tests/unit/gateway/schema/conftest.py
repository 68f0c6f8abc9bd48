"""스키마 서비스 테스트 fixture."""

from contextlib import contextmanager
from types import SimpleNamespace

import pytest


class FakeRegistry:
    """쿼리 문자열별로 미리 정한 행을 돌려주는 레지스트리."""

    def __init__(self, responses=None) -> None:
        self.responses = responses or {}
        self.calls = []
        self.sessions = 0

    @contextmanager
    def session(self, environment=None, schema=None):
        self.sessions += 1
        yield None

    def execute(
        self, sql, environment=None, schema=None, *, statement=None, parameters=None, timeout=None
    ):
        self.calls.append((sql, parameters, timeout))
        response = self.responses.get(sql, ())
        if isinstance(response, Exception):
            raise response
        return SimpleNamespace(rows=tuple(response))


@pytest.fixture
def make_registry():
    """응답 딕셔너리로 FakeRegistry를 만드는 팩토리."""
    return FakeRegistry
