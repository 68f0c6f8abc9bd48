"""SQL 안전성 검증기 테스트."""

import pytest

from query_gateway.gateway.guard.sql_validator import (
    SQLValidator,
    WordBoundarySQLValidator,
    create_validator,
)


@pytest.fixture
def validator() -> SQLValidator:
    return SQLValidator()


@pytest.fixture
def word_validator() -> WordBoundarySQLValidator:
    return WordBoundarySQLValidator()


class TestSQLValidatorAccept:
    """승인되어야 하는 문장 테스트."""

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT NAME FROM USERS WHERE ID = 'abc123'",
            "select * from users",
            "SELECT * FROM USERS;",
            "  SELECT\n  ID,\n  NAME\nFROM USERS  ",
            "SELECT ORDER_ID, AMOUNT FROM ORDERS WHERE STATUS = 'OPEN'",
            "SELECT * FROM T WHERE A IN (SELECT B FROM U WHERE C = 11)",
            "SELECT * FROM T WHERE X = 1.1",
        ],
    )
    def test_should_accept_read_only_select(self, validator: SQLValidator, sql: str) -> None:
        """읽기 전용 SELECT 문은 승인해야 함."""
        result = validator.validate(sql)

        assert result.accepted is True
        assert result.reason is None


class TestSQLValidatorReject:
    """거부되어야 하는 문장 테스트."""

    @pytest.mark.parametrize("sql", [None, "", "   \n\t"])
    def test_should_reject_empty(self, validator: SQLValidator, sql) -> None:
        """빈 입력은 거부해야 함."""
        result = validator.validate(sql)

        assert result.accepted is False
        assert "empty" in result.reason

    def test_should_reject_multiple_statements(self, validator: SQLValidator) -> None:
        """세미콜론 뒤의 두 번째 문장은 거부해야 함."""
        result = validator.validate("SELECT * FROM T; DROP TABLE T")

        assert result.accepted is False

    def test_should_reject_non_select(self, validator: SQLValidator) -> None:
        """SELECT로 시작하지 않으면 거부해야 함."""
        result = validator.validate("UPDATE T SET X=1")

        assert result.accepted is False
        assert "Only SELECT" in result.reason

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT * FROM T WHERE 1=1",
            "SELECT * FROM T WHERE A = 2 OR 1 = 1",
            "SELECT * FROM T WHERE NAME = 'x' OR '1'='1'",
            "SELECT * FROM T WHERE A1=1",
        ],
    )
    def test_should_reject_tautology(self, validator: SQLValidator, sql: str) -> None:
        """항상 참인 조건 문자열이 있으면 거부해야 함."""
        result = validator.validate(sql)

        assert result.accepted is False
        assert "Tautology" in result.reason

    @pytest.mark.parametrize(
        "sql, keyword",
        [
            ("SELECT CREATED_AT FROM T", "CREATE"),
            ("SELECT IS_DELETED FROM T", "DELETE"),
            ("SELECT EXECUTION_ID FROM JOBS", "EXEC"),
            ("SELECT RECALL_DATE FROM T", "CALL"),
            ("SELECT * FROM T WHERE X IN (DELETE FROM T)", "DELETE"),
            ("SELECT * FROM T WHERE X = 1 FOR UPDATE", "UPDATE"),
        ],
    )
    def test_should_reject_keyword_substrings(
        self, validator: SQLValidator, sql: str, keyword: str
    ) -> None:
        """금지 키워드는 식별자 일부여도 거부해야 함."""
        result = validator.validate(sql)

        assert result.accepted is False
        assert result.reason == f"Forbidden keyword: {keyword}"

    @pytest.mark.parametrize(
        "sql, fragment",
        [
            ("SELECT DBMS_RANDOM.VALUE FROM DUAL", "DBMS_"),
            ("SELECT UTL_HTTP.REQUEST('http://x') FROM DUAL", "UTL_"),
            ("SELECT * FROM T -- trailing", "--"),
            ("SELECT /* hint */ * FROM T", "/*"),
            ("SELECT A FROM T UNION SELECT NULL FROM DUAL", "UNION SELECT NULL"),
            ("SELECT SLEEP(5) FROM DUAL", "SLEEP"),
            ("SELECT * FROM T WAITFOR DELAY '0:0:5'", "WAITFOR"),
        ],
    )
    def test_should_reject_denylisted_content(
        self, validator: SQLValidator, sql: str, fragment: str
    ) -> None:
        """거부 목록 내용은 사유와 함께 거부해야 함."""
        result = validator.validate(sql)

        assert result.accepted is False
        assert fragment in result.reason

    def test_should_reject_unbalanced_parentheses(self, validator: SQLValidator) -> None:
        """괄호가 맞지 않으면 거부해야 함."""
        result = validator.validate("SELECT COUNT(* FROM T")

        assert result.accepted is False
        assert "parentheses" in result.reason

    def test_should_reject_more_than_ten_u_characters(self, validator: SQLValidator) -> None:
        """'U' 문자가 상한을 넘으면 거부해야 함."""
        # Given
        sql = "SELECT USER_ID, USERNAME, UUID, STATUS FROM USERS U WHERE U.UNIT = 'UU'"

        # When
        result = validator.validate(sql)

        # Then
        assert result.accepted is False
        assert "too complex" in result.reason

    def test_should_count_u_case_insensitively(self, validator: SQLValidator) -> None:
        """소문자 u도 세어야 함."""
        assert validator.validate("SELECT " + "u" * 11 + " FROM T").accepted is False

    def test_should_allow_u_characters_up_to_limit(self, validator: SQLValidator) -> None:
        """'U' 문자가 상한 이하이면 승인해야 함."""
        assert validator.validate("SELECT " + "U" * 10 + " FROM T").accepted is True


class TestSQLValidatorNormalize:
    """정규화 테스트."""

    def test_should_collapse_whitespace_and_uppercase(self, validator: SQLValidator) -> None:
        """공백을 하나로 줄이고 대문자로 바꿔야 함."""
        assert validator.normalize("select\n  id\tfrom  users ") == "SELECT ID FROM USERS"


class TestWordBoundarySQLValidator:
    """단어 단위 검증기 테스트."""

    def test_should_accept_identifiers_containing_keywords(
        self, word_validator: WordBoundarySQLValidator
    ) -> None:
        """키워드를 포함한 식별자는 승인해야 함."""
        result = word_validator.validate(
            "SELECT CREATED_AT, IS_DELETED, EXECUTION_ID FROM JOBS"
        )

        assert result.accepted is True

    def test_should_still_reject_whole_keywords(
        self, word_validator: WordBoundarySQLValidator
    ) -> None:
        result = word_validator.validate("SELECT * FROM T WHERE X IN (DELETE FROM T)")

        assert result.reason == "Forbidden keyword: DELETE"

    def test_should_not_treat_identifier_suffix_as_tautology(
        self, word_validator: WordBoundarySQLValidator
    ) -> None:
        """A1=1은 승인하고 OR 1=1은 거부해야 함."""
        assert word_validator.validate("SELECT A1 FROM T WHERE A1=1").accepted is True
        assert word_validator.validate("SELECT * FROM T WHERE A = 2 OR 1=1").accepted is False

    def test_should_count_union_keywords(
        self, word_validator: WordBoundarySQLValidator
    ) -> None:
        """'U' 문자 대신 UNION 키워드 수로 상한을 적용해야 함."""
        # Given
        within_limit = " UNION ".join(f"SELECT {i} AS N FROM DUAL" for i in range(11))
        over_limit = " UNION ".join(f"SELECT {i} AS N FROM DUAL" for i in range(12))

        # When / Then
        assert word_validator.validate(within_limit).accepted is True
        result = word_validator.validate(over_limit)
        assert result.accepted is False
        assert "UNION" in result.reason


class TestCreateValidator:
    """검증기 선택 테스트."""

    def test_default_is_substring_validator(self) -> None:
        validator = create_validator()

        assert type(validator) is SQLValidator

    def test_word_boundary_is_opt_in(self) -> None:
        assert isinstance(create_validator(word_boundary=True), WordBoundarySQLValidator)
