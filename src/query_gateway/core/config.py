"""애플리케이션 설정 모듈."""

from typing import Any, Optional

from pydantic_settings import BaseSettings

from query_gateway.core.errors import ConfigurationError
from query_gateway.core.models import Environment, Schema


class Settings(BaseSettings):
    """애플리케이션 설정.

    게이트웨이 코어는 이 객체를 환경 URL, 연결 속성, 스키마 목록을 제공하는
    설정 공급자로만 사용한다.
    """

    # 환경별 Oracle DSN (Easy Connect 또는 TNS 디스크립터)
    dev_url: Optional[str] = None
    uat_url: Optional[str] = None
    prod_url: Optional[str] = None

    # 사용자/비밀번호가 없으면 외부 인증(Kerberos)을 사용
    oracle_user: Optional[str] = None
    oracle_password: Optional[str] = None

    # Kerberos 설정 (thick 모드 전용)
    thick_mode: bool = False
    oracle_client_lib_dir: Optional[str] = None
    kerberos_config_path: Optional[str] = None
    kerberos_ccache_path: Optional[str] = None
    kerberos_debug: bool = False

    # 스키마 설정
    schema_default: str = "DEFAULT_SCHEMA"
    schema_secondary: Optional[str] = None

    # 타임아웃 (초 단위)
    login_timeout: int = 30
    liveness_timeout: int = 10
    query_timeout: int = 60
    metadata_timeout: int = 30

    # True면 키워드를 단어 단위로 매칭하는 완화된 검증기 사용
    word_boundary_validation: bool = False

    log_level: str = "INFO"

    model_config = {
        "env_prefix": "QUERY_GATEWAY_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    def get_environment_url(self, environment: Environment) -> Optional[str]:
        """환경의 DSN을 반환.

        Args:
            environment: 대상 환경

        Returns:
            DSN 문자열 또는 None
        """
        url = getattr(self, f"{environment.key}_url")
        return url or None

    def get_connection_properties(self, environment: Environment) -> dict[str, Any]:
        """환경별 드라이버 연결 속성을 반환.

        Args:
            environment: 대상 환경

        Returns:
            oracledb.connect()에 전달할 키워드 인자 딕셔너리
        """
        properties: dict[str, Any] = {
            "tcp_connect_timeout": float(self.login_timeout),
        }
        if self.oracle_user:
            properties["user"] = self.oracle_user
            properties["password"] = self.oracle_password
        else:
            properties["externalauth"] = True
        return properties

    def get_default_schema(self) -> Schema:
        return Schema(self.schema_default, is_default=True)

    def get_secondary_schema(self) -> Optional[Schema]:
        if not self.schema_secondary or self.schema_secondary == self.schema_default:
            return None
        return Schema(self.schema_secondary, is_default=False)

    def get_all_schemas(self) -> list[Schema]:
        """설정된 모든 스키마 (기본 스키마가 첫 번째)."""
        schemas = [self.get_default_schema()]
        secondary = self.get_secondary_schema()
        if secondary is not None:
            schemas.append(secondary)
        return schemas

    def find_schema_by_name(self, name: Optional[str]) -> Schema:
        """이름으로 스키마를 찾는다 (대소문자 무시, 없으면 기본 스키마).

        Args:
            name: 스키마 이름

        Returns:
            일치하는 Schema 또는 기본 스키마
        """
        if name is None:
            return self.get_default_schema()

        upper_name = name.strip().upper()
        for schema in self.get_all_schemas():
            if schema.name.upper() == upper_name:
                return schema
        return self.get_default_schema()

    def parse_schema_from_text(self, text: Optional[str]) -> Schema:
        """자연어 문장에서 스키마를 추정한다.

        Args:
            text: 자연어 문장

        Returns:
            언급된 Schema, 없으면 기본 스키마
        """
        if text is None:
            return self.get_default_schema()

        upper_text = text.upper()
        for schema in self.get_all_schemas():
            upper_name = schema.name.upper()
            if upper_name in upper_text or upper_name.replace("_", " ") in upper_text:
                return schema

        secondary = self.get_secondary_schema()
        if secondary is not None and any(
            word in upper_text for word in ("SECONDARY", "WORKFLOW", "WF", "SECOND")
        ):
            return secondary

        return self.get_default_schema()

    def get_environment_display_name(self, environment: Environment) -> str:
        return environment.display_name

    def configured_environments(self) -> list[Environment]:
        """URL이 설정된 환경 목록."""
        return [env for env in Environment if self.get_environment_url(env)]

    def ensure_serviceable(self) -> None:
        """서비스 가능한 최소 설정이 있는지 확인.

        Raises:
            ConfigurationError: 환경 URL 또는 기본 스키마가 없을 때
        """
        if not self.configured_environments():
            raise ConfigurationError(
                "No database URL configured. Set at least one of "
                "QUERY_GATEWAY_DEV_URL, QUERY_GATEWAY_UAT_URL, QUERY_GATEWAY_PROD_URL."
            )
        if not self.schema_default or not self.schema_default.strip():
            raise ConfigurationError(
                "No default schema configured. Set QUERY_GATEWAY_SCHEMA_DEFAULT."
            )
