"""Client settings loaded from SCUBA_* environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

from scubaclient.auth.models import AwsV4Auth, AwsV4Params, NoAuth, ScubaAuth
from scubaclient.config.connection import ClientConfig


class Settings(BaseSettings):
    # Scuba endpoint
    host: str = "localhost"
    port: int = 8100
    use_https: bool = False
    base_path: str = ""
    keep_alive: bool = False

    # TLS material, as file paths (read into PEM strings)
    key_file: str = ""
    cert_file: str = ""
    ca_file: str = ""

    # Request signing
    auth_mode: str = "none"  # none | aws_v4
    aws_service: str = "s3"
    aws_region: str = "us-east-1"
    aws_profile: str = ""
    aws_assume_role_arn: str = ""
    aws_assume_role_session_name: str = "scubaclient"

    # Logging
    log_level: str = "INFO"
    log_file: str = ""  # Empty = stdout only

    model_config = {
        "env_prefix": "SCUBA_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def build_auth(self) -> ScubaAuth:
        mode = self.auth_mode.strip().lower()
        if mode in ("", "none"):
            return NoAuth()
        if mode == "aws_v4":
            return AwsV4Auth(AwsV4Params(
                service=self.aws_service,
                region=self.aws_region,
                profile_name=self.aws_profile or None,
                assume_role_arn=self.aws_assume_role_arn or None,
                assume_role_session_name=self.aws_assume_role_session_name,
            ))
        raise ValueError(f"Unknown auth mode: {self.auth_mode}")

    def to_client_config(self) -> ClientConfig:
        return ClientConfig(
            host=self.host,
            port=self.port,
            use_https=self.use_https,
            base_path=self.base_path,
            key=_read_pem(self.key_file),
            cert=_read_pem(self.cert_file),
            ca=_read_pem(self.ca_file),
            keep_alive=self.keep_alive,
            auth=self.build_auth(),
        )


def _read_pem(path: str) -> str | None:
    if not path:
        return None
    return Path(path).read_text(encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    return Settings()
