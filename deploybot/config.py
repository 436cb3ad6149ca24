from functools import lru_cache

from pydantic_settings import BaseSettings


def split_list(raw: str) -> list[str]:
    return [x.strip() for x in raw.split(",") if x.strip()]


class Settings(BaseSettings):
    app_env: str = "dev"
    app_port: int = 8080
    app_host: str = "0.0.0.0"

    log_level: str = "INFO"
    log_json: bool = True

    github_api_url: str = "https://api.github.com"
    github_token: str = ""
    github_org: str = "hashlab"

    quay_api_url: str = "https://quay.io/api/v1"
    quay_token: str = ""
    quay_namespace: str = "hashlab"

    rancher_api_url: str = ""
    rancher_access_key: str = ""
    rancher_secret_key: str = ""

    http_timeout: float = 20.0

    # Comma-separated chat user names, matched exactly.
    authz_deploy_allow: str = ""
    staff_users: str = ""

    # Serialize mutating pipelines per project+workload pair.
    serialize_workload_actions: bool = True

    ms_teams_bot_enabled: bool = True
    telegram_bot_token: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = False
        frozen = True

    @property
    def allowed_users(self) -> list[str]:
        return split_list(self.authz_deploy_allow)

    @property
    def staff(self) -> list[str]:
        return split_list(self.staff_users)

    def missing_for(self, action: str) -> list[str]:
        """Names of required settings left blank for the given action."""
        required = ["rancher_api_url", "rancher_access_key", "rancher_secret_key"]
        if action == "deploy":
            required = ["github_api_url", "github_token", "quay_api_url", "quay_token"] + required
        elif action == "github":
            required = ["github_api_url", "github_token"]
        elif action == "quay":
            required = ["quay_api_url", "quay_token"]
        return [name for name in required if not str(getattr(self, name)).strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
