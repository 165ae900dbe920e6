"""SkipCash merchant credentials."""

from dataclasses import dataclass
from typing import List, Optional

from finance_gateway.core.config import Settings, settings as default_settings


@dataclass(frozen=True)
class SkipCashCredentials:
    secret_key: str
    key_id: str
    client_id: str
    webhook_key: str = ""
    use_sandbox: bool = True
    sandbox_url: str = "https://skipcashtest.azurewebsites.net"
    production_url: str = "https://api.skipcash.app"

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SkipCashCredentials":
        settings = settings or default_settings
        return cls(
            secret_key=settings.skipcash_secret_key,
            key_id=settings.skipcash_key_id,
            client_id=settings.skipcash_client_id,
            webhook_key=settings.skipcash_webhook_key,
            use_sandbox=settings.skipcash_use_sandbox,
            sandbox_url=settings.skipcash_sandbox_url,
            production_url=settings.skipcash_production_url,
        )

    @property
    def base_url(self) -> str:
        url = self.sandbox_url if self.use_sandbox else self.production_url
        return url.rstrip("/")

    def missing_for_payments(self) -> List[str]:
        """Names of the settings required to sign API requests that are not set."""
        missing = []
        if not self.secret_key:
            missing.append("SKIPCASH_SECRET_KEY")
        if not self.key_id:
            missing.append("SKIPCASH_KEY_ID")
        if not self.client_id:
            missing.append("SKIPCASH_CLIENT_ID")
        return missing
