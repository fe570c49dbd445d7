from pathlib import Path
from typing import Literal, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ticketing_client.platform.constant.path import SESSION_DIR


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')

PRODUCTION_TARGET = 'ic'
LOCAL_REPLICA_HOST = 'http://127.0.0.1:4943'
MAINNET_HOST = 'https://icp-api.io'


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Event Ticketing Client'
    VERSION: str = '0.1.0'
    DEBUG: bool = False

    # Deployment target ('ic' is production, anything else trusts a fetched root key)
    DEPLOY_TARGET: Literal['local', 'ic'] = Field(
        default='local', validation_alias=AliasChoices('DEPLOY_TARGET', 'DFX_NETWORK')
    )

    # Ledger service
    LEDGER_HOST: Optional[str] = None
    CANISTER_ID: str = Field(
        default='zeh3m-fiaaa-aaaab-qacda-cai',
        validation_alias=AliasChoices('CANISTER_ID', 'CANISTER_ID_MY_RUST_PROJECT_BACKEND'),
    )
    REQUEST_TIMEOUT_SECONDS: float = 30.0
    INGRESS_EXPIRY_SECONDS: int = 240
    UPDATE_POLL_INTERVAL_SECONDS: float = 0.5
    UPDATE_TIMEOUT_SECONDS: float = 300.0

    # Authentication provider
    IDENTITY_PROVIDER_URL: str = 'https://identity.ic0.app/#authorize'
    SESSION_FILE: Path = SESSION_DIR / 'session.json'

    # UI notifications
    NOTIFICATION_TTL_SECONDS: float = 5.0

    # Currency display (amounts travel as integer minor units)
    CURRENCY_SCALE: int = 100_000_000
    CURRENCY_DECIMALS: int = 8
    CURRENCY_SYMBOL: str = 'ICP'

    # Create-event form defaults
    DEFAULT_TOTAL_TICKETS: int = 100
    DEFAULT_PRICE: int = 100_000_000  # 1 ICP in e8s
    DEFAULT_MAX_TICKETS_PER_USER: int = 4
    DEFAULT_SALE_WINDOW_DAYS: int = 30

    @field_validator('LEDGER_HOST', mode='before')
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str):
            return v.rstrip('/')
        return v

    @property
    def IS_PRODUCTION(self) -> bool:
        return self.DEPLOY_TARGET == PRODUCTION_TARGET

    @property
    def LEDGER_BASE_URL(self) -> str:
        if self.LEDGER_HOST:
            return self.LEDGER_HOST
        return MAINNET_HOST if self.IS_PRODUCTION else LOCAL_REPLICA_HOST


settings = Settings()  # type: ignore
