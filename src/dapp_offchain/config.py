"""
dApp Configuration

Centralized settings for the off-chain engine and the console front-end.
Defaults target a local Hardhat node with the default deployment addresses;
environment-specific values load from the environment or a .env file.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


# Get the project root directory (two levels up from src/dapp_offchain/)
PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """
    Settings for the XToken dApp engine

    Every field can be overridden with a DAPP_ prefixed environment variable,
    e.g. DAPP_RPC_URL or DAPP_EXPECTED_CHAIN_ID.
    """

    # ============================================================================
    # Application
    # ============================================================================

    app_name: str = "XToken dApp"
    log_level: str = "INFO"

    # ============================================================================
    # Network & contracts
    # ============================================================================

    rpc_url: str = "http://127.0.0.1:8545"
    expected_chain_id: int = 31337
    explorer_url: str = ""

    token_address: str = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"
    nft_address: str = "0x9fE46736679d2D9a65F0992F2272dE9f3c7fa6e0"

    # Hardhat artifact files; the built-in ABIs are used when unset
    token_abi_path: Path | None = None
    nft_abi_path: Path | None = None

    # ============================================================================
    # Engine behaviour
    # ============================================================================

    event_log_limit: int = 100
    event_poll_interval: float = 2.0
    provider_poll_interval: float = 1.0
    confirmation_timeout: float | None = None  # None waits forever
    guard_in_flight: bool = True

    model_config = SettingsConfigDict(
        env_prefix="DAPP_",
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# ============================================================================
# Global settings instance
# ============================================================================

settings = Settings()
