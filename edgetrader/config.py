"""
Configuration module for Edge Trader.
Loads settings from environment variables with validation.
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class StrategyConfig:
    """Spot position rules shared by every bot variant."""
    stop_loss_pct: float = 0.008  # exit at -0.8%
    take_profit_pct: float = 0.015  # exit at +1.5%
    fee_rate: float = 0.001  # 0.1% per fill
    allocation: float = 0.95  # share of cash committed on entry
    min_cash: float = 10.0  # no entry at or below this
    max_trade_history: int = 20


@dataclass
class ScoringConfig:
    """Signal scorer thresholds."""
    min_bars: int = 30
    rsi_period: int = 14
    rsi_oversold: float = 30.0
    rsi_low: float = 40.0
    rsi_overbought: float = 70.0
    rsi_high: float = 60.0
    ema_fast: int = 9
    ema_slow: int = 21
    bb_period: int = 20
    bb_std_dev: float = 2.0
    volume_window: int = 10
    volume_spike: float = 1.3
    min_score: int = 5
    max_confidence: int = 99


@dataclass
class SpotConfig:
    """Spot scalper settings."""
    pair: str = "XBTUSD"
    result_key: str = "XXBTZUSD"
    interval_minutes: int = 15
    candle_window: int = 60
    poll_seconds: float = 30.0
    starting_cash: float = 500.0
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)


@dataclass
class ScannerConfig:
    """Prediction market scanner settings."""
    scan_interval_seconds: float = 3600.0
    market_limit: int = 50
    shortlist_size: int = 10
    min_score: int = 20
    min_edge_cents: int = 6
    min_confidence: float = 0.55
    candidate_delay_seconds: float = 1.2
    max_trade_history: int = 60


@dataclass
class SizingConfig:
    """Half-Kelly sizing bounds."""
    kelly_fraction: float = 0.5
    max_balance_fraction: float = 0.08
    min_bet: float = 5.0
    max_bet: float = 10000.0


@dataclass
class KalshiConfig:
    """Kalshi API configuration."""
    api_key_id: str
    private_key: str
    base_url: str = "https://trading-api.kalshi.com/trade-api/v2"

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key_id and self.private_key)


@dataclass
class AnthropicConfig:
    """External estimator configuration."""
    api_key: str
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 500
    web_search: bool = True
    base_url: str = "https://api.anthropic.com"


@dataclass
class HttpConfig:
    """Per-request timeouts."""
    timeout_seconds: float = 10.0
    estimator_timeout_seconds: float = 60.0


@dataclass
class RiskConfig:
    """Risk control settings."""
    kill_switch: bool
    simulation_mode: bool  # Dry run - score and size but don't submit orders


@dataclass
class LogConfig:
    """Logging configuration."""
    log_level: str
    json_logging: bool


@dataclass
class Config:
    """Main configuration container."""
    kalshi: KalshiConfig
    anthropic: AnthropicConfig
    spot: SpotConfig
    scanner: ScannerConfig
    sizing: SizingConfig
    http: HttpConfig
    risk: RiskConfig
    logging: LogConfig


def get_env(key: str, default: Optional[str] = None, required: bool = True) -> str:
    """Get environment variable with validation."""
    value = os.getenv(key, default)
    if required and not value:
        raise ValueError(f"Required environment variable {key} is not set")
    return value or ""


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ("true", "1", "yes")


def get_env_int(key: str, default: int) -> int:
    """Get integer environment variable."""
    value = os.getenv(key, str(default))
    return int(value)


def get_env_float(key: str, default: float) -> float:
    """Get float environment variable."""
    value = os.getenv(key, str(default))
    return float(value)


def _read_private_key() -> str:
    """Inline key wins over a key file."""
    inline = get_env("KALSHI_PRIVATE_KEY", required=False)
    if inline:
        # .env files usually carry the PEM on one line
        return inline.replace("\\n", "\n")

    path = get_env("KALSHI_PRIVATE_KEY_PATH", required=False)
    if not path:
        return ""
    with open(os.path.expanduser(path), "r", encoding="utf-8") as handle:
        return handle.read()


def load_config() -> Config:
    """Load and validate configuration from environment."""
    strategy = StrategyConfig(
        stop_loss_pct=get_env_float("SPOT_STOP_LOSS_PCT", 0.008),
        take_profit_pct=get_env_float("SPOT_TAKE_PROFIT_PCT", 0.015),
        fee_rate=get_env_float("SPOT_FEE_RATE", 0.001),
    )

    return Config(
        kalshi=KalshiConfig(
            api_key_id=get_env("KALSHI_API_KEY_ID", required=False).strip(),
            private_key=_read_private_key(),
            base_url=get_env(
                "KALSHI_BASE_URL",
                "https://trading-api.kalshi.com/trade-api/v2",
                required=False,
            ),
        ),
        anthropic=AnthropicConfig(
            api_key=get_env("ANTHROPIC_API_KEY", required=False),
            model=get_env("ANTHROPIC_MODEL", "claude-sonnet-4-20250514", required=False),
            max_tokens=get_env_int("ANTHROPIC_MAX_TOKENS", 500),
            web_search=get_env_bool("ANTHROPIC_WEB_SEARCH", True),
        ),
        spot=SpotConfig(
            pair=get_env("SPOT_PAIR", "XBTUSD", required=False),
            interval_minutes=get_env_int("SPOT_INTERVAL_MINUTES", 15),
            poll_seconds=get_env_float("SPOT_POLL_SECONDS", 30.0),
            starting_cash=get_env_float("SPOT_STARTING_CASH", 500.0),
            strategy=strategy,
        ),
        scanner=ScannerConfig(
            scan_interval_seconds=get_env_float("SCAN_INTERVAL_SECONDS", 3600.0),
            market_limit=get_env_int("SCAN_MARKET_LIMIT", 50),
            min_edge_cents=get_env_int("MIN_EDGE_CENTS", 6),
            min_confidence=get_env_float("MIN_CONFIDENCE", 0.55),
            candidate_delay_seconds=get_env_float("CANDIDATE_DELAY_SECONDS", 1.2),
        ),
        sizing=SizingConfig(),
        http=HttpConfig(
            timeout_seconds=get_env_float("HTTP_TIMEOUT_SECONDS", 10.0),
            estimator_timeout_seconds=get_env_float("ESTIMATOR_TIMEOUT_SECONDS", 60.0),
        ),
        risk=RiskConfig(
            kill_switch=get_env_bool("KILL_SWITCH", False),
            simulation_mode=get_env_bool("SIMULATION_MODE", True),  # Default to simulation
        ),
        logging=LogConfig(
            log_level=get_env("LOG_LEVEL", "INFO", required=False),
            json_logging=get_env_bool("JSON_LOGGING", True),
        ),
    )
