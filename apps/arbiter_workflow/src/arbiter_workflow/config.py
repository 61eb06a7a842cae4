from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .errors import MissingSecretsError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

REQUIRED_SECRETS: tuple[tuple[str, str], ...] = (
    ("anthropic_api_key", "ANTHROPIC_API_KEY"),
    ("openai_api_key", "OPENAI_API_KEY"),
    ("mistral_api_key", "MISTRAL_API_KEY"),
    ("operator_private_key", "OPERATOR_PRIVATE_KEY"),
)

_TRUTHY = {"1", "true", "yes", "on"}


def _flag(value: str | None, default: bool = False) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class WorkflowConfig:
    rpc_url: str = "http://127.0.0.1:8545"
    chain_id: int = 11155111
    registry_contract: str = ZERO_ADDRESS
    escrow_contract: str | None = None
    verifier_contract: str = ZERO_ADDRESS
    evidence_server_url: str = "http://127.0.0.1:3002/api"
    evidence_server_key: str = field(default="", repr=False)

    anthropic_api_key: str = field(default="", repr=False)
    openai_api_key: str = field(default="", repr=False)
    mistral_api_key: str = field(default="", repr=False)
    anthropic_model: str = "claude-opus-4-6"
    openai_model: str = "gpt-4o"
    mistral_model: str = "mistral-large-2411"

    operator_private_key: str = field(default="", repr=False)
    submit_onchain: bool = False
    gas_limit: int = 500_000
    gas_price_multiplier_pct: int = 120

    model_timeout_sec: float = 120.0
    rpc_timeout_sec: float = 30.0
    evidence_timeout_sec: float = 30.0
    model_retry_attempts: int = 0
    max_disputes_per_run: int = 1

    sqlite_path: str | None = "./data/arbiter.db"
    log_level: str = "INFO"

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        *,
        dotenv_path: str | Path | None = None,
    ) -> WorkflowConfig:
        """Build from ``env`` or, when omitted, ``os.environ`` seeded by a ``.env`` file."""
        if env is None:
            load_dotenv(dotenv_path, override=False)
            env = os.environ

        def get(name: str, default: str) -> str:
            value = env.get(name)
            return default if value is None or value.strip() == "" else value.strip()

        sqlite_path = env.get("SQLITE_PATH")
        return cls(
            rpc_url=get("RPC_URL", cls.rpc_url),
            chain_id=int(get("CHAIN_ID", str(cls.chain_id))),
            registry_contract=get("REGISTRY_CONTRACT", ZERO_ADDRESS),
            escrow_contract=env.get("ESCROW_CONTRACT") or None,
            verifier_contract=get("VERIFIER_CONTRACT", ZERO_ADDRESS),
            evidence_server_url=get("EVIDENCE_SERVER_URL", cls.evidence_server_url).rstrip("/"),
            evidence_server_key=env.get("EVIDENCE_SERVER_KEY", ""),
            anthropic_api_key=env.get("ANTHROPIC_API_KEY", ""),
            openai_api_key=env.get("OPENAI_API_KEY", ""),
            mistral_api_key=env.get("MISTRAL_API_KEY", ""),
            anthropic_model=get("ANTHROPIC_MODEL", cls.anthropic_model),
            openai_model=get("OPENAI_MODEL", cls.openai_model),
            mistral_model=get("MISTRAL_MODEL", cls.mistral_model),
            operator_private_key=env.get("OPERATOR_PRIVATE_KEY", ""),
            submit_onchain=_flag(env.get("SUBMIT_ONCHAIN")),
            gas_limit=int(get("GAS_LIMIT", str(cls.gas_limit))),
            gas_price_multiplier_pct=int(get("GAS_PRICE_MULTIPLIER_PCT", str(cls.gas_price_multiplier_pct))),
            model_timeout_sec=float(get("MODEL_TIMEOUT_SEC", str(cls.model_timeout_sec))),
            rpc_timeout_sec=float(get("RPC_TIMEOUT_SEC", str(cls.rpc_timeout_sec))),
            evidence_timeout_sec=float(get("EVIDENCE_TIMEOUT_SEC", str(cls.evidence_timeout_sec))),
            model_retry_attempts=max(0, int(get("MODEL_RETRY_ATTEMPTS", "0"))),
            max_disputes_per_run=max(1, int(get("MAX_DISPUTES_PER_RUN", "1"))),
            sqlite_path=cls.sqlite_path if sqlite_path is None else (sqlite_path.strip() or None),
            log_level=get("LOG_LEVEL", cls.log_level).upper(),
        )

    def missing_secrets(self) -> list[str]:
        return [env_name for attr, env_name in REQUIRED_SECRETS if not getattr(self, attr)]

    def require_secrets(self) -> None:
        missing = self.missing_secrets()
        if missing:
            raise MissingSecretsError(missing)
