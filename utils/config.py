#!/usr/bin/env python3
"""
配置管理模块
"""

import json
import os
from dataclasses import dataclass


DEFAULT_BASE_URL = "https://major.bot/api"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        value = float(raw)
    except (ValueError, TypeError):
        print(f"⚠️ {name} must be a number, using default {default}")
        return default
    if value < 0:
        print(f"⚠️ {name} must not be negative, using default {default}")
        return default
    return value


@dataclass
class AppConfig:
    """应用配置"""

    base_url: str = DEFAULT_BASE_URL
    accounts_file: str = "accounts.json"
    tokens_file: str = "bearerAuthData.json"
    # 内联账号（MAJOR_ACCOUNTS），优先于 accounts_file
    accounts_inline: list[str] | None = None
    proxy: dict | None = None
    # 0 表示每个周期都签到
    checkin_interval_hours: float = 24
    cycle_interval_hours: float = 3
    blocked_grace_seconds: float = 2 * 60 * 60
    min_wait_seconds: float = 60
    phase_delay_seconds: float = 30
    account_delay_seconds: float = 1
    init_delay_seconds: float = 2

    @classmethod
    def load_from_env(cls) -> "AppConfig":
        """从环境变量加载配置"""
        accounts_inline = None
        accounts_str = os.getenv("MAJOR_ACCOUNTS")
        if accounts_str:
            accounts_inline = parse_accounts(accounts_str)
            if accounts_inline is None:
                print("⚠️ Failed to parse MAJOR_ACCOUNTS, falling back to accounts file")

        return cls(
            base_url=(os.getenv("MAJOR_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            accounts_file=os.getenv("MAJOR_ACCOUNTS_FILE") or "accounts.json",
            tokens_file=os.getenv("MAJOR_TOKENS_FILE") or "bearerAuthData.json",
            accounts_inline=accounts_inline,
            proxy=load_global_proxy(),
            checkin_interval_hours=_env_float("MAJOR_CHECKIN_INTERVAL_HOURS", 24),
            cycle_interval_hours=_env_float("MAJOR_CYCLE_INTERVAL_HOURS", 3),
            phase_delay_seconds=_env_float("MAJOR_PHASE_DELAY_SECONDS", 30),
            account_delay_seconds=_env_float("MAJOR_ACCOUNT_DELAY_SECONDS", 1),
            init_delay_seconds=_env_float("MAJOR_INIT_DELAY_SECONDS", 2),
        )

    @property
    def checkin_interval_seconds(self) -> float:
        return self.checkin_interval_hours * 60 * 60

    @property
    def cycle_interval_seconds(self) -> float:
        return self.cycle_interval_hours * 60 * 60


def parse_accounts(raw: str) -> list[str] | None:
    """解析账号列表

    支持格式:
    - 数组: ["query_id=...&user=...&hash=...", ...]
    - 单个字符串: "query_id=...&hash=..."（JSON 字符串或直接原文）
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        data = raw.strip()

    if isinstance(data, str):
        return [data] if data else None

    if not isinstance(data, list):
        print("⚠️ Accounts must be a JSON array of init data strings")
        return None

    accounts: list[str] = []
    for i, item in enumerate(data):
        if not isinstance(item, str) or not item.strip():
            print(f"⚠️ Account {i + 1} init data is not a non-empty string, keeping slot empty")
            accounts.append("")
            continue
        accounts.append(item.strip())
    return accounts


def load_global_proxy() -> dict | None:
    proxy_str = os.getenv("PROXY")
    if not proxy_str:
        return None
    try:
        return json.loads(proxy_str)
    except json.JSONDecodeError:
        return {"server": proxy_str}
