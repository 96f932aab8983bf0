from __future__ import annotations

from urllib.parse import parse_qsl, urlencode

SENSITIVE_INIT_DATA_KEYS = {
    "hash",
    "signature",
    "query_id",
}


def redact_token_for_log(token: str | None, mask: str = "***") -> str:
    """bearer token 只保留首尾少量字符，便于区分刷新前后的 token。"""
    if not token:
        return ""
    if len(token) <= 12:
        return mask
    return f"{token[:6]}{mask}{token[-4:]}"


def redact_init_data_for_log(init_data: str | None, mask: str = "***") -> str:
    """Telegram init data 脱敏：仅修改字符串展示，不影响真实请求。"""
    if not init_data:
        return ""

    try:
        pairs = parse_qsl(init_data, keep_blank_values=True, strict_parsing=True)
    except ValueError:
        # 非 query 格式的凭据整体打码
        return mask

    redacted = []
    for key, value in pairs:
        if key in SENSITIVE_INIT_DATA_KEYS:
            redacted.append((key, mask))
        else:
            redacted.append((key, value))
    return urlencode(redacted)
