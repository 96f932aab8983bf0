#!/usr/bin/env python3
"""
时间格式化工具
"""


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}{'' if value == 1 else 's'}"


def format_duration(seconds: float) -> str:
    """将秒数格式化为 "2 hours, 5 minutes, 1 second"

    小时为 0 时省略小时；小时和分钟都为 0 时只输出秒。
    """
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)

    parts: list[str] = []
    if hours > 0:
        parts.append(_plural(hours, "hour"))
    if minutes > 0 or hours > 0:
        parts.append(_plural(minutes, "minute"))
    parts.append(_plural(secs, "second"))
    return ", ".join(parts)


def remaining_until(blocked_until: float, now: float) -> str | None:
    """距离 blocked_until 的剩余时间，已过期返回 None"""
    remaining = blocked_until - now
    if remaining <= 0:
        return None
    return format_duration(remaining)
