#!/usr/bin/env python3
"""
access token 持久化（与账号列表按下标对齐的 JSON 数组）
"""

import json
import os


class TokenStore:
    """Token 文件读写

    文件内容为 JSON 数组，第 i 项对应账号列表中的第 i 个账号。
    初始化失败的账号写入空字符串占位，保证下标对齐。
    """

    def __init__(self, path: str):
        self.path = path

    def load(self) -> list[str]:
        if not os.path.exists(self.path):
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{self.path} must contain a JSON array")
        return [str(item) if item is not None else "" for item in data]

    def save_all(self, tokens: list[str]) -> None:
        """整体覆盖写入"""
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(list(tokens), f, indent=2)

    def update(self, index: int, token: str) -> None:
        """只替换 index 位置的 token，其余保持不变"""
        if index < 0:
            raise IndexError(f"token index must not be negative: {index}")
        tokens = self.load()
        if index >= len(tokens):
            tokens.extend([""] * (index + 1 - len(tokens)))
        tokens[index] = token
        self.save_all(tokens)
