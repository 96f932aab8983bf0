#!/usr/bin/env python3
"""
账号模型与启动初始化
"""

import asyncio
import os
from dataclasses import dataclass

import httpx

from major_api import MajorApi, MajorApiError
from utils.config import AppConfig, parse_accounts
from utils.redact import redact_init_data_for_log
from utils.token_store import TokenStore


@dataclass(frozen=True)
class TokenUpdate:
	"""一次刷新得到的新凭据，由 ActionExecutor 应用到账号上"""

	access_token: str
	user_id: str


@dataclass
class Account:
	"""单个账号的运行期状态（只有 access_token 会被持久化）"""

	id: int
	init_data: str
	access_token: str = ''
	user_id: str = ''
	username: str = ''
	rating: int = 0

	@property
	def index(self) -> int:
		"""在账号列表 / token 文件中的下标"""
		return self.id - 1

	@property
	def display_name(self) -> str:
		return self.username or f'Account {self.id}'

	def apply_token(self, update: TokenUpdate) -> None:
		self.access_token = update.access_token
		self.user_id = update.user_id


def load_account_store(config: AppConfig) -> list[str] | None:
	"""读取账号列表：MAJOR_ACCOUNTS 优先，其次 accounts 文件"""
	if config.accounts_inline is not None:
		return config.accounts_inline

	if not os.path.exists(config.accounts_file):
		print(f'❌ Accounts file {config.accounts_file} not found and MAJOR_ACCOUNTS is not set')
		return None

	with open(config.accounts_file, 'r', encoding='utf-8') as f:
		raw = f.read()
	accounts = parse_accounts(raw)
	if accounts is None:
		print(f'❌ {config.accounts_file} must be a JSON array of init data strings')
		return None
	return accounts


async def initialize_accounts(
	api: MajorApi,
	init_data_list: list[str],
	token_store: TokenStore,
	*,
	init_delay: float = 2,
	sleep=asyncio.sleep,
) -> list[Account]:
	"""为每个账号生成新 token 并拉取用户信息，最后整体写入 token 文件

	初始化失败的账号不会出现在返回列表中，但在 token 文件里保留空字符串占位。
	"""
	accounts: list[Account] = []
	tokens: list[str] = []

	for i, init_data in enumerate(init_data_list):
		account_id = i + 1
		if not init_data:
			print(f'⚠️ | {account_id} | Empty init data, skipping')
			tokens.append('')
			continue

		await sleep(init_delay)
		try:
			access_token, user_id = api.authenticate(init_data)
			user_info = api.get_user_info(access_token, user_id)
		except (MajorApiError, httpx.HTTPError) as e:
			detail = e.describe() if isinstance(e, MajorApiError) else str(e)
			print(
				f'❌ | {account_id} | Failed to initialize account with init data '
				f'{redact_init_data_for_log(init_data)}: {detail}'
			)
			tokens.append('')
			continue

		tokens.append(access_token)
		account = Account(
			id=account_id,
			init_data=init_data,
			access_token=access_token,
			user_id=user_id,
			username=str(user_info.get('username') or ''),
			rating=int(user_info.get('rating') or 0),
		)
		accounts.append(account)
		print(f'✨ | {account_id} | NEW TOKEN GENERATED | {account.display_name} - {account.rating}')

	token_store.save_all(tokens)
	return accounts
