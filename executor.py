#!/usr/bin/env python3
"""
ActionExecutor：执行账号操作，401 时刷新 token 后重试一次，500/502 时指数退避重试
"""

import asyncio
from typing import Awaitable, Callable

import httpx

from accounts import Account, TokenUpdate
from major_api import MajorApi, MajorApiError, TransientServerError, UnauthorizedError
from utils.redact import redact_token_for_log
from utils.token_store import TokenStore

Action = Callable[[Account], Awaitable[None]]


class ActionExecutor:
	"""账号操作执行器"""

	def __init__(
		self,
		api: MajorApi,
		token_store: TokenStore,
		*,
		max_attempts: int = 3,
		base_delay: float = 5.0,
		sleep=asyncio.sleep,
	):
		self.api = api
		self.token_store = token_store
		self.max_attempts = max_attempts
		self.base_delay = base_delay
		self.sleep = sleep

	def refresh_token(self, account: Account) -> TokenUpdate:
		"""用账号的 init data 重新认证，只返回新凭据，不修改账号"""
		access_token, user_id = self.api.authenticate(account.init_data)
		return TokenUpdate(access_token=access_token, user_id=user_id)

	def _apply_refresh(self, account: Account) -> None:
		update = self.refresh_token(account)
		account.apply_token(update)
		self.token_store.update(account.index, update.access_token)
		print(
			f'🔑 {account.display_name}: New token generated '
			f'({redact_token_for_log(update.access_token)}), saved at index {account.index}'
		)

	async def execute(self, account: Account, action: Action) -> bool:
		"""执行 action

		401 时在下一次循环开头刷新 token，刷新请求本身遇到 500/502 也走同一套退避次数。

		Returns:
			bool: 成功返回 True；服务端错误重试耗尽返回 False。
			其余错误打印详情后继续抛出。
		"""
		refreshed = False
		needs_refresh = False
		attempt = 1
		while True:
			try:
				if needs_refresh:
					self._apply_refresh(account)
					needs_refresh = False
				await action(account)
				return True
			except UnauthorizedError:
				if refreshed:
					print(f'❌ {account.display_name}: Still unauthorized after refreshing the token')
					raise
				print(f'⏳ {account.display_name}: Token expired or invalid. Generating a new token...')
				refreshed = True
				needs_refresh = True
			except TransientServerError as e:
				if attempt >= self.max_attempts:
					print(
						f'❌ {account.display_name}: Server error persisted after {attempt} attempt(s), '
						f'giving up for now - {e.describe()}'
					)
					return False
				delay = self.base_delay * 2 ** (attempt - 1)
				print(
					f'⚠️ {account.display_name}: Server error {e.status_code} '
					f'(attempt {attempt}/{self.max_attempts}), retrying in {delay:g}s'
				)
				await self.sleep(delay)
				attempt += 1
			except MajorApiError as e:
				print(f'❌ {account.display_name}: Request failed - {e.describe()}')
				raise
			except httpx.HTTPError as e:
				print(f'❌ {account.display_name}: Network error - {type(e).__name__}: {e}')
				raise
