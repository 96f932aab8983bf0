#!/usr/bin/env python3
"""
每日签到与任务
"""

import asyncio

import httpx

from accounts import Account
from executor import ActionExecutor
from major_api import MajorApi, MajorApiError, RateLimitedError, TransientServerError, UnauthorizedError


class DailyActions:
	"""签到 / 完成任务（均通过 ActionExecutor 执行）"""

	def __init__(self, api: MajorApi, executor: ActionExecutor, *, task_delay: float = 3, sleep=asyncio.sleep):
		self.api = api
		self.executor = executor
		self.task_delay = task_delay
		self.sleep = sleep

	async def _check_in(self, account: Account) -> None:
		result = self.api.check_in(account.access_token)
		if result.get('is_allowed') and result.get('is_increased'):
			print(f'✅ Check-In performed successfully for {account.display_name}.')
		else:
			print(f'⚠️ Check-in has already been made today for {account.display_name}.')

	async def check_in(self, account: Account) -> bool:
		print(f'⚙️ Performing Check-In for {account.display_name}')
		return await self.executor.execute(account, self._check_in)

	async def _complete_one(self, account: Account, task: dict) -> None:
		task_id = task.get('id')
		title = task.get('title', '')
		print(f'🔄 Completing Task {task_id} - {title} for {account.display_name}...')
		await self.sleep(self.task_delay)
		try:
			result = self.api.complete_task(account.access_token, task_id)
		except (UnauthorizedError, TransientServerError):
			raise
		except RateLimitedError as e:
			print(f'⚠️ Task {task_id} - {title} is not available yet for {account.display_name}: {e.describe()}')
			return
		except MajorApiError as e:
			if e.status_code == 400:
				print(
					f"⚠️ The task {task_id} - {title} can't be completed for {account.display_name}, "
					'please complete it manually'
				)
			else:
				print(f'❌ Error completing Task {task_id} for {account.display_name}: {e.describe()}')
			return
		except httpx.HTTPError as e:
			print(f'❌ Error completing Task {task_id} for {account.display_name}: {e}')
			return

		if result.get('is_completed'):
			print(f'✅ Task {task_id} - {title} Completed for {account.display_name}.')
		else:
			print(f'⚠️ Task {task_id} - {title} was not marked completed for {account.display_name}.')

	async def _complete_tasks(self, account: Account) -> None:
		seen: set = set()
		for is_daily in (True, False):
			for task in self.api.list_tasks(account.access_token, is_daily=is_daily):
				task_id = task.get('id')
				if task_id in seen:
					continue
				seen.add(task_id)
				if task.get('is_completed'):
					print(f"🔄 Task {task_id} - {task.get('title', '')} is already completed for {account.display_name}.")
					continue
				await self._complete_one(account, task)

		user_info = self.api.get_user_info(account.access_token, account.user_id)
		account.rating = int(user_info.get('rating') or 0)
		print(f'✅ {account.display_name}: Your points are now {account.rating}')

	async def complete_tasks(self, account: Account) -> bool:
		print(f'\n📝 Completing Tasks for {account.display_name}')
		return await self.executor.execute(account, self._complete_tasks)

	async def check_in_all(self, accounts: list[Account], *, account_delay: float = 1) -> None:
		for account in accounts:
			try:
				await self.check_in(account)
			except Exception as e:
				print(f'❌ An error occurred during Check-In for {account.display_name}: {e}')
			await self.sleep(account_delay)

	async def complete_tasks_all(self, accounts: list[Account], *, account_delay: float = 1) -> None:
		for account in accounts:
			try:
				await self.complete_tasks(account)
			except Exception as e:
				print(f'❌ Error completing tasks for {account.display_name}: {e}')
			await self.sleep(account_delay)
