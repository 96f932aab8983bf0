#!/usr/bin/env python3
"""
自动模式调度：签到 → 各游戏 × 各账号 → 计算下一轮开始时间 → 休眠
"""

import asyncio
import time
from datetime import datetime

from accounts import Account
from daily import DailyActions
from games import AUTO_GAMES, GamePlayer, GameSpec
from utils.config import AppConfig
from utils.timefmt import format_duration

BLOCKED_GRACE_SECONDS = 2 * 60 * 60
DEFAULT_CYCLE_SECONDS = 3 * 60 * 60
MIN_WAIT_SECONDS = 60


def compute_next_cycle(
	blocked_until: list[float],
	now: float,
	*,
	default_interval: float = DEFAULT_CYCLE_SECONDS,
	grace: float = BLOCKED_GRACE_SECONDS,
	floor: float = MIN_WAIT_SECONDS,
) -> float:
	"""返回下一轮开始的 Unix 时间

	有 blocked_until 时取最大值 + grace，否则 now + default_interval；
	结果至少为 now + floor，避免时钟偏差导致 0 或负数等待。
	"""
	if blocked_until:
		next_start = max(blocked_until) + grace
	else:
		next_start = now + default_interval
	return max(next_start, now + floor)


class CycleScheduler:
	"""自动模式主循环（无终止状态，只能由外部结束进程）"""

	def __init__(
		self,
		accounts: list[Account],
		daily: DailyActions,
		player: GamePlayer,
		config: AppConfig,
		*,
		games: tuple[GameSpec, ...] = AUTO_GAMES,
		sleep=asyncio.sleep,
		clock=time.time,
	):
		self.accounts = accounts
		self.daily = daily
		self.player = player
		self.config = config
		self.games = games
		self.sleep = sleep
		self.clock = clock
		self.last_checkin_at: float | None = None
		self.cycle_count = 0

	def checkin_due(self, now: float) -> bool:
		if self.last_checkin_at is None:
			return True
		return now - self.last_checkin_at >= self.config.checkin_interval_seconds

	async def run_cycle(self) -> float:
		"""执行一轮，返回下一轮开始时间"""
		self.cycle_count += 1
		print(f'🔄 Starting cycle {self.cycle_count} for all accounts')

		now = self.clock()
		if self.checkin_due(now):
			await self.daily.check_in_all(self.accounts, account_delay=self.config.account_delay_seconds)
			self.last_checkin_at = now

		print(f'⏳ Wait {self.config.phase_delay_seconds:g} seconds to play games for all accounts...\n')
		await self.sleep(self.config.phase_delay_seconds)

		all_blocked_until: list[float] = []
		for game in self.games:
			blocked = await self.player.play_for_all(
				self.accounts, game, account_delay=self.config.account_delay_seconds
			)
			all_blocked_until.extend(blocked)
			print(f'⏳ Wait {self.config.phase_delay_seconds:g} seconds before next game for all accounts...\n')
			await self.sleep(self.config.phase_delay_seconds)

		return compute_next_cycle(
			all_blocked_until,
			self.clock(),
			default_interval=self.config.cycle_interval_seconds,
			grace=self.config.blocked_grace_seconds,
			floor=self.config.min_wait_seconds,
		)

	async def run_forever(self) -> None:
		while True:
			next_start = await self.run_cycle()
			wait = max(next_start - self.clock(), self.config.min_wait_seconds)
			print('✅ Cycle completed for all accounts.')
			print(
				f'⏳ Waiting {format_duration(wait)} before next cycle '
				f'(at {datetime.fromtimestamp(next_start).strftime("%Y-%m-%d %H:%M:%S")})...\n'
			)
			await self.sleep(wait)
