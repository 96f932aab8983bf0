#!/usr/bin/env python3
"""
小游戏：Hold The Coin / Roulette / Swipe Coin / Durov

每次游玩流程：
1. 查询是否可玩（不可玩时记录 blocked_until，供调度器计算下一轮时间）
2. 等待平台冷却（wait_before + wait_to_claim）
3. 生成奖励参数并提交
4. 成功后重新拉取用户信息，更新 rating
"""

import asyncio
import random
import time
from dataclasses import dataclass
from typing import Callable

from accounts import Account
from executor import ActionExecutor
from major_api import MajorApi, RateLimitedError
from utils.timefmt import remaining_until

ROULETTE_CHOICES: tuple[tuple[int, int], ...] = (
	(500, 1),
	(1000, 2),
	(2000, 3),
	(3000, 4),
	(5000, 5),
	(10000, 6),
)

DUROV_CHOICE_COUNT = 4


@dataclass(frozen=True)
class GameSpec:
	key: str
	name: str
	path: str
	wait_before: float
	wait_to_claim: float
	# coins 类游戏的闭区间
	coin_range: tuple[int, int] | None = None


HOLD_THE_COIN = GameSpec('hold_coin', 'Hold The Coin', '/bonuses/coins/', 5, 60, coin_range=(400, 950))
ROULETTE = GameSpec('roulette', 'Roulette', '/roulette/', 5, 10)
SWIPE_COIN = GameSpec('swipe_coin', 'Swipe Coin', '/swipe_coin/', 5, 60, coin_range=(250, 600))
DUROV = GameSpec('durov', 'Durov Game', '/durov/', 0, 5)

# 自动模式不包含需要人工输入的 Durov
AUTO_GAMES = (HOLD_THE_COIN, ROULETTE, SWIPE_COIN)
ALL_GAMES = (HOLD_THE_COIN, ROULETTE, SWIPE_COIN, DUROV)


def roll_coins(game: GameSpec, rng=random) -> int:
	if game.coin_range is None:
		raise ValueError(f'{game.name} is not a coin game')
	low, high = game.coin_range
	return rng.randint(low, high)


def pick_roulette(rng=random) -> tuple[int, int]:
	return rng.choice(ROULETTE_CHOICES)


class DurovChoices:
	"""Durov 的 4 个选择：连续成功时复用，一次失败后下次必须重新输入"""

	def __init__(self, prompt: Callable[[], list[int]]):
		self._prompt = prompt
		self._choices: list[int] | None = None

	@property
	def current(self) -> list[int] | None:
		return self._choices

	def get(self) -> list[int]:
		if self._choices is None:
			choices = [int(c) for c in self._prompt()]
			if len(choices) != DUROV_CHOICE_COUNT:
				raise ValueError(f'Durov Game needs exactly {DUROV_CHOICE_COUNT} choices, got {len(choices)}')
			self._choices = choices
		return self._choices

	def invalidate(self) -> None:
		self._choices = None


def _no_durov_prompt() -> list[int]:
	raise RuntimeError('Durov Game requires interactive choices')


class GamePlayer:
	"""按账号执行单个游戏（由 ActionExecutor 包裹）"""

	def __init__(
		self,
		api: MajorApi,
		executor: ActionExecutor,
		*,
		durov_choices: DurovChoices | None = None,
		sleep=asyncio.sleep,
		clock=time.time,
		rng=random,
	):
		self.api = api
		self.executor = executor
		self.durov_choices = durov_choices or DurovChoices(_no_durov_prompt)
		self.sleep = sleep
		self.clock = clock
		self.rng = rng

	def build_payload(self, game: GameSpec) -> dict:
		if game.key == ROULETTE.key:
			rating_award, result = pick_roulette(self.rng)
			return {'rating_award': rating_award, 'result': result}
		if game.key == DUROV.key:
			choices = self.durov_choices.get()
			return {f'choice_{i + 1}': choice for i, choice in enumerate(choices)}
		return {'coins': roll_coins(game, self.rng)}

	@staticmethod
	def is_success(game: GameSpec, result: dict) -> bool:
		if game.key == DUROV.key:
			correct = result.get('correct')
			return isinstance(correct, list) and len(correct) == DUROV_CHOICE_COUNT
		if game.key == ROULETTE.key:
			# roulette 接口成功时返回奖励信息，不一定带 success 字段
			return result.get('success', True) is not False
		return bool(result.get('success'))

	async def play(self, account: Account, game: GameSpec, blocked_until: list[float] | None = None) -> bool:
		"""游玩一次；blocked_until 用于收集本轮的解封时间"""
		if blocked_until is None:
			blocked_until = []

		async def attempt(acc: Account) -> None:
			await self._attempt(acc, game, blocked_until)

		return await self.executor.execute(account, attempt)

	def _report_blocked(self, account: Account, game: GameSpec, until: float | None, blocked_until: list[float]) -> None:
		if until is not None:
			blocked_until.append(until)
			remaining = remaining_until(until, self.clock())
			if remaining:
				print(f"⚠️ {account.display_name} can't play {game.name} now. Please try again in {remaining}.")
				return
		print(f"⚠️ {account.display_name} can't play {game.name} now. Please try again later.")

	async def _attempt(self, account: Account, game: GameSpec, blocked_until: list[float]) -> None:
		try:
			status = self.api.can_play(account.access_token, game.path)
		except RateLimitedError as e:
			self._report_blocked(account, game, e.blocked_until, blocked_until)
			return

		if not status.get('success'):
			until = status.get('blocked_until')
			self._report_blocked(account, game, float(until) if until is not None else None, blocked_until)
			return

		# Durov 先确定选择再进入等待
		payload = self.build_payload(game) if game.key == DUROV.key else None

		if game.wait_before:
			print(f'🔄 Waiting {game.wait_before:g} seconds before playing {game.name}...')
			await self.sleep(game.wait_before)
		print(f'🎮 Playing {game.name} for {account.display_name}. Wait {game.wait_to_claim:g} seconds to claim points...')
		await self.sleep(game.wait_to_claim)

		if payload is None:
			payload = self.build_payload(game)

		try:
			result = self.api.play(account.access_token, game.path, payload)
		except RateLimitedError as e:
			if game.key == DUROV.key:
				self.durov_choices.invalidate()
			self._report_blocked(account, game, e.blocked_until, blocked_until)
			return

		if not self.is_success(game, result):
			if game.key == DUROV.key:
				self.durov_choices.invalidate()
				print(f'❌ Durov Game failed for {account.display_name}. Incorrect choices.')
				return
			detail = result.get('detail')
			until = detail.get('blocked_until') if isinstance(detail, dict) else None
			if until is not None:
				self._report_blocked(account, game, float(until), blocked_until)
			else:
				print(f'❌ Failed to play {game.name} for {account.display_name}.')
			return

		user_info = self.api.get_user_info(account.access_token, account.user_id)
		account.rating = int(user_info.get('rating') or 0)
		print(f'✅ {game.name} played successfully for {account.display_name}. Your points are now {account.rating}')

	async def play_for_all(self, accounts: list[Account], game: GameSpec, *, account_delay: float = 1) -> list[float]:
		"""所有账号依次游玩，单个账号出错不影响后续账号"""
		blocked_until: list[float] = []
		for account in accounts:
			print(f'\n⏳ Playing {game.name} for {account.display_name}')
			try:
				await self.play(account, game, blocked_until)
			except Exception as e:
				print(f'❌ An error occurred while {account.display_name} was playing {game.name}: {e}')
			await self.sleep(account_delay)
		return blocked_until
