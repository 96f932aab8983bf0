#!/usr/bin/env python3
"""
Major 多账号脚本（交互菜单入口）
"""

import asyncio
import sys
from dataclasses import dataclass
from datetime import datetime

from dotenv import load_dotenv

from accounts import Account, initialize_accounts, load_account_store
from daily import DailyActions
from executor import ActionExecutor
from games import ALL_GAMES, DUROV, DurovChoices, GamePlayer
from major_api import MajorApi
from utils.config import AppConfig
from utils.token_store import TokenStore

load_dotenv(override=True)

MENU_OPTIONS = ['📝 Make Check In', '🎮 Play Games', '📝 Complete Tasks', '❌ Exit']
DUROV_ACCOUNT_DELAY = 2


@dataclass
class Runtime:
	api: MajorApi
	accounts: list[Account]
	daily: DailyActions
	player: GamePlayer


def _ask_int(prompt: str) -> int:
	while True:
		raw = input(prompt).strip()
		try:
			return int(raw)
		except ValueError:
			print('⛔️ Invalid number, please try again.')


def prompt_durov_choices() -> list[int]:
	print('👉 Please enter your choices for Durov Game.')
	return [_ask_int(f'{i}️⃣  Enter choice {i}: ') for i in range(1, 5)]


async def build_runtime(config: AppConfig, *, durov_prompt=None) -> Runtime | None:
	"""读取账号、生成 token 并组装各组件；没有可用账号时返回 None"""
	init_data_list = load_account_store(config)
	if init_data_list is None:
		return None
	if not init_data_list:
		print('❌ No accounts configured. Add init data strings to the accounts file or MAJOR_ACCOUNTS')
		return None

	print(f'✅ Loaded {len(init_data_list)} account(s)')
	if config.proxy:
		print('⚙️ 已加载全局代理配置')

	api = MajorApi(config.base_url, proxy_config=config.proxy)
	token_store = TokenStore(config.tokens_file)
	accounts = await initialize_accounts(api, init_data_list, token_store, init_delay=config.init_delay_seconds)
	if not accounts:
		print('❌ No accounts initialized. Exiting...')
		api.close()
		return None

	executor = ActionExecutor(api, token_store)
	daily = DailyActions(api, executor)
	durov_choices = DurovChoices(durov_prompt) if durov_prompt else None
	player = GamePlayer(api, executor, durov_choices=durov_choices)
	return Runtime(api=api, accounts=accounts, daily=daily, player=player)


async def games_menu(runtime: Runtime, config: AppConfig) -> None:
	options = [f'🎲 {game.name}' for game in ALL_GAMES] + ['🕹️ All Games', '🔙 Back to Main Menu']
	while True:
		print('\nSelect a game to play:')
		for i, option in enumerate(options, start=1):
			print(f'{i}. {option}')
		choice = _ask_int('\nEnter the number of your choice: ')

		if 1 <= choice <= len(ALL_GAMES):
			games = [ALL_GAMES[choice - 1]]
		elif choice == len(ALL_GAMES) + 1:
			games = list(ALL_GAMES)
		elif choice == len(ALL_GAMES) + 2:
			return
		else:
			print('⛔️ Invalid option. Please enter a valid number.')
			continue

		for game in games:
			delay = DUROV_ACCOUNT_DELAY if game.key == DUROV.key else config.account_delay_seconds
			await runtime.player.play_for_all(runtime.accounts, game, account_delay=delay)


async def main() -> int:
	print('👋 Hello! Welcome to the Major Client Bot')
	print(f'🕒 执行时间: {datetime.now().strftime("%Y-%m-%d %H:%M:%S")}')
	print("⏳ We're fetching your data... Please wait\n")

	config = AppConfig.load_from_env()
	runtime = await build_runtime(config, durov_prompt=prompt_durov_choices)
	if runtime is None:
		return 1

	try:
		while True:
			print('\nSelect an action:')
			for i, option in enumerate(MENU_OPTIONS, start=1):
				print(f'{i}. {option}')
			choice = _ask_int('\nEnter the number of your choice: ')

			if choice == 1:
				await runtime.daily.check_in_all(runtime.accounts, account_delay=config.account_delay_seconds)
			elif choice == 2:
				await games_menu(runtime, config)
			elif choice == 3:
				await runtime.daily.complete_tasks_all(runtime.accounts, account_delay=config.account_delay_seconds)
			elif choice == 4:
				print('👋 Exiting the application...')
				return 0
			else:
				print('⛔️ Invalid option. Please enter a valid number.')
	finally:
		runtime.api.close()


def run_main():
	try:
		sys.exit(asyncio.run(main()))
	except (KeyboardInterrupt, EOFError):
		print('\n⚠️ 用户中断')
		sys.exit(1)
	except Exception as e:
		print(f'\n❌ 程序异常: {e}')
		sys.exit(1)


if __name__ == '__main__':
	run_main()
