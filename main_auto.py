#!/usr/bin/env python3
"""
Major 多账号脚本（自动模式入口，无限循环）
"""

import asyncio
import sys
from datetime import datetime

from dotenv import load_dotenv

from main import build_runtime
from scheduler import CycleScheduler
from utils.config import AppConfig

load_dotenv(override=True)


async def main() -> int:
	print('🚀 Major 自动模式启动')
	print(f'🕒 执行时间: {datetime.now().strftime("%Y-%m-%d %H:%M:%S")}')

	config = AppConfig.load_from_env()
	runtime = await build_runtime(config)
	if runtime is None:
		return 1

	print(
		f'⚙️ Check-in every {config.checkin_interval_hours:g}h, '
		f'default cycle interval {config.cycle_interval_hours:g}h\n'
	)
	scheduler = CycleScheduler(runtime.accounts, runtime.daily, runtime.player, config)
	try:
		await scheduler.run_forever()
	finally:
		runtime.api.close()
	return 0


def run_main():
	try:
		sys.exit(asyncio.run(main()))
	except KeyboardInterrupt:
		print('\n⚠️ 用户中断')
		sys.exit(1)
	except Exception as e:
		print(f'\n❌ 程序异常: {e}')
		sys.exit(1)


if __name__ == '__main__':
	run_main()
