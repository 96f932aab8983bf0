#!/usr/bin/env python3
"""
major.bot API 客户端（每个方法对应一次请求/响应，不含业务逻辑）
"""

import json
import os
from datetime import datetime

import httpx

from utils.config import DEFAULT_BASE_URL

# 服务端偶发错误，允许退避重试
TRANSIENT_STATUS_CODES = {500, 502}


class MajorApiError(Exception):
	"""非 2xx 响应或无法解析的响应"""

	def __init__(self, message: str, *, status_code: int | None = None, body=None):
		super().__init__(message)
		self.status_code = status_code
		self.body = body

	@property
	def detail(self):
		if isinstance(self.body, dict):
			return self.body.get('detail')
		return None

	def describe(self) -> str:
		body = self.body
		if isinstance(body, (dict, list)):
			body = json.dumps(body, ensure_ascii=False)
		return f'{self} (status={self.status_code}, body={body})'


class UnauthorizedError(MajorApiError):
	"""401：token 过期或无效"""


class TransientServerError(MajorApiError):
	"""500/502：可重试的服务端错误"""


class RateLimitedError(MajorApiError):
	"""操作暂不可用，detail.blocked_until 给出解封时间（Unix 秒）"""

	def __init__(self, message: str, *, blocked_until: float, status_code: int | None = None, body=None):
		super().__init__(message, status_code=status_code, body=body)
		self.blocked_until = blocked_until


class MajorApi:
	"""major.bot 远端接口"""

	def __init__(
		self,
		base_url: str = DEFAULT_BASE_URL,
		*,
		proxy_config: dict | None = None,
		timeout: float = 30.0,
		transport: httpx.BaseTransport | None = None,
	):
		self.base_url = base_url.rstrip('/')
		self.http_proxy_config = self._get_http_proxy(proxy_config)
		self.client = self._new_httpx_client(timeout=timeout, transport=transport)

	def _new_httpx_client(self, *, timeout: float, transport: httpx.BaseTransport | None) -> httpx.Client:
		kwargs: dict = {
			'timeout': timeout,
			'headers': {
				'accept': 'application/json, text/plain, */*',
				'accept-language': 'en-US,en;q=0.9',
				'origin': 'https://major.bot',
				'referer': 'https://major.bot/',
				'user-agent': 'Mozilla/5.0 (Linux; Android 13; Pixel 7) AppleWebKit/537.36 '
				'(KHTML, like Gecko) Chrome/131.0.0.0 Mobile Safari/537.36',
			},
		}
		if transport is not None:
			kwargs['transport'] = transport
		elif self.http_proxy_config is not None:
			kwargs['proxy'] = self.http_proxy_config
		return httpx.Client(**kwargs)

	@staticmethod
	def _get_http_proxy(proxy_config: dict | None = None) -> httpx.URL | None:
		if not proxy_config:
			return None
		proxy_url = proxy_config.get('server')
		if not proxy_url:
			return None
		username = proxy_config.get('username')
		password = proxy_config.get('password')
		if username and password:
			parsed = httpx.URL(proxy_url)
			return parsed.copy_with(username=username, password=password)
		return httpx.URL(proxy_url)

	def close(self) -> None:
		self.client.close()

	# ── 响应处理 ──────────────────────────────────────────────

	@staticmethod
	def _save_invalid_response(response: httpx.Response, context: str) -> str | None:
		logs_dir = 'logs'
		try:
			os.makedirs(logs_dir, exist_ok=True)
			timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
			safe_context = ''.join(c if c.isalnum() else '_' for c in context)
			content_type = response.headers.get('content-type', '').lower()
			suffix = 'html' if 'text/html' in content_type else 'txt'
			filepath = os.path.join(logs_dir, f'major_{timestamp}_{safe_context}_invalid.{suffix}')
			with open(filepath, 'w', encoding='utf-8') as f:
				f.write(response.text)
			return filepath
		except OSError:
			return None

	def _check_and_handle_response(self, response: httpx.Response, context: str):
		status = response.status_code
		try:
			data = response.json() if response.content else None
		except json.JSONDecodeError:
			data = None
			if status < 400:
				filepath = self._save_invalid_response(response, context)
				where = f', saved to {filepath}' if filepath else ''
				raise MajorApiError(
					f'{context}: invalid JSON response{where}', status_code=status, body=response.text[:500]
				)

		if status < 400:
			return data

		body = data if data is not None else response.text[:500]
		if status == 401:
			raise UnauthorizedError(f'{context}: unauthorized', status_code=status, body=body)
		if status in TRANSIENT_STATUS_CODES:
			raise TransientServerError(f'{context}: server error {status}', status_code=status, body=body)

		detail = data.get('detail') if isinstance(data, dict) else None
		if isinstance(detail, dict) and detail.get('blocked_until') is not None:
			try:
				blocked_until = float(detail['blocked_until'])
			except (TypeError, ValueError):
				blocked_until = None
			if blocked_until is not None:
				raise RateLimitedError(
					f'{context}: blocked', blocked_until=blocked_until, status_code=status, body=body
				)

		raise MajorApiError(f'{context}: HTTP {status}', status_code=status, body=body)

	def _request(self, method: str, path: str, context: str, *, token: str | None = None, **kwargs):
		headers = {}
		if token is not None:
			headers['authorization'] = f'Bearer {token}'
		resp = self.client.request(method, f'{self.base_url}{path}', headers=headers, **kwargs)
		return self._check_and_handle_response(resp, context)

	# ── 接口 ────────────────────────────────────────────────

	def authenticate(self, init_data: str) -> tuple[str, str]:
		"""POST /auth/tg/，返回 (access_token, user_id)"""
		data = self._request('POST', '/auth/tg/', 'authenticate', json={'init_data': init_data})
		if not isinstance(data, dict):
			raise MajorApiError('authenticate: invalid response format', body=data)
		user = data.get('user') or {}
		access_token = data.get('access_token')
		user_id = user.get('id') if isinstance(user, dict) else None
		if not access_token or user_id is None:
			raise MajorApiError('authenticate: missing access_token or user.id', body=data)
		return str(access_token), str(user_id)

	def get_user_info(self, token: str, user_id: str) -> dict:
		data = self._request('GET', f'/users/{user_id}/', 'get_user_info', token=token)
		if not isinstance(data, dict):
			raise MajorApiError('get_user_info: invalid response format', body=data)
		return data

	def check_in(self, token: str) -> dict:
		data = self._request('POST', '/user-visits/visit/', 'check_in', token=token, json={})
		return data if isinstance(data, dict) else {}

	def list_tasks(self, token: str, *, is_daily: bool = False) -> list[dict]:
		data = self._request(
			'GET', '/tasks/', 'list_tasks', token=token, params={'is_daily': 'true' if is_daily else 'false'}
		)
		if not isinstance(data, list):
			raise MajorApiError('list_tasks: invalid response format', body=data)
		return [task for task in data if isinstance(task, dict)]

	def complete_task(self, token: str, task_id: int) -> dict:
		data = self._request('POST', '/tasks/', 'complete_task', token=token, json={'task_id': task_id})
		return data if isinstance(data, dict) else {}

	def can_play(self, token: str, game_path: str) -> dict:
		"""GET 游戏接口，返回 {success, blocked_until?}"""
		data = self._request('GET', game_path, f'can_play {game_path}', token=token)
		return data if isinstance(data, dict) else {'success': bool(data)}

	def play(self, token: str, game_path: str, payload: dict) -> dict:
		data = self._request('POST', game_path, f'play {game_path}', token=token, json=payload)
		return data if isinstance(data, dict) else {'success': bool(data)}
