import asyncio

import httpx
import pytest

from accounts import Account
from executor import ActionExecutor
from major_api import MajorApiError, TransientServerError, UnauthorizedError


class ScriptedAction:
	"""按顺序抛出预设异常，用完后成功"""

	def __init__(self, *errors):
		self.errors = list(errors)
		self.tokens_seen: list[str] = []

	async def __call__(self, account: Account) -> None:
		self.tokens_seen.append(account.access_token)
		if self.errors:
			raise self.errors.pop(0)

	@property
	def calls(self) -> int:
		return len(self.tokens_seen)


def _executor(fake_major, token_store, sleeper) -> ActionExecutor:
	return ActionExecutor(fake_major.api(), token_store, sleep=sleeper)


def test_success_without_retry(fake_major, token_store, sleeper, account):
	action = ScriptedAction()

	assert asyncio.run(_executor(fake_major, token_store, sleeper).execute(account, action)) is True
	assert action.calls == 1
	assert sleeper.calls == []


def test_unauthorized_refreshes_and_persists_at_own_index(fake_major, token_store, sleeper):
	fake_major.add('POST', '/auth/tg/', (200, {'access_token': 'new-token', 'user': {'id': 77}}))
	token_store.save_all(['t1', 't2', 't3'])
	account = Account(id=2, init_data='query_id=b&hash=2', access_token='t2', user_id='7', username='bob')
	action = ScriptedAction(UnauthorizedError('expired', status_code=401))

	ok = asyncio.run(_executor(fake_major, token_store, sleeper).execute(account, action))

	assert ok is True
	assert action.tokens_seen == ['t2', 'new-token']
	assert account.access_token == 'new-token'
	assert account.user_id == '77'
	assert token_store.load() == ['t1', 'new-token', 't3']


def test_second_unauthorized_propagates_after_single_refresh(fake_major, token_store, sleeper, account):
	fake_major.add('POST', '/auth/tg/', (200, {'access_token': 'new-token', 'user': {'id': 1}}))
	token_store.save_all(['old-token'])
	action = ScriptedAction(
		UnauthorizedError('expired', status_code=401),
		UnauthorizedError('still expired', status_code=401),
	)

	with pytest.raises(UnauthorizedError):
		asyncio.run(_executor(fake_major, token_store, sleeper).execute(account, action))

	assert action.calls == 2
	assert len(fake_major.calls('POST', '/auth/tg/')) == 1


def test_three_transient_failures_give_up(fake_major, token_store, sleeper, account):
	action = ScriptedAction(*[TransientServerError('boom', status_code=500) for _ in range(3)])

	ok = asyncio.run(_executor(fake_major, token_store, sleeper).execute(account, action))

	assert ok is False
	assert action.calls == 3
	assert sleeper.calls == [5, 10]


def test_transient_then_success_stops_retrying(fake_major, token_store, sleeper, account):
	action = ScriptedAction(TransientServerError('bad gateway', status_code=502))

	ok = asyncio.run(_executor(fake_major, token_store, sleeper).execute(account, action))

	assert ok is True
	assert action.calls == 2
	assert sleeper.calls == [5]


def test_other_api_errors_propagate(fake_major, token_store, sleeper, account):
	action = ScriptedAction(MajorApiError('forbidden', status_code=403, body={'detail': 'no'}))

	with pytest.raises(MajorApiError):
		asyncio.run(_executor(fake_major, token_store, sleeper).execute(account, action))

	assert action.calls == 1
	assert sleeper.calls == []


def test_refresh_token_does_not_mutate_account(fake_major, token_store, sleeper, account):
	fake_major.add('POST', '/auth/tg/', (200, {'access_token': 'new-token', 'user': {'id': 1}}))

	update = _executor(fake_major, token_store, sleeper).refresh_token(account)

	assert update.access_token == 'new-token'
	assert account.access_token == 'old-token'


def test_transient_error_during_refresh_is_retried_with_backoff(fake_major, token_store, sleeper, account):
	fake_major.add(
		'POST', '/auth/tg/',
		(502, {'detail': 'bad gateway'}),
		(200, {'access_token': 'new-token', 'user': {'id': 1}}),
	)
	token_store.save_all(['old-token'])
	action = ScriptedAction(UnauthorizedError('expired', status_code=401))

	ok = asyncio.run(_executor(fake_major, token_store, sleeper).execute(account, action))

	assert ok is True
	assert sleeper.calls == [5]
	assert action.tokens_seen == ['old-token', 'new-token']
	assert len(fake_major.calls('POST', '/auth/tg/')) == 2
	assert token_store.load() == ['new-token']


def test_refresh_keeps_failing_with_server_errors_gives_up(fake_major, token_store, sleeper, account):
	fake_major.add('POST', '/auth/tg/', (500, {'detail': 'down'}))
	token_store.save_all(['old-token'])
	action = ScriptedAction(UnauthorizedError('expired', status_code=401))

	ok = asyncio.run(_executor(fake_major, token_store, sleeper).execute(account, action))

	assert ok is False
	assert action.calls == 1
	assert sleeper.calls == [5, 10]
	assert len(fake_major.calls('POST', '/auth/tg/')) == 3
	assert account.access_token == 'old-token'
	assert token_store.load() == ['old-token']


def test_network_errors_are_logged_and_propagate(fake_major, token_store, sleeper, account, capsys):
	action = ScriptedAction(httpx.ConnectError('connection refused'))

	with pytest.raises(httpx.ConnectError):
		asyncio.run(_executor(fake_major, token_store, sleeper).execute(account, action))

	out = capsys.readouterr().out
	assert 'alice: Network error - ConnectError: connection refused' in out
	assert action.calls == 1
	assert sleeper.calls == []
