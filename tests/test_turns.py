import pytest

from chat_relay.domain.errors import InvalidMessage
from chat_relay.domain.models import HistoryTurn
from chat_relay.domain.turns import build_model_request, cache_key_for, clean_message


def _history(n):
    return [
        HistoryTurn(role='user' if i % 2 == 0 else 'assistant', content=f'h{i}')
        for i in range(n)
    ]


@pytest.mark.parametrize('bad', ['', '   ', '\n\t', None, 123, ['hi']])
def test_clean_message_rejects_blank_or_non_text(bad):
    with pytest.raises(InvalidMessage):
        clean_message(bad)


def test_clean_message_trims():
    assert clean_message('  hello  ') == 'hello'


def test_cache_key_is_deterministic():
    h = _history(3)
    assert cache_key_for('hi', h) == cache_key_for('hi', _history(3))


def test_cache_key_depends_on_message_and_history_order():
    h = _history(2)
    base = cache_key_for('hi', h)
    assert cache_key_for('hello', h) != base
    assert cache_key_for('hi', list(reversed(h))) != base
    assert cache_key_for('hi', []) != base
    assert cache_key_for('hi', None) == cache_key_for('hi', [])


def test_request_layout_system_history_user():
    req = build_model_request('SYS', 'now', _history(2))
    assert req == [
        {'role': 'system', 'content': 'SYS'},
        {'role': 'user', 'content': 'h0'},
        {'role': 'assistant', 'content': 'h1'},
        {'role': 'user', 'content': 'now'},
    ]


def test_request_without_history():
    assert build_model_request('SYS', 'now') == [
        {'role': 'system', 'content': 'SYS'},
        {'role': 'user', 'content': 'now'},
    ]


def test_long_history_is_capped_at_300_entries_keeping_most_recent():
    req = build_model_request('SYS', 'now', _history(400))

    assert len(req) == 300
    assert req[0] == {'role': 'system', 'content': 'SYS'}
    assert req[-1] == {'role': 'user', 'content': 'now'}
    # 400 history + 1 user = 401 turns, 299 kept -> first kept is h102
    assert [m['content'] for m in req[1:-1]] == [f'h{i}' for i in range(102, 400)]


def test_history_just_over_the_cap_drops_only_the_oldest():
    req = build_model_request('SYS', 'now', _history(299))
    assert len(req) == 300
    assert req[1]['content'] == 'h1'


def test_history_at_the_cap_is_untouched():
    req = build_model_request('SYS', 'now', _history(298))
    assert len(req) == 300
    assert req[1]['content'] == 'h0'
