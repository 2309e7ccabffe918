import pytest

from chat_relay.domain.errors import PersistenceError, PersistenceUnavailable
from chat_relay.services.conversation_resolver import (ResolutionOutcome,
                                                       resolve_conversation)
from tests.fakes import FlakyRepo


@pytest.mark.asyncio
async def test_no_id_creates_fresh_conversation(repo):
    res = await resolve_conversation(repo, user_id='u1')

    assert res.outcome == ResolutionOutcome.CREATED
    conv = await repo.get_conversation(res.conversation_id)
    assert conv is not None
    assert conv.user_id == 'u1'
    assert conv.status == 'active'


@pytest.mark.asyncio
async def test_known_id_is_reused_without_writes(repo):
    existing = await repo.create_conversation(user_id='u1')
    repo.create_calls.clear()

    res = await resolve_conversation(repo, user_id='u1', conversation_id=existing.id)

    assert res.outcome == ResolutionOutcome.REUSED
    assert res.conversation_id == existing.id
    assert repo.create_calls == []


@pytest.mark.asyncio
async def test_unknown_id_is_persisted_as_given(repo):
    res = await resolve_conversation(repo, user_id='u1', conversation_id='client-abc')

    assert res.outcome == ResolutionOutcome.CLIENT_ID
    assert res.conversation_id == 'client-abc'
    assert (await repo.get_conversation('client-abc')) is not None
    assert repo.create_calls == ['client-abc']


@pytest.mark.asyncio
async def test_rejected_client_id_falls_back_to_fresh_id():
    repo = FlakyRepo(reject_client_ids=True)

    res = await resolve_conversation(repo, user_id='u1', conversation_id='client-abc')

    assert res.outcome == ResolutionOutcome.FALLBACK
    assert res.conversation_id != 'client-abc'
    assert res.requested_id == 'client-abc'
    assert (await repo.get_conversation(res.conversation_id)) is not None
    assert repo.create_calls == ['client-abc', None]
    assert repo.conversation_count == 1


@pytest.mark.asyncio
async def test_transport_failure_on_client_id_is_not_swallowed():
    repo = FlakyRepo(unavailable_on_client_id=True)

    with pytest.raises(PersistenceUnavailable):
        await resolve_conversation(repo, user_id='u1', conversation_id='client-abc')

    assert repo.create_calls == ['client-abc']


@pytest.mark.asyncio
async def test_failure_of_final_fallback_write_propagates():
    repo = FlakyRepo(reject_client_ids=True, fail_fresh_create=True)

    with pytest.raises(PersistenceError):
        await resolve_conversation(repo, user_id='u1', conversation_id='client-abc')


@pytest.mark.asyncio
async def test_failure_creating_new_conversation_propagates():
    repo = FlakyRepo(fail_fresh_create=True)

    with pytest.raises(PersistenceError):
        await resolve_conversation(repo, user_id='u1')


class CanonicalIdRepo(FlakyRepo):
    """Stores ids lowercased, the way a UUID column normalises them."""

    async def create_conversation(self, *, user_id, status='active', conversation_id=None):
        if conversation_id is not None:
            conversation_id = conversation_id.lower()
        return await super().create_conversation(
            user_id=user_id, status=status, conversation_id=conversation_id
        )

    async def get_conversation(self, conversation_id):
        return await super().get_conversation(conversation_id.lower())


@pytest.mark.asyncio
async def test_reused_id_is_returned_as_the_client_sent_it():
    repo = CanonicalIdRepo()
    await repo.create_conversation(user_id='u1', conversation_id='8F14E45F-CEEA-467F-A0E6-1B0C3B7F2A10')

    res = await resolve_conversation(
        repo, user_id='u1', conversation_id='8F14E45F-CEEA-467F-A0E6-1B0C3B7F2A10'
    )

    assert res.outcome == ResolutionOutcome.REUSED
    assert res.conversation_id == '8F14E45F-CEEA-467F-A0E6-1B0C3B7F2A10'


@pytest.mark.asyncio
async def test_persisted_client_id_is_returned_as_the_client_sent_it():
    repo = CanonicalIdRepo()

    res = await resolve_conversation(
        repo, user_id='u1', conversation_id='8F14E45F-CEEA-467F-A0E6-1B0C3B7F2A10'
    )

    assert res.outcome == ResolutionOutcome.CLIENT_ID
    assert res.conversation_id == '8F14E45F-CEEA-467F-A0E6-1B0C3B7F2A10'
    assert repo.create_calls == ['8f14e45f-ceea-467f-a0e6-1b0c3b7f2a10']
