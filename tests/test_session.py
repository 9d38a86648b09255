import asyncio
from datetime import datetime

import pytest

from blueprint.credentials import CredentialSession
from blueprint.errors import AuthInvalid, GenerationFailed, GenerationInProgress, WorkbookNotReady
from blueprint.progress import ProgressState, ToggleItem
from blueprint.session import GENERATION_ERROR_MESSAGE, AppState, WorkbookSession


def _returning(document):
    async def generator(topic, credentials):
        return document

    return generator


def _raising(exc):
    async def generator(topic, credentials):
        raise exc

    return generator


@pytest.fixture
def credentials():
    return CredentialSession("test-key")


def test_start_without_key_requires_auth():
    session = WorkbookSession()
    assert session.start(CredentialSession()) is AppState.AUTH_REQUIRED
    assert session.credential_selected() is AppState.IDLE


def test_start_with_key_is_idle(credentials):
    assert WorkbookSession().start(credentials) is AppState.IDLE


def test_successful_generation_creates_fresh_progress(workbook, credentials):
    session = WorkbookSession()
    asyncio.run(session.generate("  Running 5k ", credentials, _returning(workbook)))
    assert session.state is AppState.VIEWING
    assert session.topic == "Running 5k"
    assert session.document is workbook
    assert session.progress.checked_items == {}
    assert session.progress.entries == {}


def test_auth_failure_returns_to_key_selection(credentials):
    session = WorkbookSession()
    with pytest.raises(AuthInvalid):
        asyncio.run(session.generate("Yoga", credentials, _raising(AuthInvalid("bad key"))))
    assert session.state is AppState.AUTH_REQUIRED
    assert session.document is None and session.progress is None


def test_generation_failure_sets_error(credentials):
    session = WorkbookSession()
    with pytest.raises(GenerationFailed):
        asyncio.run(session.generate("Yoga", credentials, _raising(GenerationFailed("quota"))))
    assert session.state is AppState.ERROR
    assert session.error == GENERATION_ERROR_MESSAGE


def test_unexpected_errors_are_reported_as_generation_failures(credentials):
    session = WorkbookSession()
    with pytest.raises(GenerationFailed):
        asyncio.run(session.generate("Yoga", credentials, _raising(RuntimeError("boom"))))
    assert session.state is AppState.ERROR


def test_failed_regeneration_keeps_previous_workbook(workbook, credentials):
    session = WorkbookSession()
    asyncio.run(session.generate("Running", credentials, _returning(workbook)))
    progress = session.apply(ToggleItem(item_id="objectives-0"))
    with pytest.raises(GenerationFailed):
        asyncio.run(session.generate("Yoga", credentials, _raising(GenerationFailed("down"))))
    assert session.document is workbook
    assert session.progress is progress


def test_cancelled_generation_restores_state(credentials):
    session = WorkbookSession()

    async def go():
        with pytest.raises(asyncio.CancelledError):
            await session.generate("Yoga", credentials, _raising(asyncio.CancelledError()))

    asyncio.run(go())
    assert session.state is AppState.IDLE
    assert session.progress is None


def test_second_request_while_generating_is_refused(workbook, credentials):
    session = WorkbookSession()

    async def go():
        release = asyncio.Event()

        async def slow(topic, creds):
            await release.wait()
            return workbook

        first = asyncio.create_task(session.generate("Running", credentials, slow))
        await asyncio.sleep(0)
        assert session.state is AppState.GENERATING
        with pytest.raises(GenerationInProgress):
            await session.generate("Yoga", credentials, _returning(workbook))
        release.set()
        await first

    asyncio.run(go())
    assert session.state is AppState.VIEWING
    assert session.topic == "Running"


def test_apply_requires_a_workbook():
    with pytest.raises(WorkbookNotReady):
        WorkbookSession().apply(ToggleItem(item_id="objectives-0"))


def test_reset_discards_document_and_progress(workbook, credentials):
    session = WorkbookSession()
    asyncio.run(session.generate("Running", credentials, _returning(workbook)))
    session.apply(ToggleItem(item_id="objectives-0"))
    assert session.reset() is AppState.IDLE
    assert session.document is None
    assert session.progress is None
    assert session.topic is None


def test_invalid_generator_output_is_a_generation_failure(credentials):
    session = WorkbookSession()
    with pytest.raises(GenerationFailed):
        asyncio.run(session.generate("Yoga", credentials, _raising(ValueError("missing DailyPages"))))
    assert session.state is AppState.ERROR
    assert session.error == GENERATION_ERROR_MESSAGE


def test_blank_topic_is_rejected_before_generating(workbook, credentials):
    session = WorkbookSession()
    with pytest.raises(ValueError):
        asyncio.run(session.generate("   ", credentials, _returning(workbook)))
    assert session.state is AppState.IDLE
    assert session.document is None


def test_transitions_update_last_activity(workbook, credentials):
    session = WorkbookSession.restore("s-1", "Running", workbook, ProgressState(), updated_at=datetime(2026, 1, 1))
    assert session.updated_at == datetime(2026, 1, 1)
    session.apply(ToggleItem(item_id="objectives-0"))
    assert session.updated_at > datetime(2026, 1, 1)
