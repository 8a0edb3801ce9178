"""Tests for per-turn document grounding resolution."""

import pytest

from app.core.document_context import resolve_document_context
from tests.fakes.fake_chat import (
    OTHER_USER_ID,
    USER_ID,
    FakeChatStore,
    FakeExtractor,
    FakeGenerator,
    FakeStorage,
    make_deps,
)

DOC_TEXT = (
    "Cláusula primeira. Do objeto contratado e suas especificações. " * 20
    + "Cláusula segunda. O prazo de 30 dias para entrega do objeto. "
    + "Cláusula terceira. Das sanções administrativas aplicáveis. " * 20
)


@pytest.fixture
def store():
    return FakeChatStore()


@pytest.fixture
def conversation(store):
    return store.add_conversation()


class TestResolveDocumentContext:
    @pytest.mark.asyncio
    async def test_no_document_skips_grounding(self, store, conversation):
        deps = make_deps(store=store)

        ctx = await resolve_document_context(deps, conversation.id, USER_ID, "qual o prazo?")

        assert ctx.document is None
        assert ctx.chunks == []
        assert ctx.file_id is None
        assert not ctx.grounded
        assert "download" not in store.log

    @pytest.mark.asyncio
    async def test_text_path_selects_relevant_chunks(self, store, conversation):
        store.add_document(conversation.id)
        deps = make_deps(store=store, extractor=FakeExtractor(DOC_TEXT, log=store.log))

        ctx = await resolve_document_context(deps, conversation.id, USER_ID, "qual o prazo?")

        assert ctx.grounded
        assert ctx.file_id is None
        assert any("prazo de 30 dias" in c.text for c in ctx.chunks)
        assert "upload_file" not in store.log

    @pytest.mark.asyncio
    async def test_documents_are_scoped_to_caller(self, store, conversation):
        store.add_document(conversation.id, user_id=OTHER_USER_ID)
        deps = make_deps(store=store, extractor=FakeExtractor(DOC_TEXT, log=store.log))

        ctx = await resolve_document_context(deps, conversation.id, USER_ID, "prazo")

        assert ctx.document is None

    @pytest.mark.asyncio
    async def test_no_text_uploads_file_and_caches_reference(self, store, conversation):
        """Image-only PDF: raw file goes to the provider once, reference saved on the row."""
        document = store.add_document(conversation.id)
        generator = FakeGenerator(file_id="file-new", log=store.log)
        deps = make_deps(
            store=store, extractor=FakeExtractor(None, log=store.log), generator=generator
        )

        ctx = await resolve_document_context(deps, conversation.id, USER_ID, "resuma")

        assert ctx.chunks == []
        assert ctx.file_id == "file-new"
        assert generator.uploads == [document.file_name]
        assert store.documents[0]["document"].openai_file_id == "file-new"

    @pytest.mark.asyncio
    async def test_no_text_reuses_cached_reference(self, store, conversation):
        store.add_document(conversation.id, openai_file_id="file-cached")
        generator = FakeGenerator(log=store.log)
        deps = make_deps(
            store=store, extractor=FakeExtractor(None, log=store.log), generator=generator
        )

        ctx = await resolve_document_context(deps, conversation.id, USER_ID, "resuma")

        assert ctx.file_id == "file-cached"
        assert generator.uploads == []

    @pytest.mark.asyncio
    async def test_download_failure_uses_cached_reference(self, store, conversation):
        store.add_document(conversation.id, openai_file_id="file-cached")
        deps = make_deps(store=store, storage=FakeStorage(None, log=store.log))

        ctx = await resolve_document_context(deps, conversation.id, USER_ID, "resuma")

        assert ctx.file_id == "file-cached"
        assert "extract" not in store.log

    @pytest.mark.asyncio
    async def test_download_failure_without_reference_is_ungrounded(self, store, conversation):
        store.add_document(conversation.id)
        deps = make_deps(store=store, storage=FakeStorage(None, log=store.log))

        ctx = await resolve_document_context(deps, conversation.id, USER_ID, "resuma")

        assert ctx.document is not None
        assert not ctx.grounded
        assert "upload_file" not in store.log

    @pytest.mark.asyncio
    async def test_storage_error_uses_cached_reference(self, store, conversation):
        store.add_document(conversation.id, openai_file_id="file-cached")
        storage = FakeStorage(log=store.log, error=RuntimeError("storage down"))
        deps = make_deps(store=store, storage=storage)

        ctx = await resolve_document_context(deps, conversation.id, USER_ID, "resuma")

        assert ctx.file_id == "file-cached"
        assert "extract" not in store.log

    @pytest.mark.asyncio
    async def test_storage_error_without_reference_is_ungrounded(self, store, conversation):
        store.add_document(conversation.id)
        storage = FakeStorage(log=store.log, error=RuntimeError("storage down"))
        deps = make_deps(store=store, storage=storage)

        ctx = await resolve_document_context(deps, conversation.id, USER_ID, "resuma")

        assert ctx.document is not None
        assert not ctx.grounded
        assert "upload_file" not in store.log

    @pytest.mark.asyncio
    async def test_upload_failure_is_ungrounded(self, store, conversation):
        store.add_document(conversation.id)
        generator = FakeGenerator(upload_error=RuntimeError("provider down"), log=store.log)
        deps = make_deps(
            store=store, extractor=FakeExtractor(None, log=store.log), generator=generator
        )

        ctx = await resolve_document_context(deps, conversation.id, USER_ID, "resuma")

        assert not ctx.grounded
        assert "set_document_file_id" not in store.log

    @pytest.mark.asyncio
    async def test_cache_write_failure_still_uses_upload(self, store, conversation):
        store.add_document(conversation.id)
        store.fail_on.add("set_document_file_id")
        deps = make_deps(
            store=store,
            extractor=FakeExtractor(None, log=store.log),
            generator=FakeGenerator(file_id="file-new", log=store.log),
        )

        ctx = await resolve_document_context(deps, conversation.id, USER_ID, "resuma")

        assert ctx.file_id == "file-new"

    @pytest.mark.asyncio
    async def test_lookup_failure_is_ungrounded(self, store, conversation):
        store.fail_on.add("get_active_document")
        deps = make_deps(store=store)

        ctx = await resolve_document_context(deps, conversation.id, USER_ID, "resuma")

        assert not ctx.grounded
