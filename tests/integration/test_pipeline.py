"""End-to-end scenarios over the fully wired service graph (no HTTP)."""

from __future__ import annotations

import pytest

from contextkeeper.config.loader import AppConfig
from contextkeeper.main import build_services
from contextkeeper.models.context import ContextMetadata, ContextReference
from contextkeeper.utils.errors import ChunksNotFoundError, ContextNotFoundError


@pytest.fixture
def services(app_config: AppConfig) -> dict:
    return build_services(app_config)


class TestIngestAndRetrieve:
    @pytest.mark.asyncio
    async def test_tag_scoped_search_returns_only_tagged_context(self, services: dict) -> None:
        manage = services["context_service"]
        search = services["search_service"]
        rust = await manage.store("Rust is great", ContextMetadata(tags=["rust", "programming"]))
        await manage.store("Python is great", ContextMetadata(tags=["python", "programming"]))

        result = await search.search_with_tags("great", ["rust"], 10)

        assert result.total_matches == 1
        assert result.matches[0].context.id == rust.id

    @pytest.mark.asyncio
    async def test_references_with_weight_and_unknown_id(self, services: dict) -> None:
        manage = services["context_service"]
        search = services["search_service"]
        context = await manage.store("Referenced material")

        result = await search.retrieve_by_references(
            [
                ContextReference(context_id=context.id, weight=0.5),
                ContextReference(context_id="00000000-0000-0000-0000-000000000000"),
            ]
        )

        assert result.total_matches == 1
        assert result.matches[0].score == 0.5

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, services: dict) -> None:
        manage = services["context_service"]
        search = services["search_service"]
        store = services["context_store"]
        embedder = services["embedding_provider"]

        context = await manage.store("alpha " * 50, ContextMetadata(tags=["greek"]))
        assert (await search.search("alpha", 10)).total_matches == 1

        await manage.update(context.id, "omega " * 50, ContextMetadata(tags=["greek"]))
        hits = await search.search("omega", 10)
        assert hits.matches[0].context.content.startswith("omega")
        assert hits.matches[0].score == 1.0

        await manage.delete(context.id)
        assert (await search.search("omega", 10)).total_matches == 0
        assert len(embedder) == 0
        with pytest.raises(ContextNotFoundError):
            await manage.get(context.id)
        with pytest.raises(ChunksNotFoundError):
            await store.find_chunks_by_context_id(context.id)

    @pytest.mark.asyncio
    async def test_configured_strategy_reaches_search_service(self) -> None:
        config = AppConfig.model_validate({"search": {"tag_search_strategy": "restrict"}})

        services = build_services(config)

        assert services["search_service"].tag_search_strategy == "restrict"
