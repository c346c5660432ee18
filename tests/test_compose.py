import copy

import pytest

from appnest.services.compose import ComposeFileStore, patch_container_names


def test_patch_fills_missing_container_names(compose):
    patched = patch_container_names("demo", compose)

    assert patched["services"]["web"]["container_name"] == "demo_web_1"
    assert patched["services"]["init"]["container_name"] == "demo_init_1"


def test_patch_never_overwrites_explicit_names(compose):
    patched = patch_container_names("demo", compose)

    assert patched["services"]["db"]["container_name"] == "legacy-db"


def test_patch_leaves_other_fields_untouched(compose):
    patched = patch_container_names("demo", copy.deepcopy(compose))

    assert patched["version"] == "3.7"
    assert patched["services"]["web"]["image"] == "nginx:1.0"
    assert patched["services"]["web"]["ports"] == ["8080:80"]
    assert patched["services"]["init"]["build"] == "."
    assert list(patched["services"]) == ["web", "db", "init"]


def test_patch_is_idempotent(compose):
    once = patch_container_names("demo", copy.deepcopy(compose))
    twice = patch_container_names("demo", copy.deepcopy(once))

    assert once == twice


def test_patch_handles_empty_service_definition():
    patched = patch_container_names("demo", {"services": {"worker": None}})

    assert patched == {"services": {"worker": {"container_name": "demo_worker_1"}}}


@pytest.mark.asyncio
async def test_compose_file_store_preserves_service_order(tmp_path, compose):
    store = ComposeFileStore()
    path = tmp_path / "docker-compose.yml"

    await store.write(path, patch_container_names("demo", compose))
    loaded = await store.read(path)

    assert list(loaded["services"]) == ["web", "db", "init"]
    assert loaded["services"]["web"]["container_name"] == "demo_web_1"


@pytest.mark.asyncio
async def test_compose_file_store_propagates_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        await ComposeFileStore().read(tmp_path / "missing.yml")
