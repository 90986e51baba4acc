import json

import pytest

from projects import (
    ACTIVE_PROJECT_KEY,
    PROJECTS_KEY,
    LocalStorage,
    ProjectImportError,
    ProjectNotFoundError,
    ProjectStore,
    SlideNotFoundError,
    export_filename,
    export_project_json,
    parse_project_json,
    title_from_script,
)
from slide_schema import Slide


def test_new_store_creates_and_selects_default_project(store, storage):
    assert len(store.projects) == 1
    assert store.current_project.title == "新项目 1"
    assert storage.get_item(ACTIVE_PROJECT_KEY) == store.active_project_id


def test_state_survives_reload(store, storage, sample_slides):
    store.add_slides(sample_slides)
    reloaded = ProjectStore(LocalStorage(storage.path))
    assert reloaded.active_project_id == store.active_project_id
    assert [s.id for s in reloaded.slides] == ["s0", "s1", "s2"]


def test_corrupt_projects_fall_back_to_default(storage):
    storage.set_item(PROJECTS_KEY, "{not json")
    store = ProjectStore(storage)
    assert len(store.projects) == 1


def test_stale_active_id_selects_first_project(store, storage):
    second = store.create_project()
    storage.set_item(ACTIVE_PROJECT_KEY, "gone")
    reloaded = ProjectStore(LocalStorage(storage.path))
    assert reloaded.active_project_id == second.id


def test_create_prepends_and_activates(store):
    first = store.current_project
    second = store.create_project()
    assert store.projects[0].id == second.id
    assert store.projects[1].id == first.id
    assert second.title == "新项目 2"
    assert store.active_project_id == second.id


def test_deleting_active_selects_first_remaining(store):
    a = store.current_project
    b = store.create_project()
    c = store.create_project()
    store.delete(c.id)
    assert store.active_project_id == b.id
    store.select(a.id)
    store.delete(b.id)
    assert store.active_project_id == a.id


def test_deleting_inactive_keeps_selection(store):
    a = store.current_project
    b = store.create_project()
    store.delete(a.id)
    assert store.active_project_id == b.id


def test_deleting_last_project_leaves_none(store, storage):
    store.delete(store.current_project.id)
    assert store.projects == []
    assert store.active_project_id is None
    assert store.current_project is None
    assert storage.get_item(ACTIVE_PROJECT_KEY) is None


def test_delete_unknown_project(store):
    with pytest.raises(ProjectNotFoundError):
        store.delete("missing")


def test_start_generation_renames_empty_project_from_raw_script(store, sample_slides):
    before = store.current_project.last_modified
    project = store.start_generation("  A short talk about slides.")
    assert project.title == "  A short talk about..."
    assert project.last_modified >= before
    # the rename sticks even if no slides ever arrive
    assert store.current_project.slides == []


def test_start_generation_keeps_title_once_slides_exist(store, sample_slides):
    store.start_generation("first script")
    store.add_slides(sample_slides)
    project = store.start_generation("another script entirely")
    assert project.title == "first script"
    project = store.add_slides([Slide(html="<p>4</p>", prompt="another script entirely")])
    assert project.title == "first script"
    assert len(project.slides) == 4


def test_title_from_script():
    assert title_from_script("short") == "short"
    assert title_from_script("x" * 25) == "x" * 20 + "..."
    assert title_from_script(" padded ") == " padded "


def test_remix_inserts_after_source(store, sample_slides):
    store.add_slides(sample_slides)
    remix = store.insert_remix("s1", "<h1>Remixed</h1>")
    ids = [s.id for s in store.slides]
    assert ids == ["s0", "s1", remix.id, "s2"]
    assert remix.variant == "remix"
    assert remix.prompt == sample_slides[1].prompt
    assert store.find_slide("s1").html == "<h1>Slide 1</h1>"


def test_remix_unknown_slide(store, sample_slides):
    store.add_slides(sample_slides)
    with pytest.raises(SlideNotFoundError):
        store.insert_remix("nope", "<p/>")


def test_export_import_round_trip(store, sample_slides):
    project = store.add_slides(sample_slides)
    text = export_project_json(project)
    assert json.loads(text)["createdAt"] == project.created_at

    imported = store.import_project(text)
    assert imported.id != project.id
    assert imported.title == project.title + " (Imported)"
    assert [s.html for s in imported.slides] == [s.html for s in project.slides]
    assert store.projects[0].id == imported.id
    assert store.active_project_id == imported.id


def test_import_twice_yields_distinct_ids(sample_slides, store):
    text = export_project_json(store.add_slides(sample_slides))
    assert parse_project_json(text).id != parse_project_json(text).id


@pytest.mark.parametrize("text", ["not json", "[]", '{"title": "x"}', '{"title": "x", "slides": [{"id": 1}]}'])
def test_import_rejects_invalid_files(text):
    with pytest.raises(ProjectImportError):
        parse_project_json(text)


def test_export_filename(store):
    project = store.create_project("Q3 / review: draft")
    assert export_filename(project) == "Q3_review_draft.json"


def test_local_storage_ignores_unreadable_file(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("garbage", encoding="utf-8")
    assert LocalStorage(path).get_item(PROJECTS_KEY) is None


def test_failed_write_leaves_no_temp_file(tmp_path):
    storage = LocalStorage(tmp_path / "storage.json")
    storage.set_item("ok", "1")
    with pytest.raises(TypeError):
        storage.set_item("bad", object())
    assert sorted(p.name for p in tmp_path.iterdir()) == ["storage.json"]
    assert LocalStorage(tmp_path / "storage.json").get_item("ok") == "1"
