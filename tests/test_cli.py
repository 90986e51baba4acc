import json

import pytest

import cli
from slide_schema import PlanItem


class FakeApi:
    def __init__(self, base_url=None):
        self.base_url = base_url

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def plan(self, script):
        return [PlanItem(phase=f"P{i}", instruction="x") for i in range(3)]

    async def generate_slide(self, full_script, item):
        return f"<div>{item.phase}</div>"

    async def remix(self, original_html, direction):
        return f"{original_html}<!-- {direction} -->"


@pytest.fixture
def storage_path(tmp_path):
    return str(tmp_path / "storage.json")


@pytest.fixture
def run(storage_path):
    def _run(*argv):
        return cli.main(["--storage", storage_path, *argv])
    return _run


@pytest.fixture
def fake_api(monkeypatch):
    monkeypatch.setattr(cli, "SlideApiClient", FakeApi)


def test_generate_remix_and_present(run, fake_api, storage_path, tmp_path, capsys):
    assert run("generate", "Our product changes everything") == 0
    store = cli.open_store(storage_path)
    assert [s.html for s in store.slides] == ["<div>P0</div>", "<div>P1</div>", "<div>P2</div>"]
    assert store.current_project.title == "Our product changes ..."

    first = store.slides[0].id
    assert run("remix", first, "--direction", "split") == 0
    store = cli.open_store(storage_path)
    assert len(store.slides) == 4
    assert store.slides[1].variant == "remix"
    assert store.slides[1].html.endswith("<!-- split -->")

    out = tmp_path / "deck.html"
    assert run("present", "--slide", store.slides[2].id, "-o", str(out)) == 0
    assert "let current = 2;" in out.read_text(encoding="utf-8")


def test_generate_rejects_empty_script(run):
    assert run("generate", "   ") == 2


def test_export_then_import(run, fake_api, storage_path, tmp_path):
    run("generate", "Hello")
    exported = tmp_path / "out.json"
    assert run("export", "-o", str(exported)) == 0
    original = json.loads(exported.read_text(encoding="utf-8"))

    assert run("import", str(exported)) == 0
    store = cli.open_store(storage_path)
    assert store.current_project.id != original["id"]
    assert len(store.slides) == len(original["slides"])


def test_export_empty_project_fails(run):
    assert run("export") == 1


def test_delete_unknown_project(run, capsys):
    assert run("delete", "missing") == 1
    assert "Not found" in capsys.readouterr().err


def test_new_and_list(run, capsys):
    run("new", "--title", "Demo")
    capsys.readouterr()
    assert run("list") == 0
    out = capsys.readouterr().out
    assert "* " in out and "Demo" in out
