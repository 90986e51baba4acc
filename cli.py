import argparse
import asyncio
import logging
import random
import sys
import webbrowser
from pathlib import Path
from typing import List, Optional

from client import SlideApiClient
from config import configure_logging, get_settings
from pipeline import GenerationError, SlideGenerator
from presentation import render_presentation
from projects import (
    LocalStorage,
    ProjectImportError,
    ProjectNotFoundError,
    ProjectStore,
    SlideNotFoundError,
    export_filename,
    export_project_json,
)
from slide_schema import REMIX_DIRECTIONS

logger = logging.getLogger(__name__)


def open_store(path: Optional[str] = None) -> ProjectStore:
    return ProjectStore(LocalStorage(path or get_settings().storage_path))


async def generate_into(store: ProjectStore, script: str, base_url: Optional[str] = None) -> int:
    store.start_generation(script)
    async with SlideApiClient(base_url) as api:
        slides = await SlideGenerator(api).generate(script)
    store.add_slides(slides)
    return len(slides)


async def remix_into(store: ProjectStore, slide_id: str, direction: str,
                     base_url: Optional[str] = None) -> str:
    source = store.find_slide(slide_id)
    async with SlideApiClient(base_url) as api:
        html = await api.remix(source.html, direction)
    return store.insert_remix(slide_id, html).id


# ---- Commands ----------------------------------------------------------------

def cmd_generate(store: ProjectStore, args) -> int:
    script = Path(args.file).read_text(encoding="utf-8") if args.file else args.script
    if not script or not script.strip():
        print("Script is empty", file=sys.stderr)
        return 2
    try:
        count = asyncio.run(generate_into(store, script, args.api))
    except GenerationError as e:
        print(str(e), file=sys.stderr)
        return 1
    print(f"Added {count} slides to {store.current_project.title!r}")
    return 0


def cmd_list(store: ProjectStore, args) -> int:
    for project in store.projects:
        marker = "*" if project.id == store.active_project_id else " "
        print(f"{marker} {project.id}  {project.title}  ({len(project.slides)} slides)")
        if marker == "*" and args.slides:
            for i, slide in enumerate(project.slides, 1):
                print(f"      {i:>2}. {slide.id}  [{slide.variant}]")
    return 0


def cmd_new(store: ProjectStore, args) -> int:
    project = store.create_project(args.title)
    print(f"Created {project.id}  {project.title}")
    return 0


def cmd_select(store: ProjectStore, args) -> int:
    store.select(args.project_id)
    return 0


def cmd_delete(store: ProjectStore, args) -> int:
    store.delete(args.project_id)
    current = store.current_project
    print(f"Active project: {current.title if current else '(none)'}")
    return 0


def cmd_remix(store: ProjectStore, args) -> int:
    # random direction for variety unless one is asked for
    direction = args.direction or random.choice(REMIX_DIRECTIONS)
    new_id = asyncio.run(remix_into(store, args.slide_id, direction, args.api))
    print(f"Inserted remix {new_id} ({direction})")
    return 0


def cmd_export(store: ProjectStore, args) -> int:
    project = store.current_project
    if project is None or not project.slides:
        print("Nothing to export", file=sys.stderr)
        return 1
    out = Path(args.output or export_filename(project))
    out.write_text(export_project_json(project), encoding="utf-8")
    print(f"Exported to {out}")
    return 0


def cmd_import(store: ProjectStore, args) -> int:
    project = store.import_project(Path(args.file).read_text(encoding="utf-8"))
    print(f"Imported {project.id}  {project.title}")
    return 0


def cmd_present(store: ProjectStore, args) -> int:
    slides = store.slides
    if not slides:
        print("Active project has no slides", file=sys.stderr)
        return 1
    start = 0
    if args.slide:
        start = slides.index(store.find_slide(args.slide))
    title = store.current_project.title
    out = Path(args.output or "presentation.html").resolve()
    out.write_text(render_presentation(slides, start, title=title), encoding="utf-8")
    print(f"Wrote {out}")
    if args.open:
        webbrowser.open(out.as_uri())
    return 0


def build_cli() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Turn a spoken script into animated HTML slides")
    parser.add_argument("--storage", help="Local storage file")
    parser.add_argument("--api", help="Slide API base URL")
    parser.add_argument("--log-level")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("generate", help="Plan and generate slides into the active project")
    p.add_argument("script", nargs="?")
    p.add_argument("-f", "--file", help="Read the script from a file")
    p.set_defaults(func=cmd_generate)

    p = sub.add_parser("list", help="List projects")
    p.add_argument("--slides", action="store_true", help="Also list the active project's slides")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("new", help="Create and select a new project")
    p.add_argument("--title")
    p.set_defaults(func=cmd_new)

    p = sub.add_parser("select", help="Select the active project")
    p.add_argument("project_id")
    p.set_defaults(func=cmd_select)

    p = sub.add_parser("delete", help="Delete a project")
    p.add_argument("project_id")
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("remix", help="Insert an alternate layout after a slide")
    p.add_argument("slide_id")
    p.add_argument("--direction", choices=REMIX_DIRECTIONS)
    p.set_defaults(func=cmd_remix)

    p = sub.add_parser("export", help="Export the active project as JSON")
    p.add_argument("-o", "--output")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("import", help="Import a project JSON file")
    p.add_argument("file")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("present", help="Write a full-screen presentation page")
    p.add_argument("--slide", help="Slide id to start from")
    p.add_argument("-o", "--output")
    p.add_argument("--open", action="store_true", help="Open the page in a browser")
    p.set_defaults(func=cmd_present)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_cli().parse_args(argv)
    configure_logging(args.log_level)
    store = open_store(args.storage)
    try:
        return args.func(store, args)
    except (ProjectNotFoundError, SlideNotFoundError) as e:
        print(f"Not found: {e.args[0]}", file=sys.stderr)
        return 1
    except (ProjectImportError, OSError) as e:
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
