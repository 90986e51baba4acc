import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError

from slide_schema import Project, Slide, new_id, now_ms

logger = logging.getLogger(__name__)

PROJECTS_KEY = "fs_projects"
ACTIVE_PROJECT_KEY = "fs_active_project"
TITLE_PREVIEW_CHARS = 20
IMPORTED_SUFFIX = " (Imported)"


class ProjectNotFoundError(KeyError):
    pass


class SlideNotFoundError(KeyError):
    pass


class ProjectImportError(ValueError):
    pass


# ---- Local storage -----------------------------------------------------------

class LocalStorage:
    """String key/value store persisted to a single JSON file."""

    def __init__(self, path):
        self.path = Path(path).expanduser()
        self._data: Dict[str, str] = self._read()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.exception("Failed to read local storage at %s", self.path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            os.unlink(tmp)
            raise

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value
        self._write()

    def remove_item(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._write()


# ---- Export / import ---------------------------------------------------------

def export_project_json(project: Project) -> str:
    return json.dumps(project.to_json_dict(), ensure_ascii=False, indent=2)


def export_filename(project: Project) -> str:
    stem = re.sub(r'[\\/:*?"<>|\s]+', "_", project.title).strip("_.") or "project"
    return f"{stem}.json"


def parse_project_json(text: str) -> Project:
    """Rebuild a project from exported JSON under a fresh id."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProjectImportError(f"Not valid JSON: {e}") from e
    if not isinstance(data, dict) or not isinstance(data.get("slides"), list):
        raise ProjectImportError("Invalid project file: expected an object with a slides list")
    try:
        project = Project.model_validate(data)
    except ValidationError as e:
        raise ProjectImportError(f"Invalid project file: {e}") from e
    return project.model_copy(update={"id": new_id(), "title": f"{project.title}{IMPORTED_SUFFIX}"})


def title_from_script(script: str) -> str:
    if len(script) > TITLE_PREVIEW_CHARS:
        return script[:TITLE_PREVIEW_CHARS] + "..."
    return script


# ---- Project store -----------------------------------------------------------

class ProjectStore:
    """The project list and the active project, saved wholesale on every change."""

    def __init__(self, storage: LocalStorage):
        self.storage = storage
        self.projects: List[Project] = self._load_projects()
        self.active_project_id: Optional[str] = storage.get_item(ACTIVE_PROJECT_KEY)
        if not self.projects:
            self.create_project()
        elif self.current_project is None:
            self.active_project_id = self.projects[0].id
            self.save()

    def _load_projects(self) -> List[Project]:
        raw = self.storage.get_item(PROJECTS_KEY)
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
            if not isinstance(parsed, list):
                return []
            return [Project.model_validate(p) for p in parsed]
        except (json.JSONDecodeError, ValidationError):
            logger.exception("Failed to load projects from local storage")
            return []

    def save(self) -> None:
        self.storage.set_item(
            PROJECTS_KEY,
            json.dumps([p.to_json_dict() for p in self.projects], ensure_ascii=False),
        )
        if self.active_project_id:
            self.storage.set_item(ACTIVE_PROJECT_KEY, self.active_project_id)
        else:
            self.storage.remove_item(ACTIVE_PROJECT_KEY)

    # -- lookup --

    def get(self, project_id: str) -> Project:
        for project in self.projects:
            if project.id == project_id:
                return project
        raise ProjectNotFoundError(project_id)

    @property
    def current_project(self) -> Optional[Project]:
        if not self.active_project_id:
            return None
        try:
            return self.get(self.active_project_id)
        except ProjectNotFoundError:
            return None

    @property
    def slides(self) -> List[Slide]:
        project = self.current_project
        return project.slides if project else []

    def find_slide(self, slide_id: str) -> Slide:
        for slide in self.slides:
            if slide.id == slide_id:
                return slide
        raise SlideNotFoundError(slide_id)

    # -- project actions --

    def create_project(self, title: Optional[str] = None) -> Project:
        project = Project(title=title or f"新项目 {len(self.projects) + 1}")
        self.projects.insert(0, project)
        self.active_project_id = project.id
        self.save()
        return project

    def select(self, project_id: str) -> Project:
        project = self.get(project_id)
        self.active_project_id = project.id
        self.save()
        return project

    def delete(self, project_id: str) -> None:
        self.get(project_id)
        self.projects = [p for p in self.projects if p.id != project_id]
        if self.active_project_id == project_id:
            self.active_project_id = self.projects[0].id if self.projects else None
        self.save()

    def import_project(self, text: str) -> Project:
        project = parse_project_json(text)
        self.projects.insert(0, project)
        self.active_project_id = project.id
        self.save()
        logger.info("Imported project %r with %d slides", project.title, len(project.slides))
        return project

    def update_current(self, **changes) -> Optional[Project]:
        project = self.current_project
        if project is None:
            return None
        updated = project.model_copy(update={**changes, "last_modified": now_ms()})
        self.projects = [updated if p.id == project.id else p for p in self.projects]
        self.save()
        return updated

    # -- slide actions --

    def start_generation(self, script: str) -> Optional[Project]:
        """Rename a still-empty active project after the script about to be generated."""
        project = self.current_project
        if project is None or project.slides:
            return project
        return self.update_current(title=title_from_script(script))

    def add_slides(self, slides: List[Slide]) -> Optional[Project]:
        project = self.current_project
        if project is None or not slides:
            return project
        return self.update_current(slides=project.slides + list(slides))

    def insert_remix(self, source_id: str, html: str) -> Slide:
        """Insert a remix of ``source_id`` directly after it and return the new slide."""
        project = self.current_project
        if project is None:
            raise ProjectNotFoundError("no active project")
        for index, source in enumerate(project.slides):
            if source.id == source_id:
                break
        else:
            raise SlideNotFoundError(source_id)

        remix = source.model_copy(update={
            "id": new_id(),
            "html": html,
            "variant": "remix",
            "timestamp": now_ms(),
        })
        slides = list(project.slides)
        slides.insert(index + 1, remix)
        self.update_current(slides=slides)
        return remix
