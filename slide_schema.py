import time
import uuid
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

RemixDirection = Literal["visual", "text-heavy", "split"]
REMIX_DIRECTIONS: List[str] = ["visual", "text-heavy", "split"]


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    """Millisecond timestamp plus a random suffix, unique within a process."""
    return f"{now_ms()}-{uuid.uuid4().hex[:8]}"


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---- Plan --------------------------------------------------------------------

class PlanItem(BaseModel):
    phase: str = Field(..., description="Short title for the slide's role")
    instruction: str = Field(..., description="What to show for this part of the script")


class PlanRequest(BaseModel):
    script: str = ""


class PlanFailure(BaseModel):
    error: str
    fallback: List[PlanItem]


# ---- Slide / remix requests --------------------------------------------------

class SlideRequest(CamelModel):
    full_script: str = Field(default="", alias="fullScript")
    context: Optional[PlanItem] = None


class RemixRequest(CamelModel):
    original_html: str = Field(default="", alias="originalHtml")
    direction: str = ""


class HtmlResponse(BaseModel):
    html: str


class ErrorResponse(BaseModel):
    error: str


# ---- Client-side records -----------------------------------------------------

class Slide(CamelModel):
    id: str = Field(default_factory=new_id)
    html: str
    prompt: str = Field(default="", description="Script the slide was generated from")
    variant: Literal["original", "remix"] = "original"
    timestamp: int = Field(default_factory=now_ms)


class Project(CamelModel):
    id: str = Field(default_factory=new_id)
    title: str
    slides: List[Slide] = Field(default_factory=list)
    created_at: int = Field(default_factory=now_ms, alias="createdAt")
    last_modified: int = Field(default_factory=now_ms, alias="lastModified")

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True)
