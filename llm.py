import json
import logging
import re
from typing import Any, List

from pydantic import ValidationError

from slide_schema import PlanItem

logger = logging.getLogger(__name__)

MIN_SLIDES = 3
MAX_SLIDES = 8

FALLBACK_PLAN: List[PlanItem] = [
    PlanItem(phase="介绍", instruction="Cover the beginning of the script."),
    PlanItem(phase="细节", instruction="Cover the main details."),
    PlanItem(phase="总结", instruction="Cover the ending."),
]


class PlanParseError(ValueError):
    """The model's planning output could not be turned into a usable plan."""


# ---- Prompt helpers ----------------------------------------------------------

SYSTEM_INSTRUCTION = """
You are a specialized "Script-to-Slide" Visual Engine.
Your job is to take a segment of a spoken script (narration) and turn it into a high-fidelity presentation slide that ACCOMPANIES the speaker.

VISUAL STYLE GUIDE (Strict High-Fidelity):
1. BACKGROUND: Cinematic Dark Mode. Use deep radial gradients (e.g., #050505 to #1a1a2e).
2. GLASSMORPHISM: All containers must use `backdrop-filter: blur(20px)`, `background: rgba(255,255,255,0.03)`, and `border: 1px solid rgba(255,255,255,0.08)`.
3. TYPOGRAPHY: Huge, bold system fonts (Inter, SF Pro). tracking-tight.
4. LAYOUT: Asymmetric, modern layouts. NO basic bullet points. Use grids, big numbers, or floating cards.

CRITICAL LAYOUT & SCALING RULES (NO SCROLLBARS):
1. VIEWPORT ONLY: The slide MUST fit exactly 100vw x 100vh.
2. NO PIXELS: DO NOT use `px` for font-sizes, padding, or margins.
   - YOU MUST USE `vw` and `vh` units for everything.
   - Example: Use `font-size: 4vw` instead of `60px`. Use `padding: 2vw`.
3. OVERFLOW HIDDEN: The design must never overflow the viewport.

CRITICAL CONTENT RULE:
- You are visualizing a SPECIFIC PART of the user's script.
- EXTRACT the most impactful 1-2 sentences from the provided script segment to use as the Headline/Subhead.
- Do NOT summarize the whole topic. Only visualize what is being said in THIS segment.

ANIMATION (The "Teleprompter" Flow):
- Since this accompanies speech, elements must appear IN ORDER of the script.
- Keyframe: `@keyframes rise-in { from { opacity:0; transform: translateY(5vh); filter:blur(10px); } to { opacity:1; transform:translateY(0); filter:blur(0); } }`
- Stagger delays significantly (0s, 1s, 2s) so the slide builds while the speaker talks.

OUTPUT FORMAT:
- Return ONLY raw HTML string.
- Full 16:9 aspect ratio container.
""".strip()

PLAN_JSON_SPEC = """
Return ONLY valid minified JSON with this exact schema:
{
  "slides": [
    { "phase": "string", "instruction": "string" },
    ...
  ]
}
Do not include markdown fences or any prose before/after the JSON.
"""


def build_plan_prompt(script: str) -> str:
    return f"""
Analyze the following spoken presentation script.
Break it down into a logical sequence of slides.

SCRIPT:
\"\"\"{script}\"\"\"

RULES:
1. Determine the optimal number of slides to cover ALL key points (Minimum {MIN_SLIDES}, Maximum {MAX_SLIDES}).
2. If the script is long or complex, split it into more slides.
3. For each slide, provide:
   - 'phase': A short title for the slide's role (e.g., "Market Gap", "The Solution", "Pricing").
   - 'instruction': Specific instructions on what visual elements to show for this part of the script.

IMPORTANT:
If the input SCRIPT is in Chinese, the 'phase' AND 'instruction' MUST be in Chinese.

{PLAN_JSON_SPEC}
""".strip()


def build_slide_prompt(full_script: str, item: PlanItem) -> str:
    return f"""
USER'S FULL SCRIPT:
\"\"\"{full_script}\"\"\"

YOUR TASK: Create the slide for the **{item.phase}** of this script.

SPECIFIC INSTRUCTIONS:
{item.instruction}

DESIGN RULES:
1. USE VW/VH UNITS ONLY. NO PIXELS.
2. Identify the key lines spoken in this part of the script. Use them as the main text.
3. If the script mentions numbers/data in this part, visualize them.
4. If the script tells a story here, use a layout that implies flow or emotion.
""".strip()


def build_remix_prompt(original_html: str, direction: str) -> str:
    return f"""
Refactor this HTML slide to a new layout: "{direction}".
Keep the same script content and the same animation rules.
Original: {original_html}
""".strip()


# ---- JSON cleaners -----------------------------------------------------------

def clean_llm_output(text: str) -> str:
    """Remove markdown fences and extract the JSON block if wrapped in prose."""
    text = (text or "").strip()
    text = re.sub(r"^```[a-zA-Z]*\n?", "", text)
    text = re.sub(r"```$", "", text).strip()
    if text.startswith("[") or text.startswith("{"):
        return text
    match = re.search(r"(\[.*\]|\{.*\})", text, re.DOTALL)
    if match:
        return match.group(0)
    return text


def _plan_entries(obj: Any) -> List[Any]:
    if isinstance(obj, list):
        return obj
    if isinstance(obj, dict):
        for key in ("slides", "plan", "items"):
            if isinstance(obj.get(key), list):
                return obj[key]
    raise PlanParseError(f"Unexpected plan shape: {type(obj).__name__}")


def normalize_plan(entries: List[Any]) -> List[PlanItem]:
    """Drop empty items and cap the plan at MAX_SLIDES.

    Raises PlanParseError when fewer than MIN_SLIDES usable items remain.
    """
    items: List[PlanItem] = []
    for entry in entries:
        try:
            item = PlanItem.model_validate(entry)
        except ValidationError:
            logger.debug("Skipping malformed plan entry: %r", entry)
            continue
        phase, instruction = item.phase.strip(), item.instruction.strip()
        if not phase or not instruction:
            continue
        items.append(PlanItem(phase=phase, instruction=instruction))

    if len(items) > MAX_SLIDES:
        logger.info("Plan has %d slides, keeping the first %d", len(items), MAX_SLIDES)
        items = items[:MAX_SLIDES]
    if len(items) < MIN_SLIDES:
        raise PlanParseError(f"Plan has {len(items)} usable slides, need at least {MIN_SLIDES}")
    return items


def parse_plan(text: str) -> List[PlanItem]:
    try:
        obj = json.loads(clean_llm_output(text))
    except json.JSONDecodeError as e:
        raise PlanParseError(f"Plan is not valid JSON: {e}") from e
    return normalize_plan(_plan_entries(obj))


def fallback_plan() -> List[PlanItem]:
    return [item.model_copy() for item in FALLBACK_PLAN]
