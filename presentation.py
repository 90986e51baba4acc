"""Full-screen playback of a project's slides.

:class:`PresentationCursor` is the navigation model; :func:`render_presentation`
produces a standalone page that plays the slides in sandboxed iframes with
the same keyboard bindings.
"""
import html
import json
from typing import Callable, List, Optional

from slide_schema import Slide


PLAY_MESSAGE = "play"

PREV_KEYS = {"ArrowLeft"}
NEXT_KEYS = {"ArrowRight", " ", "Space"}
CLOSE_KEYS = {"Escape"}


class PresentationCursor:
    """Clamped cursor over slides 0..N-1.

    ``on_play(index, slide)`` fires whenever the shown slide changes (and once
    on open) so the target document can replay its animations.
    """

    def __init__(self, slides: List[Slide], initial_slide_id: Optional[str] = None,
                 on_play: Optional[Callable[[int, Slide], None]] = None,
                 on_close: Optional[Callable[[], None]] = None):
        if not slides:
            raise ValueError("cannot present an empty slide list")
        self.slides = slides
        self.on_play = on_play
        self.on_close = on_close
        self.closed = False
        self.index = 0
        if initial_slide_id:
            for i, slide in enumerate(slides):
                if slide.id == initial_slide_id:
                    self.index = i
                    break
        self._play()

    def __len__(self) -> int:
        return len(self.slides)

    @property
    def current(self) -> Slide:
        return self.slides[self.index]

    @property
    def counter(self) -> str:
        return f"{self.index + 1} / {len(self.slides)}"

    def _play(self) -> None:
        if self.on_play:
            self.on_play(self.index, self.current)

    def go_to(self, index: int) -> bool:
        """Move to ``index`` if it is in range; returns whether the index changed."""
        if self.closed or not 0 <= index < len(self.slides) or index == self.index:
            return False
        self.index = index
        self._play()
        return True

    def next(self) -> bool:
        return self.go_to(self.index + 1)

    def prev(self) -> bool:
        return self.go_to(self.index - 1)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.on_close:
            self.on_close()

    def handle_key(self, key: str) -> bool:
        """Apply one key press; returns True if the key was bound."""
        if key in PREV_KEYS:
            self.prev()
        elif key in NEXT_KEYS:
            self.next()
        elif key in CLOSE_KEYS:
            self.close()
        else:
            return False
        return True


# ---- Standalone player page --------------------------------------------------

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
  html, body {{ margin: 0; height: 100%; background: #000; overflow: hidden; font-family: sans-serif; }}
  .stage {{ position: absolute; inset: 0; display: flex; align-items: center; justify-content: center; }}
  .frame {{ position: relative; width: 100%; height: 100%; max-width: 177.78vh; max-height: 56.25vw; aspect-ratio: 16 / 9; }}
  .slide {{ position: absolute; inset: 0; opacity: 0; z-index: 0; pointer-events: none; transition: opacity 0.7s ease-in-out; }}
  .slide.active {{ opacity: 1; z-index: 10; pointer-events: auto; }}
  .slide iframe {{ width: 100%; height: 100%; border: 0; background: #000; overflow: hidden; }}
  .zone {{ position: absolute; top: 0; bottom: 0; width: 10%; z-index: 40; }}
  .zone.prev {{ left: 0; cursor: w-resize; }}
  .zone.next {{ right: 0; cursor: e-resize; }}
  .counter {{ position: absolute; top: 24px; left: 24px; z-index: 50; color: rgba(255,255,255,0.5); font-family: monospace; }}
  .dots {{ position: absolute; bottom: 24px; left: 0; right: 0; display: flex; justify-content: center; gap: 8px; z-index: 50; }}
  .dot {{ width: 8px; height: 8px; border-radius: 999px; background: rgba(255,255,255,0.2); transition: all 0.3s; }}
  .dot.active {{ width: 32px; background: #6366f1; }}
</style>
</head>
<body>
<div class="stage"><div class="frame">
{frames}
</div></div>
<div class="zone prev" onclick="prev()"></div>
<div class="zone next" onclick="next()"></div>
<div class="counter" id="counter"></div>
<div class="dots">{dots}</div>
<script>
  const total = {total};
  let current = {start};
  function show(index) {{
    current = index;
    document.querySelectorAll('.slide').forEach((el, i) => el.classList.toggle('active', i === index));
    document.querySelectorAll('.dot').forEach((el, i) => el.classList.toggle('active', i === index));
    document.getElementById('counter').textContent = (index + 1) + ' / ' + total;
    const frame = document.getElementById('slide-iframe-' + index);
    setTimeout(() => frame.contentWindow && frame.contentWindow.postMessage({play}, '*'), 50);
  }}
  function next() {{ if (current < total - 1) show(current + 1); }}
  function prev() {{ if (current > 0) show(current - 1); }}
  window.addEventListener('keydown', (e) => {{
    if (e.key === 'ArrowLeft') {{ e.preventDefault(); prev(); }}
    if (e.key === 'ArrowRight' || e.key === ' ') {{ e.preventDefault(); next(); }}
    if (e.key === 'Escape') {{ window.close(); }}
  }});
  show(current);
</script>
</body>
</html>
"""

FRAME_TEMPLATE = (
    '<div class="slide" data-slide-id="{slide_id}">'
    '<iframe id="slide-iframe-{index}" title="Presentation Slide {number}" '
    'scrolling="no" sandbox="allow-scripts" srcdoc="{srcdoc}"></iframe></div>'
)


def render_presentation(slides: List[Slide], start_index: int = 0, title: str = "Presentation") -> str:
    if not slides:
        raise ValueError("cannot present an empty slide list")
    start_index = max(0, min(start_index, len(slides) - 1))
    frames = "\n".join(
        FRAME_TEMPLATE.format(
            slide_id=html.escape(slide.id),
            index=i,
            number=i + 1,
            srcdoc=html.escape(slide.html, quote=True),
        )
        for i, slide in enumerate(slides)
    )
    dots = "".join('<div class="dot"></div>' for _ in slides)
    return PAGE_TEMPLATE.format(
        title=html.escape(title),
        frames=frames,
        dots=dots,
        total=len(slides),
        start=start_index,
        play=json.dumps(PLAY_MESSAGE),
    )
