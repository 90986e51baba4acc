"""Sanitizing helpers for model-generated slide HTML.

Every slide is shown inside a sandboxed iframe. The injected stylesheet pins
the document to the viewport, and the control script replays the entry
animations whenever the parent frame posts a ``"play"`` message.
"""
import re

SAFETY_CSS = """
<style>
  html, body {
    width: 100vw !important;
    height: 100vh !important;
    margin: 0 !important;
    padding: 0 !important;
    overflow: hidden !important;
    box-sizing: border-box !important;
    background-color: #050505 !important;
    color: #ffffff !important;
  }
  *, *::before, *::after {
    box-sizing: inherit;
  }
  ::-webkit-scrollbar {
    display: none;
  }
</style>
"""

CONTROL_SCRIPT = """
<script>
  window.addEventListener('message', (e) => {
    if (e.data === 'play') {
      const currentContent = document.body.innerHTML;
      document.body.innerHTML = '';
      void document.body.offsetWidth;
      document.body.innerHTML = currentContent;
    }
  });
</script>
"""

_FENCE_RE = re.compile(r"```(?:html)?", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove ```html / ``` fences the model sometimes wraps around markup."""
    return _FENCE_RE.sub("", text or "").strip()


def inject_safety_styles(html: str) -> str:
    injected = f"{SAFETY_CSS}{CONTROL_SCRIPT}"
    if "</head>" in html:
        # only the first closing head tag
        return html.replace("</head>", f"{injected}</head>", 1)
    return f"<head>{injected}</head>{html}"


def error_slide_html(title: str = "生成幻灯片出错", hint: str = "请检查服务器日志。") -> str:
    """Static placeholder shown in place of a slide that failed to generate."""
    return inject_safety_styles(f"""
<div style="width:100%;height:100%;background:#000;color:white;display:flex;align-items:center;justify-content:center;font-family:sans-serif;">
  <div style="text-align:center;">
    <h1>{title}</h1>
    <p>{hint}</p>
  </div>
</div>
""")


def clean_slide_html(text: str) -> str:
    return inject_safety_styles(strip_code_fences(text))
