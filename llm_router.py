import logging
from typing import List, Optional

from config import Settings, get_settings
from llm import (
    SYSTEM_INSTRUCTION,
    build_plan_prompt,
    build_remix_prompt,
    build_slide_prompt,
    parse_plan,
)
from slide_html import clean_slide_html
from slide_schema import PlanItem

logger = logging.getLogger(__name__)

PROVIDERS = ("gemini", "openai", "anthropic")


class MissingCredentialsError(RuntimeError):
    """No API key is configured for the selected provider."""


class UnsupportedProviderError(ValueError):
    pass


# ---- Provider calls ----------------------------------------------------------

def call_openai(api_key: str, model: str, prompt: str, system: Optional[str],
                temperature: float, json_mode: bool, max_tokens: int) -> str:
    from openai import OpenAI
    client = OpenAI(api_key=api_key)
    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    kwargs = {}
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}
    resp = client.chat.completions.create(
        model=model,
        messages=messages,
        temperature=temperature,
        max_tokens=max_tokens,
        **kwargs,
    )
    return (resp.choices[0].message.content or "").strip()


def call_anthropic(api_key: str, model: str, prompt: str, system: Optional[str],
                   temperature: float, json_mode: bool, max_tokens: int) -> str:
    import anthropic
    client = anthropic.Anthropic(api_key=api_key)
    kwargs = {}
    if system:
        kwargs["system"] = system
    resp = client.messages.create(
        model=model,
        max_tokens=max_tokens,
        # Anthropic caps temperature at 1.0
        temperature=min(temperature, 1.0),
        messages=[{"role": "user", "content": prompt}],
        **kwargs,
    )
    # Claude often returns fenced output; the cleaners handle it.
    return resp.content[0].text.strip()


def call_gemini(api_key: str, model: str, prompt: str, system: Optional[str],
                temperature: float, json_mode: bool, max_tokens: int) -> str:
    import google.generativeai as genai
    genai.configure(api_key=api_key)
    generation_config = {"temperature": temperature, "max_output_tokens": max_tokens}
    if json_mode:
        generation_config["response_mime_type"] = "application/json"
    gm = genai.GenerativeModel(model, system_instruction=system)
    resp = gm.generate_content(prompt, generation_config=generation_config)
    return (resp.text or "").strip()


_CALLS = {
    "openai": call_openai,
    "anthropic": call_anthropic,
    "gemini": call_gemini,
}


# ---- Router entrypoints ------------------------------------------------------

def complete(prompt: str, system: Optional[str] = None, temperature: float = 1.0,
             json_mode: bool = False, settings: Optional[Settings] = None) -> str:
    """Send one prompt to the configured provider and return its raw text."""
    settings = settings or get_settings()
    provider = settings.llm_provider.lower()
    if provider not in _CALLS:
        raise UnsupportedProviderError(f"Unsupported provider: {provider}")
    api_key = settings.api_key_for(provider)
    if not api_key:
        raise MissingCredentialsError(f"{provider.upper()}_API_KEY is not set")
    model = settings.model_for(provider)
    logger.debug("Calling %s model %s (json=%s)", provider, model, json_mode)
    return _CALLS[provider](api_key, model, prompt, system, temperature,
                            json_mode, settings.max_output_tokens)


def plan_presentation(script: str, settings: Optional[Settings] = None) -> List[PlanItem]:
    settings = settings or get_settings()
    text = complete(
        build_plan_prompt(script),
        temperature=settings.plan_temperature,
        json_mode=True,
        settings=settings,
    )
    return parse_plan(text)


def generate_slide_html(full_script: str, item: PlanItem,
                        settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    text = complete(
        build_slide_prompt(full_script, item),
        system=SYSTEM_INSTRUCTION,
        temperature=settings.slide_temperature,
        settings=settings,
    )
    return clean_slide_html(text)


def remix_slide_html(original_html: str, direction: str,
                     settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    text = complete(
        build_remix_prompt(original_html, direction),
        system=SYSTEM_INSTRUCTION,
        temperature=settings.slide_temperature,
        settings=settings,
    )
    return clean_slide_html(text)
