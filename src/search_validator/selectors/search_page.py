"""Locator fallback chains for the search page.

Each role maps to an ordered tuple of selectors, most specific first. The
markup of a public search engine is not under our control, so every role
carries alternatives that are tried in order.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Iterable, Mapping
from urllib.parse import parse_qs, urlsplit

LOCATOR_ROLES: tuple[str, ...] = (
    "search_input",
    "submit_control",
    "result_container",
    "result_title",
    "result_snippet",
    "consent_button",
    "surface_switch",
)


@dataclass(frozen=True)
class LocatorSet:
    search_input: tuple[str, ...] = (
        "textarea[name='q']:not([aria-hidden='true'])",
        "input[name='q']:not([aria-hidden='true'])",
    )
    submit_control: tuple[str, ...] = (
        "input[type='submit']",
        "button[type='submit']",
    )
    result_container: tuple[str, ...] = ("#search", "#rso", "main")
    result_title: tuple[str, ...] = ("h3", ".LC20lb", ".yuRUbf h3", "[data-ved] h3")
    result_snippet: tuple[str, ...] = (".VwiC3b", "[data-sncf]", ".s", ".lEBKkf", ".st")
    consent_button: tuple[str, ...] = (
        "button:has-text('Accept all')",
        "button:has-text('I agree')",
        "button:has-text('Accept')",
        "[id*='accept']",
        "[class*='accept']",
    )
    surface_switch: tuple[str, ...] = (
        "a[data-ved]:has-text('All')",
        "a:has-text('All')",
    )
    # Query-string keys that put the engine on a non-default surface (images, news...).
    surface_mode_params: tuple[str, ...] = ("tbm",)

    def __post_init__(self) -> None:
        for role in LOCATOR_ROLES:
            value = getattr(self, role)
            if isinstance(value, str):
                value = (value,)
            value = tuple(selector.strip() for selector in value if selector and selector.strip())
            if not value:
                raise ValueError(f"Locator role '{role}' needs at least one selector")
            object.__setattr__(self, role, value)
        object.__setattr__(self, "surface_mode_params", tuple(self.surface_mode_params))

    def with_overrides(self, overrides: Mapping[str, Iterable[str]]) -> "LocatorSet":
        """Return a copy with the given roles replaced; unknown roles raise ``KeyError``."""
        known = {item.name for item in fields(self)}
        changes: dict[str, tuple[str, ...]] = {}
        for role, selectors in overrides.items():
            if role not in known:
                raise KeyError(f"Unknown locator role '{role}'")
            changes[role] = (selectors,) if isinstance(selectors, str) else tuple(selectors)
        return replace(self, **changes)

    def is_alternate_surface(self, url: str) -> bool:
        """True when ``url`` carries a mode parameter such as ``tbm=isch``."""
        query = parse_qs(urlsplit(url).query, keep_blank_values=True)
        return any(param in query for param in self.surface_mode_params)

    @staticmethod
    def surface_root(url: str) -> str:
        """Bare engine root (scheme and host) for ``url``."""
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"Cannot derive search engine root from '{url}'")
        return f"{parts.scheme}://{parts.netloc}"


DEFAULT_LOCATORS = LocatorSet()
