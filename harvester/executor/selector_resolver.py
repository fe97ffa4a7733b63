"""
SelectorResolver - projects rendered elements to strings.

Projection happens inside the page in one round trip so that a list which
re-renders between calls is read as a single consistent snapshot.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

# (element, attribute) -> string | null
_PROJECT_ELEMENT_JS = """
(el, attr) => {
    if (!attr || attr === "text") return (el.textContent || "").trim();
    if (attr === "html") return el.innerHTML;
    return el.getAttribute(attr);
}
"""

_PROJECT_ALL_JS = f"(elements, attr) => elements.map(el => ({_PROJECT_ELEMENT_JS})(el, attr))"

_ACTIVE_ELEMENT_JS = """
() => {
    const el = document.activeElement;
    if (!el) return null;
    return {
        tagName: el.tagName,
        id: el.id,
        className: typeof el.className === "string" ? el.className : "",
        name: el.getAttribute("name"),
        role: el.getAttribute("role"),
        value: el.value ?? null,
        textContent: (el.textContent || "").trim(),
    };
}
"""


class SelectorResolver:
    """Resolves selectors against a Playwright page and extracts values."""

    def __init__(self, page: Any) -> None:
        self.page = page

    async def project_all(self, selector: str, attribute: str | None = "text") -> list[str | None]:
        """Project every element matching ``selector`` (text, html or an attribute)."""
        values = await self.page.eval_on_selector_all(selector, _PROJECT_ALL_JS, attribute or "text")
        logger.debug(f"Projected {len(values)} elements for '{selector}' ({attribute})")
        return values

    async def project_one(self, selector: str, attribute: str | None = "text") -> str | None:
        """Project the first element matching ``selector``; raises if none matches."""
        return await self.page.eval_on_selector(selector, _PROJECT_ELEMENT_JS, attribute or "text")

    async def active_element(self) -> dict[str, Any] | None:
        """Descriptive attributes of the focused element, or None."""
        return await self.page.evaluate(_ACTIVE_ELEMENT_JS)
