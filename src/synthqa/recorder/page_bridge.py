"""
Page Bridge - Connect a Playwright page to a RecordingSession.

An injected listener reports clicks and field changes back to Python through
an exposed function, together with the element's child-index path and a
snapshot of the document. The bridge rebuilds the event target from the
snapshot and hands it to the session, so selector generation runs on exactly
what the user saw.

The same bridge acts as the ``ReplayTarget`` when a recording is replayed in
the page.
"""

import json
import logging
from typing import Any, List, Optional

from synthqa.browsers.playwright_browser import driver_errors
from synthqa.locators.dom import element_at_path, parse_document
from synthqa.models.actions import Viewport
from synthqa.recorder.session import DomEvent, RecordingSession, ReplayTarget

logger = logging.getLogger(__name__)

BINDING_NAME = "__synthqaRecord"

LISTENER_JS = r"""
(() => {
    if (window.__synthqaListening) return;
    window.__synthqaListening = true;

    function pathOf(el) {
        const path = [];
        let node = el;
        while (node && node.parentNode && node !== document) {
            path.unshift(Array.prototype.indexOf.call(node.parentNode.children, node));
            node = node.parentNode;
        }
        return path;
    }

    function report(kind, el) {
        if (!el || el.nodeType !== 1 || typeof window.__synthqaRecord !== 'function') return;
        window.__synthqaRecord(JSON.stringify({
            kind: kind,
            path: pathOf(el),
            value: 'value' in el ? String(el.value) : null,
            checked: 'checked' in el ? Boolean(el.checked) : null,
            url: location.href,
            viewport: { width: window.innerWidth, height: window.innerHeight },
            html: document.documentElement.outerHTML,
        }));
    }

    document.addEventListener('click', (e) => report('click', e.target), true);
    document.addEventListener('change', (e) => report('change', e.target), true);
})();
"""

ELEMENT_JS = r"""
(path) => {
    let node = document;
    for (const index of path) {
        if (!node || !node.children[index]) return null;
        node = node.children[index];
    }
    return node;
}
"""

CLICK_JS = "(path) => { const el = (%s)(path); if (!el) throw new Error('Element not found'); el.click(); }" % ELEMENT_JS

SET_VALUE_JS = r"""
([path, value]) => {
    const el = (%s)(path);
    if (!el) throw new Error('Element not found');
    el.value = value;
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
}
""" % ELEMENT_JS

SET_CHECKED_JS = r"""
([path, checked]) => {
    const el = (%s)(path);
    if (!el) throw new Error('Element not found');
    if (el.checked !== checked) el.click();
}
""" % ELEMENT_JS


class PlaywrightPageBridge(ReplayTarget):
    """
    Bridges a raw Playwright page and a RecordingSession.

    Example:
        >>> bridge = PlaywrightPageBridge(page, session)
        >>> await bridge.install()
        >>> await session.start("rec-1", url=page.url)
    """

    def __init__(self, page: Any, session: RecordingSession, timeout_ms: int = 30000):
        self._page = page
        self.session = session
        self.timeout_ms = timeout_ms
        self._installed = False

    async def install(self) -> None:
        """Expose the callback, inject the listener and follow navigations."""
        if self._installed:
            return

        with driver_errors("record", None, self.timeout_ms):
            await self._page.expose_function(BINDING_NAME, self._on_event)
            await self._page.add_init_script(LISTENER_JS)
            await self._page.evaluate(LISTENER_JS)

        self._page.on("framenavigated", self._on_frame_navigated)
        self.session.target = self
        self._installed = True
        logger.debug("Recorder listener installed")

    async def _on_event(self, payload: str) -> None:
        try:
            data = json.loads(payload)
        except (TypeError, ValueError) as e:
            logger.warning(f"Dropping malformed recorder event: {e}")
            return

        target = None
        html = data.get("html")
        if html:
            target = element_at_path(parse_document(html), data.get("path") or [])

        await self.session.record_event(DomEvent(
            kind=data.get("kind", ""),
            target=target,
            value=data.get("value"),
            checked=data.get("checked"),
            url=data.get("url"),
            viewport=_viewport(data.get("viewport")),
        ))

    async def _on_frame_navigated(self, frame: Any) -> None:
        if frame != self._page.main_frame:
            return
        await self.session.record_event(DomEvent(kind="navigate", url=frame.url))

    async def current_url(self) -> str:
        return self._page.url

    async def snapshot(self) -> str:
        with driver_errors("snapshot", None, self.timeout_ms):
            return await self._page.evaluate("() => document.documentElement.outerHTML")

    async def navigate(self, url: str) -> None:
        with driver_errors("navigate", None, self.timeout_ms):
            await self._page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)

    async def click(self, path: List[int]) -> None:
        with driver_errors("click", None, self.timeout_ms):
            await self._page.evaluate(CLICK_JS, path)

    async def set_value(self, path: List[int], value: str) -> None:
        with driver_errors("type", None, self.timeout_ms):
            await self._page.evaluate(SET_VALUE_JS, [path, value])

    async def set_checked(self, path: List[int], checked: bool) -> None:
        with driver_errors("check", None, self.timeout_ms):
            await self._page.evaluate(SET_CHECKED_JS, [path, checked])


def _viewport(raw: Optional[dict]) -> Optional[Viewport]:
    if not raw:
        return None
    try:
        return Viewport(width=int(raw["width"]), height=int(raw["height"]))
    except (KeyError, TypeError, ValueError):
        return None
