# File: doc_scout/actions.py
"""doc_scout.actions: what a user does with discovered links.

* :func:`download_url` – save a document, falling back to a browser tab;
* :func:`copy_all` – put every URL on the clipboard, one per line.
"""

from __future__ import annotations

import asyncio
import webbrowser
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

import aiohttp

from doc_scout.logger import get_logger
from doc_scout.store import Item
from doc_scout.utils import file_name_from_url

__all__ = [
    "ClipboardUnavailable",
    "copy_all",
    "download_url",
    "system_clipboard",
    "unique_path",
]

logger = get_logger("actions")

COPIED_TEXT = "Copied all links"
NOTHING_TO_COPY_TEXT = "No links yet"
_CHUNK = 64 * 1024


class ClipboardUnavailable(RuntimeError):
    """No system clipboard could be reached."""


def unique_path(directory: Path, name: str) -> Path:
    """``directory/name``, or ``name (1).ext``, ``name (2).ext`` … if taken."""
    candidate = directory / name
    stem, suffix = candidate.stem, candidate.suffix
    n = 1
    while candidate.exists():
        candidate = directory / f"{stem} ({n}){suffix}"
        n += 1
    return candidate


async def download_url(
    url: str,
    session: Optional[aiohttp.ClientSession],
    dest_dir: Union[str, Path],
    *,
    opener: Callable[[str], object] = webbrowser.open_new_tab,
) -> Optional[Path]:
    """Save *url* into *dest_dir* under its display name.

    Returns the saved path. When there is no session or the download fails,
    the URL is handed to *opener* (a new browser tab) and ``None`` is returned.
    """
    name = file_name_from_url(url)
    if session is None:
        logger.info("No download session, opening %s", url)
        opener(url)
        return None

    directory = Path(dest_dir).expanduser()
    target: Optional[Path] = None
    try:
        directory.mkdir(parents=True, exist_ok=True)
        target = unique_path(directory, Path(name).name or "download")
        async with session.get(url, raise_for_status=True) as resp:
            with target.open("wb") as f:
                async for chunk in resp.content.iter_chunked(_CHUNK):
                    f.write(chunk)
    except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
        logger.warning("Download of %s failed (%s), opening it instead", url, exc)
        if target is not None:
            target.unlink(missing_ok=True)
        opener(url)
        return None
    logger.info("Saved %s to %s", url, target)
    return target


def system_clipboard(text: str) -> None:
    """Place *text* on the system clipboard through Tk."""
    try:
        import tkinter as tk
    except ImportError as exc:
        raise ClipboardUnavailable("tkinter is not available") from exc
    try:
        root = tk.Tk()
    except tk.TclError as exc:
        raise ClipboardUnavailable(f"no display: {exc}") from exc
    try:
        root.withdraw()
        root.clipboard_clear()
        root.clipboard_append(text)
        root.update()
    finally:
        root.destroy()


def copy_all(
    items: Iterable[Item],
    clipboard: Callable[[str], None] = system_clipboard,
    notify: Callable[[str], None] = logger.info,
) -> str:
    """Copy every URL, one per line; return the copied text."""
    text = "\n".join(item.url for item in items)
    clipboard(text)
    notify(COPIED_TEXT if text else NOTHING_TO_COPY_TEXT)
    return text
