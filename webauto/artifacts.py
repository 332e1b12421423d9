# webauto/artifacts.py
"""
@file artifacts.py
@brief Failure artifacts: page screenshot and page source.
"""

from __future__ import annotations

import io
import logging
import os
import re
import time
from typing import Any, Dict, Optional

from PIL import Image, UnidentifiedImageError

from .exceptions import SessionError

logger = logging.getLogger("webauto.artifacts")

_UNSAFE_CHARS = re.compile(r"[^\w.-]+")


def _ts() -> str:
    return time.strftime("%Y%m%d_%H%M%S")


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def safe_prefix(name: str) -> str:
    """File-name friendly version of an element or action name."""
    return _UNSAFE_CHARS.sub("_", name).strip("_") or "artifact"


def capture_page_image(session: Any, out_dir: str, name_prefix: str) -> Optional[str]:
    """
    Save the current viewport as PNG.
    Returns file path or None if the driver gives no usable image.
    """
    try:
        png = session.screenshot_png()
    except SessionError as e:
        logger.debug("Screenshot failed: %s", e)
        return None
    if not png:
        return None

    ensure_dir(out_dir)
    path = os.path.join(out_dir, f"{name_prefix}_{_ts()}.png")
    try:
        with Image.open(io.BytesIO(png)) as img:
            img.save(path, format="PNG")
    except (UnidentifiedImageError, OSError) as e:
        logger.debug("Could not save screenshot to %s: %s", path, e)
        return None
    return path


def dump_page_source(session: Any, out_dir: str, name_prefix: str) -> Optional[str]:
    """Write the page source with the URL as a leading comment."""
    try:
        source = session.page_source()
        url = session.current_url()
    except SessionError as e:
        logger.debug("Page source unavailable: %s", e)
        return None
    if not source:
        return None

    ensure_dir(out_dir)
    path = os.path.join(out_dir, f"{name_prefix}_{_ts()}.html")
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(f"<!-- url: {url} -->\n")
            f.write(source)
    except OSError as e:
        logger.debug("Could not write page source to %s: %s", path, e)
        return None
    return path


def make_artifacts(session: Any, out_dir: str, prefix: str) -> Dict[str, str]:
    """
    Returns dict like {"screenshot": "...", "source": "..."} (only those that succeed).
    """
    artifacts: Dict[str, str] = {}
    prefix = safe_prefix(prefix)
    img = capture_page_image(session, out_dir, prefix + "_screenshot")
    if img:
        artifacts["screenshot"] = img
    source = dump_page_source(session, out_dir, prefix + "_source")
    if source:
        artifacts["source"] = source
    return artifacts
