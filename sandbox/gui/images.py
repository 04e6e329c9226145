from functools import lru_cache
from pathlib import Path
from typing import Any
from urllib.parse import urlparse
import tkinter as tk

from PIL import Image, ImageTk

from sandbox.gui.constants import CARD_H, CARD_W


def local_image_path(image_url: str | None, image_dir: Path | None = None) -> Path | None:
    """
    Map a card's image reference to a file on disk.

    Remote URLs resolve to a file of the same basename inside ``image_dir``
    (e.g. a folder of downloaded ``OGN-253.jpg`` scans); anything else is
    treated as a path.
    """
    if not image_url:
        return None
    parsed = urlparse(image_url)
    if parsed.scheme in ("http", "https"):
        if image_dir is None:
            return None
        candidate = Path(image_dir) / Path(parsed.path).name
    else:
        candidate = Path(image_url).expanduser()
    return candidate if candidate.is_file() else None


@lru_cache
def load_image(
    path: Path | str | None,
    rotation: int = 0,
    master: tk.Misc | None = None,
    size: tuple[int, int] = (CARD_W, CARD_H),
) -> Any | None:
    if not path:
        return None
    try:
        img = Image.open(str(path))
        resample = getattr(Image, "LANCZOS", None)
        img = img.resize(size) if resample is None else img.resize(size, resample)
        if rotation:
            # Tk angles run clockwise, PIL's counter-clockwise
            img = img.rotate(-rotation, expand=True)
        return ImageTk.PhotoImage(img, master=master)
    except OSError:
        return None
