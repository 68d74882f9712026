from __future__ import annotations

from pathlib import Path
from typing import Union

from dotenv import find_dotenv, load_dotenv


PathLike = Union[str, Path]


def load_environment(dotenv_path: PathLike | None = None, *, override: bool = False) -> bool:
    """Populate ``os.environ`` from a .env file.

    When ``dotenv_path`` is omitted the nearest .env above the working
    directory is used. Returns False if no file could be found or loaded.
    """

    path = dotenv_path or find_dotenv(usecwd=True)
    if not path or not Path(path).is_file():
        return False

    return load_dotenv(dotenv_path=path, override=override)
