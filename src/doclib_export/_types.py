"""Type aliases used throughout doclib_export."""

from __future__ import annotations

import os  # noqa: TC003
from collections.abc import Callable
from pathlib import Path
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]  # noqa: UP007
ConfirmCallback = Callable[[str, Path], bool]
BackendOptions = dict[str, object]
