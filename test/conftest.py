from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)


@pytest.fixture
def dat_file(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a (n_channels, n_frames) int array as a DAT recording."""
    from recording.dat_writer import write_dat

    counter = {"n": 0}

    def _write(samples, name: str | None = None) -> Path:
        counter["n"] += 1
        path = tmp_path / (name or f"recording_{counter['n']}.dat")
        write_dat(path, np.asarray(samples))
        return path

    return _write
