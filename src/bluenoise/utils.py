# src/bluenoise/utils.py
from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
from PIL import Image

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover
    tomllib = None  # type: ignore


@dataclass
class MaskResult:
    """Common container for a generated mask and its run metadata."""

    values: Optional[np.ndarray] = None
    meta: Optional[Dict[str, Any]] = None

    def ensure_meta(self) -> Dict[str, Any]:
        if self.meta is None:
            self.meta = {}
        return self.meta


def now_str() -> str:
    return time.strftime("%Y%m%d-%H%M%S")


def save_mask_result(
    path: str | os.PathLike[str], result: MaskResult, *, overwrite: bool = True
) -> None:
    """Serialize a MaskResult to a compressed .npz file."""
    if not overwrite and Path(path).exists():
        raise FileExistsError(f"{path} already exists")
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    out: Dict[str, Any] = {}
    if result.values is not None:
        out["values"] = np.asarray(result.values, dtype=np.uint8)
    out["meta"] = json.dumps(result.meta or {})
    np.savez_compressed(path, **out)


def load_mask_result(path: str | os.PathLike[str]) -> MaskResult:
    """Load a .npz written by save_mask_result."""
    with np.load(path) as data:
        values = data["values"].astype(np.uint8) if "values" in data else None
        meta = json.loads(str(data["meta"])) if "meta" in data else {}
    return MaskResult(values=values, meta=meta)


def save_mask_png(path: str | os.PathLike[str], values: np.ndarray) -> None:
    """Write an (N, N) byte mask as an 8-bit grayscale PNG."""
    arr = np.asarray(values)
    if arr.ndim != 2:
        raise ValueError(f"mask must be 2-D, got shape {arr.shape}")
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(arr.astype(np.uint8)).save(path)


def load_mask_png(path: str | os.PathLike[str]) -> np.ndarray:
    return np.array(Image.open(path).convert("L"), dtype=np.uint8)


def load_params(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Load generator parameters from JSON or TOML.
    """
    path = str(path)
    with open(path, "rb") as fh:
        data = fh.read()
    suffix = Path(path).suffix.lower()
    if suffix in {".json", ""}:
        return json.loads(data.decode("utf-8"))
    if suffix in {".toml", ".tml"}:
        if tomllib is None:
            raise RuntimeError("tomllib is unavailable; cannot parse TOML files")
        return tomllib.loads(data.decode("utf-8"))
    raise ValueError(f"Unsupported parameter file format: {suffix}")
