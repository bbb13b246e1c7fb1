# censusviz/output.py
# Where chart scripts write: PNGs in OUT_DIR, self-contained HTML in OUT_DIR/html.
from __future__ import annotations
from pathlib import Path
import os

import plotly.graph_objects as go

OUT_DIR = Path(os.getenv("CENSUSVIZ_OUT_DIR", "plots"))


def save_figure(fig: go.Figure, stem: str, png: bool = True, html: bool = True,
                width: int | None = None, height: int | None = None, scale: float = 2.0,
                out_dir: Path | None = None) -> list[Path]:
    out_dir = Path(out_dir or OUT_DIR)
    written = []
    if png:
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / f"{stem}.png"
        fig.write_image(path, width=width, height=height, scale=scale)
        written.append(path)
    if html:
        (out_dir / "html").mkdir(parents=True, exist_ok=True)
        path = out_dir / "html" / f"{stem}.html"
        fig.write_html(path, include_plotlyjs=True, full_html=True)
        written.append(path)
    return written
