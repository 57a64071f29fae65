import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pandas as pd
import numpy as np

from utils.config import PlotTheme
from visualize.export import save_figure
from visualize.reproduction import plot_reproduction_number_static, reproduction_number_chart


def _estimate():
    return pd.DataFrame({
        'date': pd.date_range('2021-06-01', periods=5, freq='D'),
        'R': [1.2, 1.1, 1.0, 0.9, 0.8],
        'lower': [1.0, 0.95, 0.9, 0.8, 0.6],
        'upper': [1.4, 1.25, 1.1, 1.0, 1.0],
    })


def test_reproduction_number_chart():
    theme = PlotTheme(ribbon_color="rgba(0, 0, 0, 0.1)")
    fig = reproduction_number_chart(_estimate(), theme, title="R over time")

    assert fig.layout.title.text == "R over time"
    assert [trace.name for trace in fig.data] == ["Upper", "Confidence interval", "R"]
    assert fig.data[1].fill == "tonexty"
    assert fig.data[1].fillcolor == "rgba(0, 0, 0, 0.1)"
    assert np.allclose(fig.data[2].y, [1.2, 1.1, 1.0, 0.9, 0.8])
    # reference line at R = 1
    assert any(shape.y0 == 1 and shape.y1 == 1 for shape in fig.layout.shapes)


def test_static_png_is_written(tmp_path):
    path = plot_reproduction_number_static(_estimate(), tmp_path / "out" / "r.png", PlotTheme())
    assert path == tmp_path / "out" / "r.png"
    assert path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_save_figure(tmp_path):
    fig = reproduction_number_chart(_estimate(), PlotTheme())
    path = save_figure(fig, tmp_path / "figures", "reproduction_number")
    assert path == tmp_path / "figures" / "reproduction_number.html"
    assert "<html>" in path.read_text()
