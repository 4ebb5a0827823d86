from collections import deque
from typing import Dict
import pyqtgraph as pg

SELF_COLOR = "#eab308"
OPPONENT_COLOR = "#88c0d0"


def setup_wpm_plot(plot_widget: pg.PlotWidget):
    plot_widget.setBackground(None)
    plot_widget.showGrid(x=False, y=True, alpha=0.15)
    plot_widget.setMenuEnabled(False)
    plot_widget.setMouseEnabled(x=False, y=False)
    plot_widget.hideButtons()
    plot_widget.setClipToView(True)
    plot_widget.setLabel('left', 'WPM')
    plot_widget.getAxis('bottom').setTicks([])
    plot_widget.addLegend(offset=(10, 10))


class RaceChart:
    """Live WPM lines for both racers, one point per stats update."""

    def __init__(self, plot_widget: pg.PlotWidget, maxlen: int = 2000):
        self.plot = plot_widget
        setup_wpm_plot(plot_widget)
        self._series: Dict[str, deque] = {}
        self._curves = {}
        self._maxlen = maxlen

    def _curve(self, key: str, label: str, color: str):
        if key not in self._curves:
            self._series[key] = deque(maxlen=self._maxlen)
            self._curves[key] = self.plot.plot([], [], name=label, pen=pg.mkPen(color, width=2.5), antialias=True)
        return self._curves[key]

    def add_point(self, key: str, wpm: float, label: str = "", color: str = SELF_COLOR):
        curve = self._curve(key, label or key, color)
        ys = self._series[key]
        ys.append(float(wpm))
        curve.setData(list(range(len(ys))), list(ys))

    def clear(self):
        for key, curve in self._curves.items():
            self._series[key].clear()
            curve.setData([], [])
