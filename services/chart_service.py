"""
services/chart_service.py
--------------------------
Renders the category breakdown as a donut chart.
Uses matplotlib and returns PNG images as BytesIO buffers.
"""

import io
from typing import Sequence

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend for server use
import matplotlib.pyplot as plt

from config import CURRENCY_SYMBOL
from models.expense import Expense
from services.metrics_service import ranked_categories, total_spent
from utils.logger import get_logger

logger = get_logger(__name__)

# Black & green theme of the mobile app
_BACKGROUND = "#000000"
_TEXT = "#FFFFFF"
_COLORS = [
    "#00C853", "#5EFC82", "#00A843", "#FFB800",
    "#4ECDC4", "#45B7D1", "#96CEB4", "#F7DC6F",
    "#BB8FCE", "#85C1E9", "#F1948A", "#82E0AA",
]


class ChartService:
    """Generates visual charts for the reports view."""

    def __init__(self, currency_symbol: str = CURRENCY_SYMBOL):
        self.currency_symbol = currency_symbol

    def category_pie(self, records: Sequence[Expense]) -> io.BytesIO | None:
        """
        Draw spending per category, largest first.

        Returns:
            BytesIO buffer with a PNG image, or None if there are no expenses.
        """
        shares = ranked_categories(records)
        if not shares:
            return None

        labels = [s.category for s in shares]
        values = [s.amount for s in shares]
        total = total_spent(records)
        colors = [_COLORS[i % len(_COLORS)] for i in range(len(values))]

        fig, ax = plt.subplots(figsize=(8, 6), facecolor=_BACKGROUND)
        ax.set_facecolor(_BACKGROUND)

        wedges, _, autotexts = ax.pie(
            values,
            labels=None,
            autopct=lambda pct: f"{pct:.1f}%",
            colors=colors,
            startangle=90,
            pctdistance=0.78,
            wedgeprops=dict(width=0.45, edgecolor=_BACKGROUND, linewidth=2),
        )
        for autotext in autotexts:
            autotext.set_color(_BACKGROUND)
            autotext.set_fontsize(9)
            autotext.set_fontweight("bold")

        legend = ax.legend(
            wedges,
            [f"{l}: {self.currency_symbol}{v:,.2f}" for l, v in zip(labels, values)],
            loc="center left",
            bbox_to_anchor=(1, 0, 0.5, 1),
            fontsize=10,
            frameon=False,
        )
        for text in legend.get_texts():
            text.set_color(_TEXT)

        ax.set_title(
            f"Category Breakdown\nTotal: {self.currency_symbol}{total:,.2f}",
            fontsize=14,
            fontweight="bold",
            color=_TEXT,
            pad=20,
        )

        plt.tight_layout()

        buf = io.BytesIO()
        fig.savefig(buf, format="png", dpi=150, bbox_inches="tight",
                    facecolor=fig.get_facecolor())
        buf.seek(0)
        plt.close(fig)

        logger.info(f"Generated category chart for {len(shares)} categories")
        return buf
