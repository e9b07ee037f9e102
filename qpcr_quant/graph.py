"""GraphGenerator — Plotly figures for standard curves and predictions.

Figures are built from the pipeline's return values (standard-curve points,
calibration model, prediction table) and returned to the caller to render.
"""

import numpy as np
import pandas as pd
import plotly.graph_objects as go

from qpcr_quant.constants import (
    FIT_LINE_COLOR,
    PLOTLY_FONT_FAMILY,
    STANDARD_COLOR,
    UNKNOWN_COLORS,
)


class GraphGenerator:
    @staticmethod
    def _empty_figure(message: str) -> go.Figure:
        fig = go.Figure()
        fig.add_annotation(text=message, showarrow=False)
        return fig

    @staticmethod
    def _apply_layout(fig: go.Figure, title: str, x_title: str, y_title: str, settings: dict = None):
        settings = settings or {}
        fig.update_layout(
            title=dict(text=title, font=dict(size=settings.get("title_size", 18))),
            xaxis=dict(title=x_title, showgrid=True, zeroline=False),
            yaxis=dict(title=y_title, showgrid=True, zeroline=False),
            template=settings.get("color_scheme", "plotly_white"),
            font=dict(family=PLOTLY_FONT_FAMILY, size=settings.get("font_size", 13)),
            height=settings.get("figure_height", 500),
            width=settings.get("figure_width", 800),
            showlegend=settings.get("show_legend", True),
        )

    @staticmethod
    def create_standard_curve_graph(
        standards: pd.DataFrame, model=None, settings: dict = None
    ) -> go.Figure:
        """Scatter of standard points (mean Cq vs mean log2 quantity) with the fitted line."""
        if standards is None or standards.empty:
            return GraphGenerator._empty_figure("No standards available")

        points = standards.dropna(subset=["mean_cq", "mean_cq_log2_qty"])
        if points.empty:
            return GraphGenerator._empty_figure("No standards with defined Cq and quantity")

        fig = go.Figure()
        fig.add_trace(
            go.Scatter(
                x=points["mean_cq"],
                y=points["mean_cq_log2_qty"],
                mode="markers+text",
                text=points["Sample"],
                textposition="top right",
                marker=dict(size=10, color=STANDARD_COLOR),
                name="Standards",
                hovertemplate="%{text}<br>Cq: %{x:.2f}<br>log2 qty: %{y:.3f}<extra></extra>",
            )
        )

        if model is not None:
            x_line = np.linspace(points["mean_cq"].min(), points["mean_cq"].max(), 50)
            fig.add_trace(
                go.Scatter(
                    x=x_line,
                    y=model.predict(x_line),
                    mode="lines",
                    line=dict(color=FIT_LINE_COLOR, width=2),
                    name=f"Fit (R²={model.r_squared:.4f})",
                    hoverinfo="skip",
                )
            )
            fig.add_annotation(
                xref="paper",
                yref="paper",
                x=0.98,
                y=0.98,
                xanchor="right",
                showarrow=False,
                align="right",
                text=(
                    f"y = {model.slope:.4f}x + {model.intercept:.4f}<br>"
                    f"R² = {model.r_squared:.4f}<br>"
                    f"Efficiency = {model.efficiency:.1%}"
                ),
            )

        GraphGenerator._apply_layout(fig, "Standard Curve", "Mean Cq", "Mean log2(Quantity)", settings)
        return fig

    @staticmethod
    def create_prediction_graph(
        predictions: pd.DataFrame, model=None, settings: dict = None
    ) -> go.Figure:
        """Unknowns placed on the calibration line, colored by range flag."""
        if predictions is None or predictions.empty:
            return GraphGenerator._empty_figure("No predictions available")

        fig = go.Figure()
        for flag, color in UNKNOWN_COLORS.items():
            subset = predictions[predictions["Outlier"] == flag]
            if subset.empty:
                continue
            fig.add_trace(
                go.Scatter(
                    x=subset["mean_cq"],
                    y=subset["fitted"],
                    mode="markers",
                    marker=dict(size=9, color=color, line=dict(width=1, color="#333333")),
                    name=f"Outlier: {flag}",
                    text=subset["Sample"],
                    customdata=np.stack([subset["fitted_conc"], subset["conc"]], axis=-1),
                    hovertemplate=(
                        "%{text}<br>Cq: %{x:.2f}<br>fitted log2: %{y:.3f}"
                        "<br>fitted conc: %{customdata[0]:.4g}<br>observed conc: %{customdata[1]:.4g}"
                        "<extra></extra>"
                    ),
                )
            )

        if model is not None:
            x_line = np.linspace(predictions["mean_cq"].min(), predictions["mean_cq"].max(), 50)
            fig.add_trace(
                go.Scatter(
                    x=x_line,
                    y=model.predict(x_line),
                    mode="lines",
                    line=dict(color=FIT_LINE_COLOR, width=1, dash="dash"),
                    name="Standard curve",
                    hoverinfo="skip",
                )
            )

        GraphGenerator._apply_layout(fig, "Predicted Unknowns", "Mean Cq", "Fitted log2(Quantity)", settings)
        return fig

    @staticmethod
    def create_observed_vs_fitted_graph(predictions: pd.DataFrame, settings: dict = None) -> go.Figure:
        """Observed (instrument) concentration against fitted concentration, log axes."""
        if predictions is None or predictions.empty:
            return GraphGenerator._empty_figure("No predictions available")

        fig = go.Figure()
        fig.add_trace(
            go.Scatter(
                x=predictions["conc"],
                y=predictions["fitted_conc"],
                mode="markers",
                text=predictions["Sample"],
                marker=dict(size=9, color=STANDARD_COLOR),
                name="Samples",
                hovertemplate="%{text}<br>observed: %{x:.4g}<br>fitted: %{y:.4g}<extra></extra>",
            )
        )

        values = pd.concat([predictions["conc"], predictions["fitted_conc"]])
        values = values[values > 0]
        if not values.empty:
            lo, hi = values.min(), values.max()
            fig.add_trace(
                go.Scatter(
                    x=[lo, hi],
                    y=[lo, hi],
                    mode="lines",
                    line=dict(color="#888888", dash="dot"),
                    name="y = x",
                    hoverinfo="skip",
                )
            )

        GraphGenerator._apply_layout(fig, "Observed vs Fitted Concentration", "Observed", "Fitted", settings)
        fig.update_xaxes(type="log")
        fig.update_yaxes(type="log")
        return fig
