"""Plotly figures for the cashflow and budget-vs-actual views.

Each function accepts the DataFrames produced by :mod:`budget_planner.cashflow`
and :mod:`budget_planner.variance` and returns a
``plotly.graph_objects.Figure`` that Streamlit can render via
``st.plotly_chart``.
"""

from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go


def create_cashflow_chart(frame: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Monthly net as bars with the running balance as a line.

    Parameters
    ----------
    frame : pandas.DataFrame
        Output of :func:`budget_planner.cashflow.cashflow_frame`.
    title : str, optional
        Chart title.
    """
    if frame.empty:
        fig = go.Figure()
        fig.update_layout(title="No data to display")
        return fig
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=frame["Month"],
        y=frame["Net"],
        name="Net",
        marker_color=["#2e7d32" if v >= 0 else "#c62828" for v in frame["Net"]],
    ))
    fig.add_trace(go.Scatter(
        x=frame["Month"],
        y=frame["Balance"],
        name="Balance",
        mode="lines+markers",
        connectgaps=False,
    ))
    fig.update_layout(
        title=title or "Cashflow",
        xaxis_title="Month",
        yaxis_title="Amount",
        barmode="relative",
    )
    return fig


def create_variance_chart(frame: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Annual difference per section; positive bars are favorable."""
    sections = frame[(frame["Level"] == "Section") & (frame["Type"] == "Diff")] if not frame.empty else frame
    if sections.empty:
        fig = go.Figure()
        fig.update_layout(title="No data to display")
        return fig
    plot_df = sections[["Name", "Total"]].copy()
    plot_df["Direction"] = plot_df["Total"].apply(
        lambda v: "Favorable" if v > 0 else ("Unfavorable" if v < 0 else "Neutral")
    )
    fig = px.bar(
        plot_df,
        x="Name",
        y="Total",
        color="Direction",
        color_discrete_map={"Favorable": "#2e7d32", "Unfavorable": "#c62828", "Neutral": "#9e9e9e"},
    )
    fig.update_layout(title=title or "Budget vs Actual", xaxis_title="Section", yaxis_title="Difference")
    return fig
