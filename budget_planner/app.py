"""Streamlit front end for the budget planner.

Run with ``streamlit run budget_planner/app.py`` or ``python run_budget_planner.py``.
"""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path
from concurrent.futures import Future
from typing import Dict, Iterable, List, Optional

import pandas as pd
import streamlit as st

# Ensure package imports resolve when Streamlit runs this file as a script
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from budget_planner import db
from budget_planner.cashflow import cashflow_frame, compute_cashflow
from budget_planner.config import configure_logging
from budget_planner.errors import BudgetError
from budget_planner.formatting import format_cell, format_currency, format_difference
from budget_planner.models import MONTH_LABELS, MONTHS, ActualsCutoff, CashflowAnchor, Section, find_component, iter_components
from budget_planner.rollup import compute_rollup, rollup_frame
from budget_planner.session import ACTUAL, BUDGET, EditSessionController
from budget_planner.variance import compute_variance, variance_frame
from budget_planner.visualization import create_cashflow_chart, create_variance_chart

VIEWS = ("Budget", "Cashflow", "Budget vs Actual")
CONTROLLER_KEYS = {BUDGET: 'budget_edit_controller', ACTUAL: 'actual_edit_controller'}


def main() -> None:
    st.set_page_config(page_title="Budget Planner", page_icon="📒", layout="wide")
    configure_logging()
    store = _get_store()

    year, view = _render_sidebar(store)
    hierarchy = store.get_hierarchy()
    budget_values = store.get_period_values(year)

    st.header(f"📒 Budget {year}")
    if not hierarchy:
        st.info("The budget is empty. Add sections, groups and components to get started.")
        return

    rollup = compute_rollup(hierarchy, budget_values, year)

    if view == "Budget":
        st.dataframe(_display_frame(rollup_frame(hierarchy, rollup)), use_container_width=True, hide_index=True)
    elif view == "Cashflow":
        anchor = store.get_cashflow_anchor()
        balances = compute_cashflow(rollup.grand_monthly, anchor, year)
        frame = cashflow_frame(rollup.grand_monthly, balances)
        st.caption(
            f"Starting balance {format_currency(anchor.starting_balance)} from "
            f"{MONTH_LABELS[anchor.starting_month - 1]} {anchor.starting_year}."
        )
        st.plotly_chart(create_cashflow_chart(frame, title=f"Cashflow {year}"), use_container_width=True)
        st.dataframe(_display_frame(frame, columns=['Net', 'Balance']), use_container_width=True, hide_index=True)
    else:
        cutoff = store.get_actuals_cutoff()
        actual_values = store.get_actual_values(year)
        variance = compute_variance(hierarchy, budget_values, actual_values, year)
        frame = variance_frame(hierarchy, variance)
        st.caption(f"Actuals reviewed through {MONTH_LABELS[cutoff.cutoff_month - 1]} {cutoff.cutoff_year}.")
        st.plotly_chart(create_variance_chart(frame, title=f"Budget vs Actual {year}"), use_container_width=True)
        st.dataframe(_variance_display(frame), use_container_width=True, hide_index=True)

    _render_editor(store, hierarchy, year, default_kind=ACTUAL if view == "Budget vs Actual" else BUDGET)


def _get_store() -> db.BudgetStore:
    return db.get_store()


def _rerun() -> None:
    rerun_fn = getattr(st, 'rerun', None) or getattr(st, 'experimental_rerun', None)
    if rerun_fn:
        rerun_fn()


def _ensure_controller(store, year: int, value_kind: str = BUDGET) -> EditSessionController:
    """One controller per value kind, kept across reruns and moved to ``year``."""
    key = CONTROLLER_KEYS[value_kind]
    controller = st.session_state.get(key)
    if controller is None or controller.store is not store:
        if controller is not None:
            controller.close()
        controller = EditSessionController(store, year, value_kind=value_kind)
        st.session_state[key] = controller
    controller.set_year(year)
    return controller


def _component_options(hierarchy: List[Section]) -> Dict[int, str]:
    return {
        component.id: f"{section.name} › {group.name} › {component.name}"
        for section, group, component in iter_components(hierarchy)
    }


def _display_frame(frame: pd.DataFrame, columns: Optional[List[str]] = None) -> pd.DataFrame:
    shown = frame.drop(columns=[c for c in ('Id',) if c in frame.columns]).copy()
    for column in columns or [*MONTH_LABELS, 'Total']:
        shown[column] = shown[column].apply(format_cell)
    return shown


def _variance_display(frame: pd.DataFrame) -> pd.DataFrame:
    shown = frame.drop(columns=['Id']).copy()
    is_diff = shown['Type'] == 'Diff'
    for column in [*MONTH_LABELS, 'Total']:
        shown[column] = [
            format_difference(value) if diff_row else format_cell(value)
            for value, diff_row in zip(frame[column], is_diff)
        ]
    return shown


def _render_sidebar(store) -> tuple[int, str]:
    with st.sidebar:
        this_year = date.today().year
        year = int(st.number_input("Year", min_value=1900, max_value=2999, value=st.session_state.get('year', this_year), step=1))
        st.session_state['year'] = year
        view = st.radio("View", VIEWS, key='view')

        with st.expander("Cashflow settings"):
            anchor = store.get_cashflow_anchor()
            balance = st.number_input("Starting balance", value=float(anchor.starting_balance), step=100.0)
            start_year = st.number_input("Starting year", min_value=1900, max_value=2999, value=anchor.starting_year, step=1)
            start_month = st.selectbox(
                "Starting month", MONTHS, index=anchor.starting_month - 1,
                format_func=lambda m: MONTH_LABELS[m - 1],
            )
            if st.button("Save cashflow settings"):
                store.set_cashflow_anchor(CashflowAnchor(float(balance), int(start_year), int(start_month)))
                st.success("Cashflow settings saved")

        with st.expander("Actuals cutoff"):
            cutoff = store.get_actuals_cutoff()
            cutoff_year = st.number_input("Cutoff year", min_value=1900, max_value=2999, value=cutoff.cutoff_year, step=1)
            cutoff_month = st.selectbox(
                "Cutoff month", MONTHS, index=cutoff.cutoff_month - 1,
                format_func=lambda m: MONTH_LABELS[m - 1],
            )
            if st.button("Save cutoff"):
                store.set_actuals_cutoff(ActualsCutoff(int(cutoff_year), int(cutoff_month)))
                st.success("Cutoff saved")
    return year, view


def _cell_text(amount: float) -> str:
    if amount == 0:
        return ''
    return f"{amount:f}".rstrip('0').rstrip('.')


def _on_cell_change(controller: EditSessionController, month: int, key: str) -> None:
    amount = controller.apply_keystroke(month, st.session_state.get(key, ''))
    st.session_state[key] = _cell_text(amount)


def _on_note_change(controller: EditSessionController, month: int, key: str) -> None:
    controller.set_note(month, st.session_state.get(key, ''))


def _render_editor(store, hierarchy: List[Section], year: int, default_kind: str = BUDGET) -> None:
    st.subheader("✏️ Edit values")
    options = _component_options(hierarchy)
    kinds = (BUDGET, ACTUAL)
    value_kind = st.radio(
        "Values", kinds, index=kinds.index(default_kind), horizontal=True,
        format_func=lambda k: "Budget" if k == BUDGET else "Actual",
    )
    component_id = st.selectbox(
        "Component", [None, *options.keys()],
        format_func=lambda cid: "(select a component)" if cid is None else options[cid],
    )
    other = st.session_state.get(CONTROLLER_KEYS[ACTUAL if value_kind == BUDGET else BUDGET])
    saves = [other.commit()] if other is not None else []
    controller = _ensure_controller(store, year, value_kind)
    if component_id is None:
        saves.append(controller.commit())
    else:
        saves.append(controller.begin_edit(component_id))
    # Tables above were built before these saves; redraw once they land.
    if _settle(saves):
        _rerun()
        return
    if component_id is None:
        return
    prefix = f"{value_kind}_{component_id}_{year}"
    previous = st.session_state.get('editing_prefix')
    if previous and previous != prefix:
        _clear_cell_state(previous)
    st.session_state['editing_prefix'] = prefix

    cells = st.columns(12)
    for month, column in zip(MONTHS, cells):
        key = f"cell_{prefix}_{month}"
        if key not in st.session_state:
            st.session_state[key] = _cell_text(controller.values.get(month, 0.0))
        column.text_input(
            MONTH_LABELS[month - 1], key=key,
            on_change=_on_cell_change, args=(controller, month, key),
        )
    total = sum(controller.values.values())
    st.caption(f"Total {format_cell(total)}" + (" • unsaved changes" if controller.dirty or controller.notes_dirty else ""))

    with st.expander("Notes"):
        for month in MONTHS:
            key = f"note_{prefix}_{month}"
            if key not in st.session_state:
                st.session_state[key] = controller.notes.get(month, '')
            st.text_input(MONTH_LABELS[month - 1], key=key, on_change=_on_note_change, args=(controller, month, key))

    paste_col, fill_col = st.columns(2)
    with paste_col:
        _render_paste(controller, prefix)
    with fill_col:
        _render_fill(controller, prefix)

    _render_toggles(store, hierarchy, component_id)

    if st.button("💾 Save", key=f"save_{prefix}"):
        if _settle([controller.commit()]):
            st.success("Saved")
        _clear_cell_state(prefix)
        _rerun()


def _render_paste(controller: EditSessionController, prefix: str) -> None:
    st.markdown("**Paste from spreadsheet**")
    text = st.text_area("Tab-separated row", key=f"paste_{prefix}", height=68)
    start = st.selectbox("Starting month", MONTHS, key=f"paste_start_{prefix}", format_func=lambda m: MONTH_LABELS[m - 1])
    if not text:
        return
    preview = controller.preview_paste(text, start)
    for warning in preview.warnings:
        st.warning(warning)
    st.dataframe(controller.paste_preview_frame(preview), hide_index=True)
    if preview.affected_months and st.button("Apply paste", key=f"apply_paste_{prefix}"):
        controller.apply_paste(text, start)
        _clear_cell_state(prefix)
        _rerun()


def _render_fill(controller: EditSessionController, prefix: str) -> None:
    st.markdown("**Fill range**")
    source = st.selectbox("Copy from", MONTHS, key=f"fill_source_{prefix}", format_func=lambda m: MONTH_LABELS[m - 1])
    target = st.selectbox("Through", MONTHS, key=f"fill_target_{prefix}", format_func=lambda m: MONTH_LABELS[m - 1])
    if st.button("Fill", key=f"fill_{prefix}") and controller.apply_fill_drag(source, target):
        _clear_cell_state(prefix)
        _rerun()


def _render_toggles(store, hierarchy: List[Section], component_id: int) -> None:
    found = find_component(hierarchy, component_id)
    if found is None:
        return
    _section, group, component = found
    col_group, col_component = st.columns(2)
    group_off = col_group.checkbox(f"Exclude group “{group.name}”", value=group.disabled, key=f"group_off_{group.id}")
    component_off = col_component.checkbox("Exclude component", value=component.disabled, key=f"component_off_{component.id}")
    if group_off != group.disabled:
        store.set_group_disabled(group.id, group_off)
        _rerun()
    if component_off != component.disabled:
        store.set_component_disabled(component.id, component_off)
        _rerun()


def _settle(saves: Iterable[Optional[Future]]) -> bool:
    """Wait for dispatched saves; True when at least one succeeded. Failures are shown."""
    saved = False
    for future in saves:
        if future is None:
            continue
        try:
            future.result()
            saved = True
        except BudgetError as exc:
            st.error(str(exc))
    return saved


def _clear_cell_state(prefix: str) -> None:
    """Drop cached widget values so the cells re-read the controller buffer."""
    stale = [
        k for k in st.session_state.keys()
        if isinstance(k, str) and k.startswith((f"cell_{prefix}_", f"note_{prefix}_"))
    ]
    for key in stale:
        del st.session_state[key]


if __name__ == "__main__":
    main()
