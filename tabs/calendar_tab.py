# tabs/calendar_tab.py
from datetime import date

import streamlit as st

from analytics.adherence import AdherenceLedger, shift_month, to_date
from analytics.history import build_history_frame, month_bounds
from routine.catalog import ExerciseCatalog

STATUS_ICONS = {"green": "🟢", "yellow": "🟡", "red": "🔴", "none": "⚪"}
WEEKDAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def _month_nav(ledger: AdherenceLedger) -> tuple[int, int]:
    today = ledger.clock.today()
    year, month = st.session_state.get("calendar_month", (today.year, today.month))

    c_prev, c_label, c_today, c_next = st.columns([1, 3, 1, 1])
    with c_prev:
        if st.button("◀", key="cal_prev"):
            year, month = shift_month(year, month, -1)
    with c_today:
        if st.button("Today", key="cal_today"):
            year, month = today.year, today.month
            st.session_state["calendar_selected"] = today
    with c_next:
        if st.button("▶", key="cal_next"):
            year, month = shift_month(year, month, 1)
    with c_label:
        st.subheader(date(year, month, 1).strftime("%B %Y"))

    st.session_state["calendar_month"] = (year, month)
    return year, month


def _render_grid(ledger: AdherenceLedger, catalog: ExerciseCatalog, year: int, month: int, selected: date) -> None:
    grid = ledger.month_grid(year, month, catalog.exercises, selected=selected)

    header = st.columns(7)
    for col, label in zip(header, WEEKDAY_LABELS):
        col.caption(label)

    for _week, week_rows in grid.groupby("week"):
        cols = st.columns(7)
        for _, row in week_rows.iterrows():
            icon = STATUS_ICONS.get(row["status"], "")
            label = f"{icon} {row['day']}"
            if row["total_exercises"]:
                label += f"  {row['exercises_on_target']}/{row['total_exercises']}"
            with cols[int(row["weekday"])]:
                if st.button(
                    label,
                    key=f"cal_{row['date'].isoformat()}",
                    type="primary" if row["is_selected"] else "secondary",
                    use_container_width=True,
                ):
                    st.session_state["calendar_selected"] = row["date"]
                    st.rerun()


def render(ledger: AdherenceLedger, catalog: ExerciseCatalog):
    st.header("Calendar")

    year, month = _month_nav(ledger)
    selected = to_date(st.session_state.get("calendar_selected", ledger.clock.today()))

    _render_grid(ledger, catalog, year, month, selected)

    first, last = month_bounds(year, month)
    month_hist = build_history_frame(ledger, catalog.exercises, first, last)
    tracked = month_hist[month_hist["status"] != "none"]
    if not tracked.empty:
        st.caption(f"{int(tracked['on_target'].sum())} of {len(tracked)} days on target this month")

    summary = ledger.summarize(selected, catalog.exercises)
    st.subheader(selected.strftime("%A %d %B %Y"))
    c1, c2, c3 = st.columns(3)
    c1.metric("Exercises on target", f"{summary.exercises_on_target} / {summary.total_exercises}")
    c2.metric("Timed sessions", summary.timed_sessions_logged)
    c3.metric("Exercise sessions", summary.total_exercise_sessions)

    rows = ledger.exercise_rows(selected, catalog.exercises)
    if rows.empty:
        st.info("No exercises yet.")
        return
    st.dataframe(
        rows[["name", "kind", "sessions", "target", "done"]],
        use_container_width=True,
        hide_index=True,
    )

    if ledger.is_future(selected):
        return
    for ex in catalog:
        if ex.use_timer:
            continue
        done = ledger.is_checkoff_completed(selected, ex.id)
        label = f"{'Unmark Completion' if done else 'Mark Done'}: {ex.name}"
        if st.button(label, key=f"toggle_{ex.id}_{selected.isoformat()}"):
            ledger.set_checkoff_completed(selected, ex.id, not done)
            st.rerun()
