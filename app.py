import json
import time

import streamlit as st

# ---- Local modules ----
from analytics.adherence import AdherenceLedger
from analytics.history import build_weekly_adherence, recent_history, streak_lengths
from clients.local_store import open_stores
from routine.catalog import ExerciseCatalog
from routine.engine import RoutineEngine
from tabs import calendar_tab, exercises_tab, routine_tab
from utils.scheduler import SystemClock, WallClockScheduler
from utils.secrets import load_config

FEATURE_FLAGS = {
    "calendar": True,
    "data_tab": True,
}


# =========================================================
# Session objects
# =========================================================
def init_session() -> None:
    """Build catalog, ledger and engine once per browser session."""
    if "engine" in st.session_state:
        return

    cfg = load_config()
    stores = open_stores(cfg.data_dir, warn=st.warning)
    clock = SystemClock()

    catalog = ExerciseCatalog(stores["exercises"], warn=st.warning)
    catalog.load()

    ledger = AdherenceLedger(stores["calendar"], clock=clock, warn=st.warning)
    ledger.load()

    engine = RoutineEngine(
        catalog,
        ledger,
        WallClockScheduler(),
        clock=clock,
        settings=stores["settings"],
        lead_in=cfg.lead_in_seconds,
    )
    engine.load_settings()
    engine.subscribe(routine_tab.queue_event)

    st.session_state["config"] = cfg
    st.session_state["catalog"] = catalog
    st.session_state["ledger"] = ledger
    st.session_state["engine"] = engine


def render_data_tab(ledger: AdherenceLedger, catalog: ExerciseCatalog, days: int) -> None:
    st.header("Data & history")

    history = recent_history(ledger, catalog.exercises, days=days)
    if history.empty:
        st.info("No history yet.")
        return

    current, longest = streak_lengths(history["on_target"])
    c1, c2, c3 = st.columns(3)
    c1.metric("Current green streak", f"{current} d")
    c2.metric("Longest green streak", f"{longest} d")
    c3.metric("Days logged", int(history["any_logged"].sum()))

    weekly = build_weekly_adherence(history)
    if not weekly.empty:
        st.subheader("Weekly adherence")
        st.dataframe(weekly, use_container_width=True, hide_index=True)

    st.subheader(f"Last {days} days")
    st.dataframe(history.sort_values("date", ascending=False), use_container_width=True, hide_index=True)

    with st.expander("Debug: raw stored data"):
        st.code(json.dumps({"exercises": [ex.to_dict() for ex in catalog]}, indent=2), language="json")
        st.code(json.dumps({"calendar": ledger.to_dict()}, indent=2), language="json")


# =========================================================
# UI
# =========================================================
def main():
    st.set_page_config(page_title="Routine Timer", layout="wide")
    try:
        init_session()
    except Exception as exc:
        st.error(f"Could not start the routine timer: {exc}")
        st.stop()

    engine: RoutineEngine = st.session_state["engine"]
    catalog: ExerciseCatalog = st.session_state["catalog"]
    ledger: AdherenceLedger = st.session_state["ledger"]
    cfg = st.session_state["config"]

    # fire every countdown tick that came due since the last rerun
    engine.scheduler.catch_up()

    st.title("Routine Timer")
    routine_view, calendar_view, exercises_view, data_view = st.tabs(
        ["Routine", "Calendar", "Exercises", "Data"]
    )

    with routine_view:
        try:
            routine_tab.render(engine)
        except Exception as exc:
            st.error(f"Routine tab error: {exc}")

    with calendar_view:
        if not FEATURE_FLAGS["calendar"]:
            st.info("Calendar is disabled by configuration.")
        else:
            try:
                calendar_tab.render(ledger, catalog)
            except Exception as exc:
                st.error(f"Calendar tab error: {exc}")

    with exercises_view:
        try:
            exercises_tab.render(catalog, default_duration=cfg.default_duration)
        except Exception as exc:
            st.error(f"Exercises tab error: {exc}")

    with data_view:
        if not FEATURE_FLAGS["data_tab"]:
            st.info("Data tab is disabled by configuration.")
        else:
            try:
                render_data_tab(ledger, catalog, cfg.history_days)
            except Exception as exc:
                st.error(f"Data tab error: {exc}")

    # keep the countdown moving; each rerun catches the scheduler up
    if routine_tab.is_ticking(engine):
        time.sleep(1)
        st.rerun()


if __name__ == '__main__':
    main()
