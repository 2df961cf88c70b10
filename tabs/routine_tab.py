# tabs/routine_tab.py
import streamlit as st

from routine.engine import Phase, RoutineEngine
from utils.formatting import plural

EVENT_TOASTS = {
    "exercise_started": "Go!",
    "rep_completed": "Exercise finished",
    "exercise_stopped": "Stopped",
}


def is_ticking(engine: RoutineEngine) -> bool:
    return engine.state.phase in (Phase.LEADIN, Phase.RUNNING)


def queue_event(event: str, _state) -> None:
    """Engine listener: park events for the next render (toasts stand in for sounds)."""
    if event in EVENT_TOASTS:
        st.session_state.setdefault("routine_events", []).append(event)


def _flush_toasts() -> None:
    for event in st.session_state.pop("routine_events", []):
        st.toast(EVENT_TOASTS[event])


def _render_idle(engine: RoutineEngine) -> None:
    count = len(engine.catalog)
    if count == 0:
        st.info("Add an exercise in the Exercises tab to build your routine.")
        return
    st.write(f"{plural(count, 'exercise')} in your routine.")
    if st.button("Begin Session", type="primary"):
        engine.begin_pass()
        st.rerun()


def _render_controls(engine: RoutineEngine) -> None:
    phase = engine.state.phase
    c_start, c_stop, c_next = st.columns(3)

    with c_start:
        if phase == Phase.CHECKOFF:
            label = "Unmark Completion" if engine.checkoff_done() else "Mark Done Today"
            if st.button(label, use_container_width=True):
                engine.toggle_checkoff()
                st.rerun()
        elif phase in (Phase.STOPPED, Phase.DONE):
            if st.button("Start", type="primary", use_container_width=True):
                engine.start()
                st.rerun()

    with c_stop:
        if phase in (Phase.LEADIN, Phase.RUNNING):
            if st.button("Stop", use_container_width=True):
                engine.stop()
                st.rerun()

    with c_next:
        if phase in (Phase.DONE, Phase.CHECKOFF, Phase.STOPPED) and engine.is_current_target_met():
            if st.button("Next", use_container_width=True):
                engine.advance()
                st.rerun()


def render(engine: RoutineEngine):
    st.header("Routine")
    _flush_toasts()

    state = engine.state
    if state.phase == Phase.IDLE:
        _render_idle(engine)
        return

    ex = engine.current_exercise
    if ex is None:
        engine.go_idle()
        st.rerun()
        return

    if state.routine_complete:
        if engine.has_timed_exercises():
            st.success("Routine complete. Today's session has been logged.")
        else:
            st.success("Routine complete.")
        if st.button("Done"):
            engine.go_idle()
            st.rerun()
        return

    idx = state.current_index
    st.subheader(f"{idx + 1:02d} · {ex.name}")
    st.caption(f"{idx + 1} of {len(engine.catalog)}")
    if ex.image:
        st.image(ex.image, use_container_width=True)
    if ex.description:
        st.write(ex.description)

    st.markdown(f"## {engine.display_text()}")
    st.caption(engine.status_text())
    st.progress(engine.progress_ratio())

    done, target = engine.rep_progress()
    if target > 1:
        st.caption(f"Rep {done} / {target}")

    _render_controls(engine)

    if ex.use_timer:
        editable = state.phase in (Phase.STOPPED, Phase.DONE)
        c_dur, c_lead = st.columns(2)
        with c_dur:
            duration = st.number_input(
                "Duration (s)", min_value=5, value=int(ex.duration), step=5, disabled=not editable,
                key=f"routine_duration_{ex.id}_{ex.duration}",
            )
            if editable and duration != ex.duration and engine.set_duration(duration):
                st.rerun()
        with c_lead:
            lead_in = st.number_input(
                "Lead-in (s)", min_value=0, value=int(engine.lead_in), step=1, disabled=not editable,
                key="routine_lead_in",
            )
            if editable and lead_in != engine.lead_in:
                engine.set_lead_in(lead_in)

    with st.expander("Jump to exercise"):
        names = [f"{i + 1}. {e.name}" for i, e in enumerate(engine.catalog)]
        choice = st.selectbox(
            "Exercise", range(len(names)), index=idx, format_func=lambda i: names[i], key=f"jump_{idx}",
        )
        if choice != idx and st.button("Go", key="jump_go"):
            engine.load_slot(choice)
            st.rerun()
