# tabs/exercises_tab.py
import base64

import streamlit as st

from data_model import ExerciseValidationError, build_exercise
from routine.catalog import ExerciseCatalog
from utils.formatting import format_time


def _image_data_url(upload) -> str | None:
    if upload is None:
        return None
    mime = upload.type or "image/jpeg"
    return f"data:{mime};base64," + base64.b64encode(upload.getvalue()).decode("ascii")


def _render_add_form(catalog: ExerciseCatalog, default_duration: int) -> None:
    with st.form("add_exercise", clear_on_submit=True):
        st.subheader("Add exercise")
        name = st.text_input("Name", key="add_name")
        description = st.text_area("Description", key="add_description")
        use_timer = st.checkbox("Use timer", value=True, key="add_use_timer")
        c1, c2, c3 = st.columns(3)
        duration = c1.number_input("Duration (s)", min_value=5, value=default_duration, step=5, key="add_duration")
        reps = c2.number_input("Reps per session", min_value=1, value=1, step=1, key="add_reps")
        sets = c3.number_input("Sessions per day", min_value=1, value=1, step=1, key="add_sets")
        upload = st.file_uploader("Image", type=["jpg", "jpeg", "png", "gif", "webp"], key="add_image")
        if st.form_submit_button("Add"):
            try:
                ex = build_exercise(
                    name,
                    description,
                    use_timer=use_timer,
                    duration=duration,
                    reps=reps,
                    sets=sets,
                    image=_image_data_url(upload),
                )
            except ExerciseValidationError as exc:
                st.error(str(exc))
                return
            catalog.add(ex)
            st.success(f"Added {ex.name}")


def _render_edit_form(catalog: ExerciseCatalog, index: int) -> None:
    ex = catalog[index]
    k = f"edit_{ex.id}"
    with st.form(k):
        name = st.text_input("Name", value=ex.name, key=f"{k}_name")
        description = st.text_area("Description", value=ex.description, key=f"{k}_description")
        use_timer = st.checkbox("Use timer", value=ex.use_timer, key=f"{k}_use_timer")
        c1, c2, c3 = st.columns(3)
        duration = c1.number_input("Duration (s)", min_value=5, value=int(ex.duration), step=5, key=f"{k}_duration")
        reps = c2.number_input("Reps per session", min_value=1, value=int(ex.reps), step=1, key=f"{k}_reps")
        sets = c3.number_input("Sessions per day", min_value=1, value=int(ex.sets), step=1, key=f"{k}_sets")
        upload = st.file_uploader("Replace image", type=["jpg", "jpeg", "png", "gif", "webp"], key=f"{k}_image")
        if st.form_submit_button("Save"):
            catalog.update(
                index,
                name=name,
                description=description,
                use_timer=use_timer,
                duration=duration,
                reps=reps,
                sets=sets,
                image=_image_data_url(upload),
            )
            st.rerun()


def render(catalog: ExerciseCatalog, default_duration: int = 60):
    st.header("Exercises")

    if len(catalog) == 0:
        st.info("No exercises yet.")

    for i, ex in enumerate(catalog):
        meta = format_time(ex.duration) if ex.use_timer else "No timer"
        if ex.use_timer and (ex.reps > 1 or ex.sets > 1):
            meta += f" · {ex.reps} reps · {ex.sets}/day"
        c_name, c_up, c_down, c_del = st.columns([6, 1, 1, 1])
        c_name.markdown(f"**{i + 1}. {ex.name}**  \n{meta}")
        if c_up.button("↑", key=f"up_{ex.id}", disabled=i == 0):
            catalog.move(i, i - 1)
            st.rerun()
        if c_down.button("↓", key=f"down_{ex.id}", disabled=i == len(catalog) - 1):
            catalog.move(i, i + 1)
            st.rerun()
        if c_del.button("🗑", key=f"del_{ex.id}"):
            st.session_state["confirm_delete"] = ex.id

        if st.session_state.get("confirm_delete") == ex.id:
            st.warning(f'Delete "{ex.name}"? This action cannot be undone.')
            c_yes, c_no = st.columns(2)
            if c_yes.button("Delete", key=f"del_yes_{ex.id}"):
                st.session_state.pop("confirm_delete", None)
                catalog.remove(i)
                st.rerun()
            if c_no.button("Cancel", key=f"del_no_{ex.id}"):
                st.session_state.pop("confirm_delete", None)
                st.rerun()

        with st.expander("Edit", expanded=False):
            _render_edit_form(catalog, i)

    _render_add_form(catalog, default_duration)
