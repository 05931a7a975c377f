import logging

import pandas as pd
import streamlit as st

from markbook.grade_engine import numeric, part_percent, round_1dp_half_up
from markbook.io_text import (
    export_courses_json,
    import_courses_json,
    parse_ledger_rows,
    read_csv_upload,
    validate_ledger_csv,
)
from markbook.models import Course
from markbook.state import AppState
from markbook.storage import default_storage_path, load_courses, save_courses
from markbook.sync_client import DEFAULT_SERVER_URL, SyncClient, SyncError

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger("markbook.app")

# ------------------------
# Streamlit UI
# ------------------------

st.set_page_config(
    page_title="Mark Book | Coursework, FPT & Exam Grade Tracker",
    page_icon="📘",
    layout="wide",
)


def fmt(x: float) -> str:
    return f"{round_1dp_half_up(x):.1f}"


def as_text(value) -> str:
    return "" if value is None else str(value)


def on_target_change(state: AppState, course_id: str, key: str) -> None:
    state.set_target(course_id, st.session_state[key])


def get_state() -> AppState:
    if "markbook_state" not in st.session_state:
        courses = load_courses(default_storage_path())
        st.session_state["markbook_state"] = AppState(
            courses=courses,
            active_course_id=courses[0].id if courses else None,
        )
    return st.session_state["markbook_state"]


state = get_state()


# ------------------------
# Cloud sync (sidebar)
# ------------------------

def render_sync_sidebar(state: AppState) -> None:
    st.sidebar.header("☁️ Cloud sync")
    server_url = st.sidebar.text_input("Server URL", value=DEFAULT_SERVER_URL, key="server_url")
    client = SyncClient(server_url)

    if state.is_signed_in:
        st.sidebar.write(f"Signed in as **{state.username}**")
        c1, c2 = st.sidebar.columns(2)
        if c1.button("Fetch", use_container_width=True):
            try:
                state.replace_courses([Course.from_dict(c) for c in client.fetch_courses(state.token)])
                st.sidebar.success("Courses loaded from the server.")
            except SyncError as e:
                st.sidebar.error(e.message)
        if c2.button("Upload", use_container_width=True):
            try:
                client.save_courses(state.token, [c.to_dict() for c in state.courses])
                st.sidebar.success("Courses saved to the server.")
            except SyncError as e:
                st.sidebar.error(e.message)
        if st.sidebar.button("Log out", use_container_width=True):
            state.sign_out()
            st.rerun()
        return

    with st.sidebar.form("sync_login_form"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        c1, c2 = st.columns(2)
        do_login = c1.form_submit_button("Log in")
        do_register = c2.form_submit_button("Register")

    if do_login or do_register:
        try:
            if do_register:
                body = client.register(username, password)
            else:
                body = client.login(username, password)
                state.replace_courses([Course.from_dict(c) for c in body.get("courses", [])])
            state.sign_in(body["user"]["username"], body["token"])
            st.rerun()
        except SyncError as e:
            st.sidebar.error(e.message)


render_sync_sidebar(state)


# ------------------------
# Header: course tabs, save, export
# ------------------------

st.title("📘 Mark Book")
st.caption("70/15/15 curriculum model: coursework + final performance task (FPT) + exam.")

top_left, top_right = st.columns([5, 2])

with top_left:
    if state.courses:
        labels = {c.id: c.name for c in state.courses}
        active = state.active_course
        choice = st.radio(
            "Course",
            options=list(labels.keys()),
            format_func=lambda cid: labels[cid],
            index=list(labels.keys()).index(active.id),
            horizontal=True,
            label_visibility="collapsed",
        )
        state.select_course(choice)

with top_right:
    b1, b2, b3 = st.columns(3)
    if b1.button("➕ Course", use_container_width=True):
        state.add_course()
        st.rerun()
    if b2.button("💾 Save", use_container_width=True):
        try:
            save_courses(state.courses, default_storage_path())
            st.toast("Saved!")
        except OSError:
            logger.exception("Failed to save courses")
            st.toast("Error saving")
    b3.download_button(
        "⬇️ JSON",
        data=export_courses_json(state.courses),
        file_name="markbook_data.json",
        mime="application/json",
        use_container_width=True,
    )

with st.expander("Import courses from a JSON export"):
    json_file = st.file_uploader("Mark Book JSON", type=["json"], key="json_import")
    if json_file is not None and st.button("Replace my courses with this file"):
        try:
            state.replace_courses(import_courses_json(json_file.getvalue().decode("utf-8")))
            st.success("Courses imported.")
            st.rerun()
        except (ValueError, UnicodeDecodeError) as e:
            st.error(str(e))

course = state.active_course

if course is None:
    st.markdown("---")
    st.subheader("No Courses Yet")
    st.write("Get started by adding your first course.")
    if st.button("Add Your First Course", type="primary"):
        state.add_course()
        st.rerun()
    st.stop()

stats = state.stats()

new_name = st.text_input("Course name", value=course.name, key=f"name_{course.id}")
if new_name != course.name:
    state.rename_course(course.id, new_name)

main_col, side_col = st.columns([3, 1])

# ------------------------
# Final evaluation: FPT parts + exam
# ------------------------

with main_col:
    st.subheader(f"Final Evaluation ({stats.fpt_weight + stats.exam_weight:g}% Total)")
    m1, m2 = st.columns(2)
    fpt_metric, exam_metric = m1.empty(), m2.empty()

    fpt_col, exam_col = st.columns(2)

    with fpt_col:
        st.markdown("**Final Performance Task**")
        for part in list(course.fpt_parts):
            c_name, c_score, c_total, c_weight, c_del = st.columns([3, 2, 2, 2, 1])
            name = c_name.text_input("Name", value=part.name or "", key=f"fpt_name_{part.id}")
            score = c_score.text_input("Score", value=as_text(part.score), key=f"fpt_score_{part.id}")
            total = c_total.text_input("Total", value=as_text(part.total), key=f"fpt_total_{part.id}")
            weight = c_weight.text_input("Weight %", value=as_text(part.weight), key=f"fpt_weight_{part.id}")
            for field_name, value in (("name", name), ("score", score), ("total", total), ("weight", weight)):
                if value != as_text(getattr(part, field_name)):
                    state.update_fpt_part(part.id, field_name, value)
            pct = part_percent(part)
            if pct is not None:
                c_name.caption(f"{fmt(pct)}%")
            if c_del.button("🗑️", key=f"fpt_del_{part.id}"):
                state.remove_fpt_part(part.id)
                st.rerun()
        if not course.fpt_parts:
            st.caption("No FPT parts added.")
        if st.button("Add Task"):
            state.add_fpt_part()
            st.rerun()

    with exam_col:
        st.markdown("**Final Exam**")
        e1, e2, e3 = st.columns(3)
        exam_score = e1.text_input("Raw Score", value=as_text(course.exam.score), key=f"exam_score_{course.id}")
        exam_total = e2.text_input("Total", value=as_text(course.exam.total), key=f"exam_total_{course.id}")
        exam_weight = e3.text_input("Weight %", value=as_text(course.exam.weight), key=f"exam_weight_{course.id}")
        for field_name, value in (("score", exam_score), ("total", exam_total), ("weight", exam_weight)):
            if value != as_text(getattr(course.exam, field_name)):
                state.update_exam(field_name, value)

    stats = state.stats()
    fpt_metric.metric("FPT Result", f"{fmt(stats.fpt_avg)}%")
    exam_metric.metric("Exam Result", f"{fmt(stats.exam_avg)}%")

    # ------------------------
    # Coursework ledger
    # ------------------------

    st.markdown("---")
    st.subheader(f"Coursework Ledger ({stats.coursework_weight:g}%)")

    ledger = pd.DataFrame(
        [
            {"Sim": a.active, "Category": a.category, "Score": as_text(a.score),
             "Total": as_text(a.total), "Weight": as_text(a.weight)}
            for a in course.assessments
        ],
        index=[a.id for a in course.assessments],
        columns=["Sim", "Category", "Score", "Total", "Weight"],
    )
    edited = st.data_editor(
        ledger,
        key=f"ledger_{course.id}",
        num_rows="fixed",
        use_container_width=True,
        hide_index=True,
        column_config={
            "Sim": st.column_config.CheckboxColumn("Sim", help="Untick to simulate dropping this entry"),
            "Category": st.column_config.TextColumn("Category"),
            "Score": st.column_config.TextColumn("Score"),
            "Total": st.column_config.TextColumn("Total"),
            "Weight": st.column_config.TextColumn("Weight"),
        },
    )
    columns = {"Sim": "active", "Category": "category", "Score": "score", "Total": "total", "Weight": "weight"}
    for assessment_id, row in edited.iterrows():
        for column, field_name in columns.items():
            value = bool(row[column]) if column == "Sim" else (row[column] or "")
            if value != ledger.at[assessment_id, column]:
                state.update_assessment(assessment_id, field_name, value)

    if not course.assessments:
        st.caption("No coursework entries yet.")

    l1, l2 = st.columns([1, 3])
    if l1.button("Add Entry"):
        state.add_assessment()
        st.rerun()
    to_delete = l2.multiselect(
        "Delete entries",
        options=[a.id for a in course.assessments],
        format_func=lambda aid: next((f"{a.category} ({a.score}/{a.total})" for a in course.assessments if a.id == aid), aid),
        key=f"delete_{course.id}",
    )
    if to_delete and l2.button("Delete selected"):
        for aid in to_delete:
            state.remove_assessment(aid)
        st.rerun()

    with st.expander("Bulk import"):
        pasted = st.text_area(
            "Paste one entry per line: category, score, total, weight",
            placeholder="Quiz, 85, 100, 1\nTest, 92",
            key=f"paste_{course.id}",
        )
        if st.button("Import lines"):
            added = state.import_assessments(pasted)
            st.success(f"Imported {added} entr{'y' if added == 1 else 'ies'}.")
            st.rerun()

        ledger_csv = st.file_uploader(
            "Or upload a CSV (Category, Score, Total, Weight)",
            type=["csv"],
            key=f"ledger_csv_{course.id}",
        )
        if ledger_csv is not None and st.button("Import CSV"):
            try:
                added = state.append_assessments(
                    parse_ledger_rows(validate_ledger_csv(read_csv_upload(ledger_csv)))
                )
                st.success(f"Imported {added} entries.")
                st.rerun()
            except ValueError as e:
                st.error(f"Ledger CSV error: {e}")

# ------------------------
# Cumulative report
# ------------------------

with side_col:
    stats = state.stats()
    st.subheader("📊 Cumulative Report")
    st.metric(f"Coursework ({stats.coursework_weight:g}%)", f"{fmt(stats.coursework_avg)}%")
    st.progress(min(max(stats.coursework_avg, 0.0), 100.0) / 100)
    st.metric(f"FPT Category ({stats.fpt_weight:g}%)", f"{fmt(stats.fpt_avg)}%")
    st.progress(min(max(stats.fpt_avg, 0.0), 100.0) / 100)
    st.metric(f"Final Exam ({stats.exam_weight:g}%)", f"{fmt(stats.exam_avg)}%")
    st.progress(min(max(stats.exam_avg, 0.0), 100.0) / 100)
    st.metric("Projected Grade", f"{fmt(stats.final_grade)}%")

    st.markdown("**Strategy Gap Analysis**")
    st.write(
        f"To reach your **{course.target}%** goal, your combined average for the final "
        f"evaluations (FPT + Exam) must be **{fmt(stats.required_eval_avg)}%**."
    )
    if stats.required_eval_avg > 100:
        st.warning("That is above 100%: the target is out of reach with the current coursework.")

    target_key = f"target_{course.id}"
    st.slider(
        "Target Threshold",
        min_value=0.0,
        max_value=100.0,
        step=0.5,
        value=min(max(numeric(course.target), 0.0), 100.0),
        key=target_key,
        on_change=on_target_change,
        args=(state, course.id, target_key),
    )

    st.markdown("---")
    confirm = st.checkbox("Permanently delete this course?", key=f"confirm_delete_{course.id}")
    if st.button("🗑️ Clear Record", disabled=not confirm):
        state.remove_course(course.id)
        st.rerun()

    st.caption('Tip: untick "Sim" to simulate drops.')
