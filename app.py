"""
CourseTree - Personal learning material organizer

Streamlit application for browsing courses, chapters and documents as an
expandable tree. Changes are saved locally a second after the last edit.

Usage:
    streamlit run app.py
"""

import time

import streamlit as st

from coursetree.classroom import ManualScheduler, create_platform
from coursetree.config import configure_logging, load_settings
from coursetree.errors import CourseNotFoundError
from coursetree.schemas import Section
from coursetree.viewer import (
    get_tree_css,
    render_course_card,
    render_course_header,
    render_course_tree,
    render_document_row,
    render_section_tree,
    render_sync_indicator,
)


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

st.set_page_config(
    page_title="CourseTree",
    page_icon="🎓",
    layout="wide",
    initial_sidebar_state="expanded",
)


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "controller" not in st.session_state:
        settings = load_settings()
        configure_logging(settings)
        st.session_state.scheduler = ManualScheduler(clock=time.monotonic)
        st.session_state.controller = create_platform(st.session_state.scheduler, settings)

    if "show_add_notice" not in st.session_state:
        st.session_state.show_add_notice = False


# -----------------------------------------------------------------------------
# Header: Sync Indicator
# -----------------------------------------------------------------------------

@st.fragment(run_every=0.5)
def render_sync_status():
    """Pump pending timers and show the sync indicator."""
    st.session_state.scheduler.run_due()
    controller = st.session_state.controller
    st.markdown(
        render_sync_indicator(controller.status, controller.status_text),
        unsafe_allow_html=True,
    )


def render_header():
    col1, col2, col3, col4 = st.columns([4, 2, 3, 1])
    with col1:
        st.title("🎓 My Learning Platform")
    with col2:
        render_sync_status()
    with col3:
        # Search is display-only for now
        st.text_input(
            "Search",
            placeholder="Search your courses...",
            label_visibility="collapsed",
        )
    with col4:
        if st.button("💾", help="Save now"):
            st.session_state.controller.save_now()


# -----------------------------------------------------------------------------
# Sidebar: Course List
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with one card per course."""
    state = st.session_state.controller.state

    st.sidebar.subheader("My courses")
    if st.sidebar.button("➕ Add a course", use_container_width=True):
        st.session_state.show_add_notice = True

    st.sidebar.markdown(get_tree_css(), unsafe_allow_html=True)
    for course in state.store.list_courses():
        selected = state.navigation.is_selected(course.id)
        st.sidebar.markdown(render_course_card(course, selected), unsafe_allow_html=True)
        if not selected and st.sidebar.button("Open", key=f"course_{course.id}"):
            state.navigation.select(course.id)
            st.rerun()


# -----------------------------------------------------------------------------
# Main Content: Course Tree
# -----------------------------------------------------------------------------

def current_course():
    """Get the selected course, falling back to the first one if it vanished."""
    navigation = st.session_state.controller.state.navigation
    try:
        return navigation.current()
    except CourseNotFoundError:
        fallback = navigation.first_available_id()
        if fallback is None:
            return None
        navigation.select(fallback)
        return navigation.current()


def render_section(section: Section, level: int = 0):
    """Render one section row and, if expanded, its children."""
    expansion = st.session_state.controller.state.expansion
    expanded = expansion.is_expanded(section.id)

    if section.is_leaf:
        st.markdown(render_section_tree(section, expansion.is_expanded, level), unsafe_allow_html=True)
        return

    label = f"{section.number} {section.title}".strip()
    if section.documents:
        count = len(section.documents)
        label += f"  ·  {count} doc{'s' if count > 1 else ''}"

    _, body = st.columns([level + 0.01, 12])
    with body:
        if st.button(
            ("▾ " if expanded else "▸ ") + label,
            key=f"section_{section.id}",
            use_container_width=True,
        ):
            expansion.toggle(section.id)
            st.rerun()

    if expanded:
        for doc in section.documents:
            st.markdown(render_document_row(doc, level), unsafe_allow_html=True)
        for child in section.subsections:
            render_section(child, level + 1)


def render_course_view():
    """Render the selected course with its chapter tree."""
    course = current_course()
    if course is None:
        st.info("No courses yet.")
        return

    st.markdown(render_course_header(course), unsafe_allow_html=True)
    st.divider()

    if not course.chapters:
        expansion = st.session_state.controller.state.expansion
        st.markdown(render_course_tree(course, expansion.is_expanded), unsafe_allow_html=True)
        if st.button("Add content"):
            st.session_state.show_add_notice = True
        return

    for chapter in course.chapters:
        render_section(chapter)


def render_add_notice():
    if not st.session_state.show_add_notice:
        return
    st.warning(
        "Adding content will be available in the next version. "
        "Your data is saved locally automatically!"
    )
    if st.button("Got it"):
        st.session_state.show_add_notice = False
        st.rerun()


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()
    render_header()
    render_sidebar()
    render_add_notice()
    render_course_view()


if __name__ == "__main__":
    main()
