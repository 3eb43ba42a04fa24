"""Streamlit front end for the Smart Load Distribution Analyzer workflow."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import streamlit as st

ROOT_DIR = Path(__file__).resolve().parent
SRC_DIR = ROOT_DIR / "src"
if SRC_DIR.exists():
    src_str = str(SRC_DIR)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)

from smart_structure.api import ApiClient
from smart_structure.config import ClientConfig, GeneralConfig
from smart_structure.models import BuildingForm, SurveyForm, WindForm
from smart_structure.notifications import Notification
from smart_structure.renderer import (
    Alert,
    BulletList,
    Card,
    CorrectionItem,
    InfoItem,
    Note,
    ReportView,
    ScoreCard,
    StatCard,
    render_survey_list,
    surveys_frame,
)
from smart_structure.storage import SessionStore
from smart_structure.workflow import Workflow

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

WORKFLOW_KEY = "workflow"
PENDING_TOASTS_KEY = "pending_toasts"
NAV_KEY = "nav_section"

SECTION_LABELS = {
    "auth": "Login / Register",
    "survey": "Land Survey",
    "building": "Building Input",
    "wind": "Wind Data",
    "analysis": "Analysis",
    "reports": "Reports",
}

TOAST_ICONS = {
    "success": "✅",
    "error": "❌",
    "warning": "⚠️",
    "info": "ℹ️",
}

BAND_COLOURS = {
    "excellent": "green",
    "good": "blue",
    "moderate": "orange",
    "poor": "red",
}


# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------

def _queue_toast(item: Notification) -> None:
    """Park a notification until the next render; never blocks the action."""
    st.session_state.setdefault(PENDING_TOASTS_KEY, []).append(item)


def _build_workflow() -> Workflow:
    """Each browser session gets its own workflow and store.

    The store lives in memory unless ``SMART_STRUCTURE_STATE_PATH`` names a
    file; that file is meant for a single local user.
    """
    cfg = ClientConfig.from_env()
    store = SessionStore.at_path(cfg.state_path) if cfg.state_path else SessionStore()
    return Workflow(api=ApiClient(cfg), store=store, config=cfg)


def _get_workflow() -> Workflow:
    workflow: Optional[Workflow] = st.session_state.get(WORKFLOW_KEY)
    if workflow is None:
        workflow = _build_workflow()
        workflow.notifier.subscribe(_queue_toast)
        st.session_state[WORKFLOW_KEY] = workflow
        workflow.start()
    return workflow


def _flush_toasts() -> None:
    for item in st.session_state.pop(PENDING_TOASTS_KEY, []):
        st.toast(item.message, icon=TOAST_ICONS.get(item.severity))


def _optional_float(value: str) -> Optional[float]:
    value = (value or "").strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Report display
# ---------------------------------------------------------------------------

def _render_score(card: ScoreCard) -> None:
    colour = BAND_COLOURS.get(card.band or "", "gray")
    band = card.band.title() if card.band else GeneralConfig.NOT_FOUND_TEXT
    st.markdown(f"**{card.label}:** :{colour}[{card.value} · {band}]")


def _render_blocks(blocks: List[Any]) -> None:
    stats = [b for b in blocks if isinstance(b, (StatCard, ScoreCard))]
    if stats:
        columns = st.columns(len(stats))
        for column, block in zip(columns, stats):
            with column:
                if isinstance(block, ScoreCard):
                    _render_score(block)
                else:
                    st.metric(block.label, block.value)

    for block in blocks:
        if isinstance(block, InfoItem):
            st.markdown(f"**{block.label}:** {block.value}")
        elif isinstance(block, Note):
            if block.label:
                st.info(f"**{block.label}:** {block.text}")
            else:
                st.info(block.text)
        elif isinstance(block, Alert):
            category, description, impact = block.parts
            body = f"**{category}:** {description}  \nImpact: {impact}"
            if block.severity in {"high", "critical"}:
                st.error(body)
            else:
                st.warning(body)
        elif isinstance(block, CorrectionItem):
            st.markdown(f"`{block.priority}` **{block.violation}**  \n{block.solution}")
        elif isinstance(block, Card):
            st.markdown(f"#### {block.title}")
            for item in block.items:
                st.markdown(f"- **{item.label}:** {item.value}")
        elif isinstance(block, BulletList):
            st.markdown(f"#### {block.title}")
            st.markdown("\n".join(f"- {entry}" for entry in block.items))


def _render_report_view(view: ReportView) -> None:
    st.subheader(view.title)
    meta = [f"📅 {view.date_display}"] + [badge.label for badge in view.badges]
    st.caption(" · ".join(meta))
    for section in view.sections:
        st.markdown(f"### {section.title}")
        _render_blocks(section.blocks)


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

def _render_auth(workflow: Workflow) -> None:
    view = workflow.state.view
    tab = st.radio(
        "Account",
        GeneralConfig.AUTH_TABS,
        index=GeneralConfig.AUTH_TABS.index(view.auth_tab),
        format_func=str.title,
        horizontal=True,
    )
    if tab != view.auth_tab:
        workflow.switch_tab(tab)

    if workflow.state.view.auth_tab == "login":
        with st.form("login-form"):
            email = st.text_input("Email", value=view.login_email)
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Login")
        if submitted:
            workflow.login(email, password)
            st.rerun()
    else:
        with st.form("register-form"):
            name = st.text_input("Full name")
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            role = st.selectbox("Role", ["owner", "engineer", "architect", "admin"])
            submitted = st.form_submit_button("Register")
        if submitted:
            workflow.register(name, email, password, role)
            st.rerun()


def _render_survey(workflow: Workflow) -> None:
    with st.form("survey-form"):
        left, right = st.columns(2)
        with left:
            latitude = st.number_input("Latitude", value=0.0, format="%.6f")
            plot_area = st.number_input("Plot area (sq.m)", min_value=0.0, value=100.0)
            slope = st.number_input("Slope (%)", min_value=0.0, value=0.0)
            water_table = st.number_input("Water table depth (m)", min_value=0.0, value=5.0)
            flood_risk = st.selectbox("Flood risk", ["low", "medium", "high"])
            water_distance = st.text_input("Water body distance (m)")
        with right:
            longitude = st.number_input("Longitude", value=0.0, format="%.6f")
            soil_type = st.selectbox("Soil type", ["clay", "sandy", "rocky", "loamy", "silty"])
            elevation = st.number_input("Elevation (m)", value=0.0)
            seismic_zone = st.selectbox("Seismic zone", ["II", "III", "IV", "V"])
            nearby_water = st.selectbox("Nearby water bodies", ["false", "true"]) == "true"
            rainfall = st.text_input("Average rainfall (mm)")
        submitted = st.form_submit_button("Create survey")
    if submitted:
        workflow.create_survey(
            SurveyForm(
                latitude=latitude,
                longitude=longitude,
                plot_area=plot_area,
                soil_type=soil_type,
                slope=slope,
                elevation=elevation,
                water_table_depth=water_table,
                seismic_zone=seismic_zone,
                flood_risk=flood_risk,
                nearby_water_bodies=nearby_water,
                water_body_distance=_optional_float(water_distance),
                average_rainfall=_optional_float(rainfall),
            )
        )
        st.rerun()

    if st.button("Load my surveys"):
        workflow.load_surveys()
        st.rerun()

    cards = render_survey_list(workflow.state.surveys)
    if not cards:
        st.caption("No surveys found")
        return
    st.dataframe(surveys_frame(workflow.state.surveys), hide_index=True)
    for card in cards:
        with st.container(border=True):
            st.markdown(f"**{card.title}** · `{card.badge.label}`")
            for item in card.items:
                st.markdown(f"**{item.label}:** {item.value}")
            if st.button("Select", key=f"select-{card.survey_id}"):
                workflow.select_survey(card.survey_id)
                st.rerun()


def _render_building(workflow: Workflow) -> None:
    options = workflow.survey_options
    labels = {option.value: option.label for option in options}
    values = [option.value for option in options]
    selected_index = next((i for i, o in enumerate(options) if o.selected), 0)
    with st.form("building-form"):
        choice = st.selectbox(
            "Land survey",
            values,
            index=selected_index,
            format_func=labels.get,
        )
        left, right = st.columns(2)
        with left:
            building_type = st.selectbox("Building type", ["residential", "commercial", "industrial", "mixed"])
            total_floors = st.number_input("Total floors", min_value=1, value=2, step=1)
            floor_height = st.number_input("Floor height (m)", min_value=0.0, value=3.0)
            total_height = st.number_input("Total height (m)", min_value=0.0, value=6.0)
            built_up_area = st.number_input("Built-up area (sq.m)", min_value=0.0, value=100.0)
        with right:
            orientation = st.selectbox("Orientation", ["N", "NE", "E", "SE", "S", "SW", "W", "NW"])
            structural_system = st.selectbox("Structural system", ["RCC", "steel", "load-bearing", "composite"])
            basement = st.number_input("Basement floors", min_value=0, value=0, step=1)
            parking = st.number_input("Parking floors", min_value=0, value=0, step=1)
            occupancy = st.number_input("Expected occupancy", min_value=0, value=0, step=1)
        submitted = st.form_submit_button("Create building input")
    if submitted:
        workflow.create_building(
            BuildingForm(
                building_type=building_type,
                total_floors=int(total_floors),
                floor_height=floor_height,
                total_height=total_height,
                built_up_area=built_up_area,
                orientation=orientation,
                structural_system=structural_system,
                basement_floors=int(basement),
                parking_floors=int(parking),
                expected_occupancy=int(occupancy) or None,
            ),
            survey_id=choice or None,
        )
        st.rerun()


def _render_wind(workflow: Workflow) -> None:
    with st.form("wind-form"):
        direction = st.number_input("Wind direction (°)", min_value=0.0, max_value=359.9, value=0.0)
        average_speed = st.number_input("Average wind speed (m/s)", min_value=0.0, value=10.0)
        peak_speed = st.number_input("Peak gust speed (m/s)", min_value=0.0, value=20.0)
        terrain = st.selectbox("Terrain roughness", ["open", "suburban", "urban", "dense-urban"])
        submitted = st.form_submit_button("Add wind data")
    if submitted:
        workflow.add_wind(
            WindForm(
                wind_direction=direction,
                average_wind_speed=average_speed,
                peak_gust_speed=peak_speed,
                terrain_roughness=terrain,
            )
        )
        st.rerun()


def _render_analysis(workflow: Workflow) -> None:
    st.caption(f"Building: {workflow.state.pointer.building_id or 'none selected'}")
    columns = st.columns(3)
    actions = (
        ("Run disaster analysis", workflow.run_disaster),
        ("Run Vastu analysis", workflow.run_vastu),
        ("Generate final report", workflow.generate_report),
    )
    for column, (label, action) in zip(columns, actions):
        if column.button(label):
            action()
            st.rerun()


def _render_reports(workflow: Workflow) -> None:
    columns = st.columns(3)
    actions = (
        ("View disaster report", workflow.view_disaster_report),
        ("View Vastu report", workflow.view_vastu_report),
        ("View final report", workflow.view_final_report),
    )
    for column, (label, action) in zip(columns, actions):
        if column.button(label):
            action()
            st.rerun()

    report_view = workflow.state.view.report_view
    if report_view is None:
        st.caption("No report loaded yet.")
        return
    _render_report_view(report_view)


SECTION_RENDERERS = {
    "auth": _render_auth,
    "survey": _render_survey,
    "building": _render_building,
    "wind": _render_wind,
    "analysis": _render_analysis,
    "reports": _render_reports,
}


def _navigate(workflow: Workflow) -> None:
    st.session_state[NAV_KEY] = workflow.show_section(st.session_state[NAV_KEY])


def _build_sidebar(workflow: Workflow) -> None:
    st.sidebar.markdown("## 🏗️ Smart Load Distribution Analyzer")
    state = workflow.state
    if state.view.user_info_visible and state.session is not None:
        st.sidebar.markdown(f"Signed in as **{state.user_name}**")
        if st.sidebar.button("Logout"):
            workflow.logout()
            st.rerun()

    # actions move between sections too; keep the radio on the current one
    st.session_state[NAV_KEY] = state.view.section
    st.sidebar.radio(
        "Workflow",
        list(GeneralConfig.SECTIONS),
        key=NAV_KEY,
        format_func=SECTION_LABELS.get,
        on_change=_navigate,
        args=(workflow,),
    )

    st.sidebar.caption(f"Stage: {state.stage.name.replace('_', ' ').title()}")


def _render_console(workflow: Workflow) -> None:
    console = workflow.state.view.console
    if console is None:
        return
    with st.expander("Response console"):
        st.json(console)
        if st.button("Clear console"):
            workflow.clear_console()
            st.rerun()


def main() -> None:
    st.set_page_config(
        page_title="Smart Load Distribution Analyzer",
        page_icon="🏗️",
        layout="wide",
    )
    workflow = _get_workflow()
    _build_sidebar(workflow)

    section = workflow.state.view.section
    st.header(SECTION_LABELS[section])
    SECTION_RENDERERS[section](workflow)
    _render_console(workflow)
    _flush_toasts()


if __name__ == "__main__":
    main()
