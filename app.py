"""
Rooftop Solar Zone Estimator
Streamlit application for drawing an installation zone on a roof and
estimating its production and financial returns.
"""

import logging
import os

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from solar_zone.analysis import RequestGuard, analyze_address
from solar_zone.config import DEFAULT_CONFIG
from solar_zone.country_data import (
    COUNTRY_NAMES,
    DEFAULT_COUNTRY,
    format_electricity_rate,
    get_fallback_rate,
    orientation_label
)
from solar_zone.drawing import DrawingController, DrawingMode, DrawingSession
from solar_zone.geometry import GeoPoint
from solar_zone.map_surface import PlotlyDrawingSurface, selected_points
from solar_zone.pipeline import estimate_whole_roof

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s | %(levelname)s | %(message)s")
logger = logging.getLogger(__name__)

# Page configuration
st.set_page_config(
    page_title="Rooftop Solar Estimator",
    page_icon="☀️",
    layout="wide",
    initial_sidebar_state="expanded"
)

STEPS = ["1. Property", "2. Installation Zone", "3. Results"]


def get_api_key(name: str, required: bool = True):
    """Get an API key from Streamlit secrets or environment variable."""
    # Try Streamlit secrets first (for deployment)
    try:
        return st.secrets[name]
    except (KeyError, FileNotFoundError):
        pass

    # Fall back to environment variable
    api_key = os.environ.get(name)
    if api_key:
        return api_key

    if not required:
        return None

    st.error(
        f"{name} not found. Please add it to `.streamlit/secrets.toml` "
        f"or set the `{name}` environment variable."
    )
    st.stop()


def initialize_session_state():
    """Initialize session state variables."""
    defaults = {
        'step': 1,
        'address': '',
        'analysis': None,
        'analysis_error': None,
        'request_guard': RequestGuard(),
        'drawing': DrawingSession(),
        'zone_area': None,
        'zone_estimate': None,
        'map_key': 0,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def render_step_indicator():
    """Render the step progress indicator."""
    cols = st.columns(len(STEPS))
    for i, (col, step_name) in enumerate(zip(cols, STEPS), 1):
        if i < st.session_state.step:
            col.markdown(f"✅ **{step_name}**")
        elif i == st.session_state.step:
            col.markdown(f"🔵 **{step_name}**")
        else:
            col.markdown(f"⚪ {step_name}")

    st.divider()


def current_price() -> float:
    analysis = st.session_state.analysis
    if analysis and analysis.electricity_rate:
        return analysis.electricity_rate.price_per_kwh
    return get_fallback_rate(DEFAULT_COUNTRY)


def build_controller(surface=None) -> DrawingController:
    """Rebuild the drawing controller around the stored session."""
    analysis = st.session_state.analysis
    solar_potential = analysis.insights.solar_potential if analysis and analysis.insights else None

    def on_area_change(area):
        st.session_state.zone_area = area

    def on_technical_info_change(estimate):
        st.session_state.zone_estimate = estimate

    return DrawingController(
        solar_potential=solar_potential,
        electricity_price=current_price(),
        config=DEFAULT_CONFIG,
        surface=surface,
        on_area_change=on_area_change,
        on_technical_info_change=on_technical_info_change,
        session=st.session_state.drawing
    )


def run_action(controller: DrawingController, action, *args):
    """Apply a drawing action and persist the resulting session."""
    action(*args)
    st.session_state.drawing = controller.session
    if controller.estimate is None:
        st.session_state.zone_estimate = None


def handle_analyze(address: str):
    """Analyze an address, applying the result only if it is still current."""
    guard = st.session_state.request_guard
    token = guard.begin()

    with st.spinner("Analyzing property..."):
        outcome = analyze_address(
            address,
            get_api_key("GOOGLE_API_KEY"),
            get_api_key("ELECTRICITY_API_KEY", required=False)
        )

    def apply(result):
        st.session_state.address = address
        if result.success:
            st.session_state.analysis = result
            st.session_state.analysis_error = None
            st.session_state.drawing = DrawingSession()
            st.session_state.zone_area = None
            st.session_state.zone_estimate = None
        else:
            st.session_state.analysis = None
            st.session_state.analysis_error = result

    guard.apply(token, outcome, apply)


def step1_property_input():
    """Step 1: Property address input and analysis."""
    st.header("📍 Step 1: Enter Your Property Address")

    st.markdown("""
    Enter your street address to begin. We'll:
    - Locate your property
    - Analyze your roof with the Google Solar API
    - Look up your current electricity price
    """)

    col1, col2 = st.columns([2, 1])

    with col1:
        address = st.text_input(
            "Street Address",
            value=st.session_state.address,
            placeholder="5 Avenue Anatole France, 75007 Paris",
            help="Enter your full street address including city and country"
        )

        if st.button("🔍 Analyze Property", type="primary", use_container_width=True):
            handle_analyze(address)
            if st.session_state.analysis:
                st.session_state.step = 2
                st.rerun()

        error = st.session_state.analysis_error
        if error:
            st.error(error.message)
            if error.retryable and error.address:
                if st.button("↻ Retry", use_container_width=True):
                    handle_analyze(error.address)
                    if st.session_state.analysis:
                        st.session_state.step = 2
                    st.rerun()

    with col2:
        analysis = st.session_state.analysis
        if analysis and analysis.geocoding:
            geo = analysis.geocoding
            st.markdown(f"**Found:** {geo.formatted_address}")

            fig = go.Figure(go.Scattermap(
                lat=[geo.latitude],
                lon=[geo.longitude],
                mode='markers',
                marker=dict(size=14, color='red'),
                text=[geo.formatted_address]
            ))

            fig.update_layout(
                map=dict(
                    style="open-street-map",
                    center=dict(lat=geo.latitude, lon=geo.longitude),
                    zoom=17
                ),
                margin=dict(l=0, r=0, t=0, b=0),
                height=300
            )

            st.plotly_chart(fig, use_container_width=True)


def render_drawing_controls(controller: DrawingController):
    session = controller.session
    cols = st.columns(6)

    if cols[0].button("✏️ Start zone", use_container_width=True):
        run_action(controller, controller.start)
        st.rerun()
    if cols[1].button("⛔ Exclude zone", use_container_width=True, disabled=not session.can_start_hole):
        run_action(controller, controller.start_hole)
        st.rerun()
    if cols[2].button("✔ Finish", use_container_width=True, disabled=session.mode is DrawingMode.IDLE):
        run_action(controller, controller.finish)
        st.rerun()
    if cols[3].button("↶ Undo", use_container_width=True, disabled=not session.can_undo):
        run_action(controller, controller.undo)
        st.rerun()
    if cols[4].button("↷ Redo", use_container_width=True, disabled=not session.can_redo):
        run_action(controller, controller.redo)
        st.rerun()
    if cols[5].button("🗑 Clear", use_container_width=True, disabled=session.is_empty):
        run_action(controller, controller.clear)
        st.rerun()


def step2_draw_zone():
    """Step 2: Draw the installation zone and exclusion holes."""
    st.header("✏️ Step 2: Draw Your Installation Zone")

    analysis = st.session_state.analysis
    if not analysis or not analysis.insights:
        st.warning("Please complete Step 1 first.")
        if st.button("← Back to Step 1"):
            st.session_state.step = 1
            st.rerun()
        return

    insights = analysis.insights
    center = insights.center or GeoPoint(analysis.geocoding.latitude, analysis.geocoding.longitude)
    st.success(f"✅ Property analyzed: {analysis.geocoding.formatted_address}")

    surface = PlotlyDrawingSurface(center=center, bounding_box=insights.bounding_box)
    surface.show_roof_segments(insights.solar_potential.roof_segments)
    controller = build_controller(surface)
    session = controller.session

    mode_help = {
        DrawingMode.IDLE: "Press **Start zone** to draw the area where panels will go.",
        DrawingMode.DRAWING_MAIN: "Click on the roof to add corners. Click the first corner again to close the zone.",
        DrawingMode.DRAWING_HOLE: "Click around an obstacle (chimney, window...) to exclude it. Close it on its first corner.",
    }
    st.info(mode_help[session.mode])

    render_drawing_controls(controller)

    col1, col2 = st.columns([2, 1])

    with col1:
        event = st.plotly_chart(
            surface.figure(),
            use_container_width=True,
            on_select="rerun",
            selection_mode="points",
            key=f"zone_map_{st.session_state.map_key}"
        )
        clicked = selected_points(event.selection if event else None)
        if clicked and session.mode is not DrawingMode.IDLE:
            run_action(controller, controller.click, clicked[-1])
            # New widget key so the same selection is not replayed
            st.session_state.map_key += 1
            st.rerun()

        with st.expander("Add a corner by coordinates"):
            c1, c2, c3 = st.columns([2, 2, 1])
            lat = c1.number_input("Latitude", value=center.lat, format="%.6f")
            lng = c2.number_input("Longitude", value=center.lng, format="%.6f")
            if c3.button("Add", disabled=session.mode is DrawingMode.IDLE):
                run_action(controller, controller.click, GeoPoint(lat=lat, lng=lng))
                st.rerun()

    with col2:
        st.subheader("Zone")
        area = st.session_state.zone_area
        st.metric("Net area", f"{area:,.1f} m²" if area is not None else "—")
        st.metric("Perimeter", f"{session.perimeter_m:,.1f} m")
        st.caption(f"{len(session.drawn_points)} corners, {len(session.holes)} excluded zone(s)")

        estimate = st.session_state.zone_estimate
        if estimate:
            st.metric("Panels", f"{estimate.metrics.number_of_panels}")
            st.metric("Peak power", f"{estimate.metrics.peak_power_kwc:.1f} kWc")
            st.metric("Yearly energy", f"{estimate.metrics.estimated_energy_kwh:,.0f} kWh")

        solar = insights.solar_potential
        st.divider()
        st.markdown("**Whole roof (Solar API)**")
        st.caption(f"Roof area: {solar.whole_roof_area_m2:,.0f} m², "
                   f"max array area: {solar.max_array_area_m2:,.0f} m²")
        st.caption(f"Max array: {solar.max_array_panels_count} panels "
                   f"of {solar.panel_capacity_watts:.0f} W, "
                   f"{solar.max_energy_kwh:,.0f} kWh/year")
        st.caption(f"Sunshine: {solar.max_sunshine_hours_per_year:,.0f} h/year")
        if solar.carbon_offset_factor_kg_per_kwh:
            st.caption(f"Grid carbon: {solar.carbon_offset_factor_kg_per_kwh:,.1f} kg/MWh")
        if insights.imagery_date:
            region = f", {insights.region_code}" if insights.region_code else ""
            st.caption(f"Imagery: {insights.imagery_date} ({insights.imagery_quality}{region})")

    st.divider()

    col1, col2, col3 = st.columns([1, 1, 1])
    with col1:
        if st.button("← Back", use_container_width=True):
            st.session_state.step = 1
            st.rerun()
    with col3:
        if st.button("See Results →", type="primary", use_container_width=True):
            st.session_state.step = 3
            st.rerun()


def render_cash_flow_chart(financials):
    fig = go.Figure()

    for scenario, color in ((financials.self_consumption, 'green'), (financials.resale, 'orange')):
        fig.add_trace(go.Scatter(
            x=[row.year for row in scenario.yearly],
            y=[row.cumulative_discounted_profit for row in scenario.yearly],
            mode='lines+markers',
            name=scenario.name.replace('_', ' ').title(),
            line=dict(color=color, width=3)
        ))

    # Add break-even line
    fig.add_hline(y=0, line_dash="dash", line_color="red",
                  annotation_text="Break-even")

    fig.update_layout(
        xaxis_title="Year",
        yaxis_title="Cumulative discounted profit (€)",
        hovermode='x unified',
        height=400
    )

    st.plotly_chart(fig, use_container_width=True)


def step3_results():
    """Step 3: Results dashboard."""
    st.header("📊 Step 3: Your Solar Analysis Results")

    analysis = st.session_state.analysis
    if not analysis or not analysis.insights:
        st.warning("Please complete all previous steps.")
        if st.button("← Start Over"):
            st.session_state.step = 1
            st.rerun()
        return

    estimate = st.session_state.zone_estimate
    if estimate is None:
        st.info("No zone drawn, showing the estimate for the whole usable roof.")
        estimate = estimate_whole_roof(analysis.insights.solar_potential, current_price())

    metrics = estimate.metrics
    financials = estimate.financials
    rate = analysis.electricity_rate

    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.metric("Panels", f"{metrics.number_of_panels}",
                  help=f"{DEFAULT_CONFIG.panel_width_m}m × {DEFAULT_CONFIG.panel_height_m}m, "
                       f"{DEFAULT_CONFIG.panel_power_w:.0f}W each")
    with col2:
        st.metric("Peak Power", f"{metrics.peak_power_kwc:.1f} kWc")
    with col3:
        st.metric("Annual Production", f"{metrics.estimated_energy_kwh:,.0f} kWh")
    with col4:
        st.metric("CO₂ Avoided", f"{financials.carbon_offset_kg:,.0f} kg/yr")

    st.caption(
        f"Usable area {metrics.usable_area_m2:,.1f} m² of {metrics.area_m2:,.1f} m² "
        f"({metrics.utilization_percent:.0f}%) · "
        f"{metrics.production_per_panel_kwh:,.0f} kWh/panel · "
        f"{metrics.production_per_m2_kwh:,.0f} kWh/m² · "
        f"{metrics.monthly_average_kwh:,.0f} kWh/month · "
        f"pitch {estimate.average_pitch_degrees:.0f}°, "
        f"facing {orientation_label(estimate.azimuth_degrees)} ({estimate.azimuth_degrees:.0f}°)"
    )

    st.divider()

    col1, col2 = st.columns([1, 1])

    with col1:
        st.subheader("💰 Financial Analysis")

        installation = financials.installation
        st.metric("Cost Before Incentives", f"€{installation.gross_cost:,.0f}")
        st.metric("Incentives", f"-€{installation.total_incentives:,.0f}")
        st.metric("**Net Cost**", f"€{installation.net_cost:,.0f}")
        st.metric("Maintenance", f"€{installation.annual_maintenance:,.0f}/year")

        price_label = format_electricity_rate(financials.electricity_price, 'CENTS')
        if rate and rate.is_fallback:
            price_label += " (estimate)"
        country = rate.country_code if rate else DEFAULT_COUNTRY
        st.caption(f"Electricity price: {price_label} · {COUNTRY_NAMES.get(country, country)}")

        st.divider()

        scenario_rows = []
        for scenario in (financials.self_consumption, financials.resale):
            scenario_rows.append({
                'Scenario': scenario.name.replace('_', ' ').title(),
                'Price (€/kWh)': round(scenario.price_per_kwh, 4),
                'Gross revenue (€/yr)': round(scenario.gross_revenue),
                'Net revenue (€/yr)': round(scenario.net_revenue),
                'Payback (years)': round(scenario.simple_payback_years, 1),
                f'{financials.analysis_years}-year net benefit (€)': round(scenario.net_benefit),
            })
        st.dataframe(pd.DataFrame(scenario_rows).set_index('Scenario'), use_container_width=True)

    with col2:
        st.subheader("📈 Cumulative Profit Over Time")
        render_cash_flow_chart(financials)

    with st.expander("Yearly projection (self-consumption)"):
        yearly = pd.DataFrame([vars(row) for row in financials.self_consumption.yearly])
        if not yearly.empty:
            st.dataframe(yearly.set_index('year').round(2), use_container_width=True)

    st.divider()

    col1, col2, col3 = st.columns([1, 1, 1])
    with col1:
        if st.button("← Back to Zone", use_container_width=True):
            st.session_state.step = 2
            st.rerun()
    with col3:
        if st.button("🔄 Start New Analysis", use_container_width=True):
            st.session_state.request_guard.close()
            # Reset session state
            for key in list(st.session_state.keys()):
                del st.session_state[key]
            st.rerun()


def main():
    """Main application entry point."""

    # Initialize session state
    initialize_session_state()

    # Sidebar
    with st.sidebar:
        st.title("☀️ Solar Estimator")
        st.markdown("**Rooftop Solar Zone Estimator**")
        st.divider()

        st.markdown("### About")
        st.markdown("""
        This tool helps you estimate:
        - Panels and power for the roof area you choose
        - Yearly production from Google Solar API sunshine data
        - Cost, incentives, payback and 25-year benefit

        **Powered by:**
        - Google Geocoding & Solar APIs
        - European electricity rates
        """)

        st.divider()

        # Quick navigation
        st.markdown("### Quick Jump")
        step = st.radio(
            "Go to step:",
            [1, 2, 3],
            index=st.session_state.step - 1,
            format_func=lambda x: STEPS[x - 1],
            label_visibility="collapsed"
        )
        if step != st.session_state.step:
            st.session_state.step = step
            st.rerun()

    # Main content
    st.title("☀️ Rooftop Solar Estimator")

    # Step indicator
    render_step_indicator()

    # Render current step
    if st.session_state.step == 1:
        step1_property_input()
    elif st.session_state.step == 2:
        step2_draw_zone()
    elif st.session_state.step == 3:
        step3_results()


if __name__ == "__main__":
    main()
