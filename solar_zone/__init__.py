"""Rooftop solar zone estimator."""

from .config import DEFAULT_CONFIG, EstimatorConfig

from .geometry import (
    GeoPoint,
    area,
    perimeter,
    point_distance,
    net_area
)

from .models import (
    BuildingInsights,
    PanelConfig,
    RoofSegmentStats,
    SolarPotential
)

from .zone_metrics import (
    ZoneMetrics,
    average_pitch,
    calculate_zone_metrics,
    extract_best_roof_segment,
    nearest_segment_pitch
)

from .financial_calcs import (
    FinancialProjection,
    InstallationCost,
    ScenarioResult,
    calculate_financial_projection,
    calculate_installation_cost
)

from .pipeline import ZoneEstimate, estimate_whole_roof, estimate_zone

from .drawing import (
    DrawingController,
    DrawingMode,
    DrawingSession,
    DrawingSurface,
    add_point,
    clear,
    complete_hole,
    finish_drawing,
    redo,
    start_drawing,
    start_hole,
    undo
)

from .api_calls import (
    ElectricityRate,
    ErrorCategory,
    GeocodingResult,
    SolarInsightsResult,
    fetch_electricity_price,
    geocode_address,
    get_building_insights
)

from .analysis import AnalysisOutcome, RequestGuard, analyze_address

from .country_data import (
    COUNTRY_NAMES,
    DEFAULT_COUNTRY,
    RETAIL_RATES,
    format_electricity_rate,
    get_fallback_rate,
    orientation_label
)
