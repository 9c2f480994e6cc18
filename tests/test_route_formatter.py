from zenroute.schemas.routes import EnhancedRouteModel
from zenroute.services.outputs.route_formatter import format_distance, format_duration
from zenroute.services.routes.fallback import demo_routes


def test_format_duration():
    assert format_duration(720) == "12 min"
    assert format_duration(90) == "2 min"
    assert format_duration(3600) == "1h 0m"
    assert format_duration(5430) == "1h 31m"


def test_format_distance():
    assert format_distance(850) == "850 m"
    assert format_distance(5200) == "5.2 km"


def test_route_model_display_uses_traffic_duration():
    express = EnhancedRouteModel.from_domain(demo_routes()[2])

    assert express.display_duration == "18 min"
    assert express.display_distance == "4.8 km"
    assert express.warnings == ["Construction ahead"]
    assert express.legs == []
