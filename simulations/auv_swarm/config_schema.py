"""Config schema for the auv_swarm simulation."""

REQUIRED_PARAMS = {
    "num_agents": int,
}

DEFAULTS = {
    "num_agents": 25,
    "seed": 0,
    "tick_interval_ms": 200,
    "min_x": -50.0,
    "max_x": 50.0,
    "min_y": -50.0,
    "max_y": 50.0,
    "boundary_margin": 5.0,
    "spawn_extent": 40.0,
    "min_speed": 2.0,
    "max_speed": 4.0,
    "safety_radius": 5.0,
    "initial_route_probability": 0.5,
    "min_initial_waypoints": 2,
    "max_initial_waypoints": 4,
    "websocket_host": "127.0.0.1",
    "websocket_port": 8080,
}

OPTIONAL_PARAMS = {
    "seed": int,
    "tick_interval_ms": int,
    "min_x": float,
    "max_x": float,
    "min_y": float,
    "max_y": float,
    "boundary_margin": float,
    "spawn_extent": float,
    "min_speed": float,
    "max_speed": float,
    "safety_radius": float,
    "initial_route_probability": float,
    "min_initial_waypoints": int,
    "max_initial_waypoints": int,
    "websocket_host": str,
    "websocket_port": int,
}
