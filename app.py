import html
import os
from typing import List, Sequence, Tuple

from flask import Flask, render_template, request, redirect, url_for, flash, jsonify
import folium

import settings
from held_karp import Result, solve
from locations import Location

app = Flask(__name__)
app.secret_key = settings.FLASK_SECRET_KEY or os.urandom(24)

FORM_ROWS = 6


def parse_locations(names: Sequence[str], lats: Sequence[str],
                    lons: Sequence[str]) -> Tuple[List[Location], List[int]]:
    """Returns the filled-in locations and, for each, its row number in the input."""
    locations: List[Location] = []
    rows: List[int] = []
    for row, (name, lat_str, lon_str) in enumerate(zip(names, lats, lons)):
        if lat_str.strip() == "" or lon_str.strip() == "":
            continue
        try:
            lat = float(lat_str)
            lon = float(lon_str)
        except ValueError:
            raise ValueError("Latitude/Longitude must be numeric.")
        if not (-90 <= lat <= 90 and -180 <= lon <= 180):
            raise ValueError("Latitude must be [-90,90], Longitude must be [-180,180].")
        locations.append(Location(name.strip() or f"Stop {row}", lat, lon))
        rows.append(row)
    if len(locations) < 2:
        raise ValueError("Please enter at least 2 valid locations.")
    if len(locations) > settings.TSP_MAX_NODES:
        raise ValueError(f"Please limit to {settings.TSP_MAX_NODES} locations.")
    return locations, rows


def parse_start(value, rows: List[int]) -> int:
    """Map the start's row number to its index among the filled-in locations."""
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError("Start must be the number of a location.")
    try:
        row = int(value)
    except (TypeError, ValueError):
        raise ValueError("Start must be the number of a location.")
    if row not in rows:
        raise ValueError(f"Start location #{row} is empty or missing.")
    return rows.index(row)


def build_itinerary(locations: List[Location], start: int, result: Result) -> List[dict]:
    # Visit 1 is the start itself; the tour then ends back at it.
    stops = [locations[start]] + list(result)
    itinerary = []
    for i, stop in enumerate(stops):
        leg_km = 0.0 if i == 0 else stops[i - 1].distance_to(stop)
        itinerary.append({
            "visit": i + 1,
            "name": stop.name,
            "lat": stop.latitude,
            "lon": stop.longitude,
            "leg_km": round(leg_km, 3),
        })
    return itinerary


def add_markers_in_order(m: folium.Map, stops: List[Location]):
    for visit_idx, stop in enumerate(stops[:-1], start=1):
        if visit_idx == 1:
            icon = folium.Icon(color="green", icon="play")
            label = f"Start: {html.escape(stop.name)}"
        else:
            icon = folium.Icon(color="blue", icon="flag")
            label = f"Stop {visit_idx}: {html.escape(stop.name)}"
        folium.Marker([stop.latitude, stop.longitude], popup=label, tooltip=label, icon=icon).add_to(m)

    # Closing stop = back to start
    last = stops[-1]
    folium.Marker(
        [last.latitude, last.longitude],
        popup="Return to Start",
        tooltip="Return to Start",
        icon=folium.Icon(color="red", icon="home")
    ).add_to(m)


def build_route_map(stops: List[Location]) -> folium.Map:
    points = [(stop.latitude, stop.longitude) for stop in stops]
    m = folium.Map(location=points[0], zoom_start=10, control_scale=True)
    add_markers_in_order(m, stops)
    folium.PolyLine(points, weight=4, opacity=0.8, color="blue").add_to(m)
    m.fit_bounds(points)
    return m


@app.route("/", methods=["GET", "POST"])
def index():
    if request.method == "POST":
        try:
            locations, rows = parse_locations(
                request.form.getlist("name[]"),
                request.form.getlist("lat[]"),
                request.form.getlist("lon[]"),
            )
            start = parse_start(request.form.get("start", "0"), rows)
        except ValueError as e:
            flash(str(e), "error")
            return redirect(url_for("index"))

        result = solve(locations, start)
        if not result.is_feasible:
            flash("No round trip connects these locations.", "error")
            return redirect(url_for("index"))

        itinerary = build_itinerary(locations, start, result)
        route_html = build_route_map([locations[start]] + list(result))._repr_html_()

        return render_template(
            "results.html",
            route_html=route_html,
            total_km=round(result.total_distance, 3),
            itinerary=itinerary,
        )

    return render_template("index.html", rows=range(FORM_ROWS), max_points=settings.TSP_MAX_NODES)


@app.route("/api/solve", methods=["POST"])
def api_solve():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or not isinstance(payload.get("locations"), list):
        return jsonify(error="Expected a JSON object with a 'locations' list."), 400

    items = [item if isinstance(item, dict) else {} for item in payload["locations"]]
    try:
        locations, rows = parse_locations(
            [str(item.get("name", "")) for item in items],
            [str(item.get("lat", "")) for item in items],
            [str(item.get("lon", "")) for item in items],
        )
        start = parse_start(payload.get("start", 0), rows)
    except ValueError as e:
        return jsonify(error=str(e)), 400

    result = solve(locations, start)
    itinerary = build_itinerary(locations, start, result)
    return jsonify(
        total_km=result.total_distance if result.is_feasible else None,
        tour=[stop.name for stop in result],
        legs=[row["leg_km"] for row in itinerary[1:]],
    )


if __name__ == "__main__":
    app.run(debug=True)
