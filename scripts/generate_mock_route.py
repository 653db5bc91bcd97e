import numpy as np
import pandas as pd

from routing.models import Route, RouteLeg, RouteStep

METERS_PER_DEG_LAT = 111320.0

# (ref, name, length in meters, style)
DEFAULT_SECTIONS = [
    ("I-80", None, 9000.0, "highway"),
    ("CA-49", None, 6000.0, "winding"),
    (None, "Main Street", 1600.0, "urban"),
]


def _turns(style, count, step_m, rng):
    """Per-point heading change in degrees for one section."""
    s = np.arange(count) * step_m
    if style == "highway":
        # long gentle sweeps, 30-40 degrees spread over a kilometer or so
        return 1.0 * np.sin(2 * np.pi * s / 2400.0) + rng.normal(0.0, 0.03, count)
    if style == "winding":
        return 7.5 * np.sin(2 * np.pi * s / 700.0) + rng.normal(0.0, 0.3, count)
    # urban grid: straight blocks with a square corner every 400 m
    turns = np.zeros(count)
    corners = np.arange(count)[(s % 400.0 < step_m) & (s > 0)]
    turns[corners] = rng.choice([-90.0, 90.0], size=len(corners))
    return turns


def generate_mock_route(sections=None, step_m=20.0, start=(-121.05, 39.22), seed=7, output_file=None):
    """
    Generates a synthetic drive as one point every step_m meters: an interstate
    stretch, a twisty state route, then a town grid. Each row carries the road
    it belongs to so the router's turn-by-turn steps can be rebuilt from it.
    """
    sections = sections or DEFAULT_SECTIONS
    rng = np.random.default_rng(seed)

    frames = []
    heading = 0.0
    lng, lat = start
    offset_m = 0.0
    for ref, name, length_m, style in sections:
        count = max(int(length_m // step_m), 1)
        headings = heading + np.cumsum(_turns(style, count, step_m, rng))
        rad = np.radians(headings)

        lats = lat + np.cumsum(np.cos(rad) * step_m / METERS_PER_DEG_LAT)
        lngs = lng + np.cumsum(np.sin(rad) * step_m / (METERS_PER_DEG_LAT * np.cos(np.radians(lats))))

        frames.append(pd.DataFrame({
            "lng": np.round(lngs, 7),
            "lat": np.round(lats, 7),
            "distance_m": offset_m + (np.arange(count) + 1) * step_m,
            "ref": ref,
            "name": name,
            "style": style,
        }))
        heading, lng, lat = headings[-1], lngs[-1], lats[-1]
        offset_m += count * step_m

    start_row = pd.DataFrame([{
        "lng": start[0], "lat": start[1], "distance_m": 0.0,
        "ref": sections[0][0], "name": sections[0][1], "style": sections[0][3],
    }])
    df = pd.concat([start_row] + frames, ignore_index=True)

    if output_file:
        df.to_csv(output_file, index=False)
        print(f"✅ Generated {len(df)} route points ({offset_m / 1609.344:.1f} mi) and saved to '{output_file}'")
        print("\nSections:")
        for style, group in df.groupby("style", sort=False):
            print(f"  {style}: {group['distance_m'].max() - group['distance_m'].min():.0f} m")
    return df


def _text(value):
    return value if isinstance(value, str) and value else None


def route_from_frame(df):
    """Route with one leg whose steps follow the frame's road runs."""
    road = df["ref"].fillna("") + "|" + df["name"].fillna("")
    run_id = (road != road.shift()).cumsum()

    bounds = df.groupby(run_id, sort=True).agg(
        start=("distance_m", "min"), ref=("ref", "first"), name=("name", "first"),
    )
    total = float(df["distance_m"].iloc[-1])
    ends = list(bounds["start"].iloc[1:]) + [total]

    steps = [
        RouteStep(distance=float(end - row.start), ref=_text(row.ref), name=_text(row.name))
        for row, end in zip(bounds.itertuples(), ends)
    ]
    return Route.new(
        coordinates=df[["lng", "lat"]].to_numpy().tolist(),
        distance=total,
        legs=[RouteLeg(distance=total, steps=tuple(steps))],
    )


if __name__ == "__main__":
    generate_mock_route(output_file="mock_route.csv")
