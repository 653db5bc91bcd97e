import json
import logging
import os

import pandas as pd
from dotenv import load_dotenv

from analysis import AnalysisOptions, AnalysisSession
from enhancement.llm_client import LLMClient
from highway.chatter import pick_variant
from routing.road_reference_client import RoadReferenceClient
from routing.segment_provider import SegmentRankProvider
from scripts.generate_mock_route import generate_mock_route, route_from_frame

load_dotenv()


def load_route(filepath="sampledata/mock_route.csv"):
    # Resolve the correct path depending on where the user runs the script from.
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    absolute_path = os.path.join(base_dir, filepath)
    if os.path.exists(absolute_path):
        df = pd.read_csv(absolute_path)
    else:
        os.makedirs(os.path.dirname(absolute_path), exist_ok=True)
        df = generate_mock_route(output_file=absolute_path)
    return route_from_frame(df)


def build_options():
    """Wire the optional collaborators that have credentials in the environment."""
    rank_provider = None
    if os.getenv("ROAD_REFERENCE_URL"):
        rank_provider = SegmentRankProvider(RoadReferenceClient())

    enhancer = None
    if os.getenv("LLM_BASE_URL"):
        enhancer = LLMClient()
    return AnalysisOptions(rank_provider=rank_provider, enhancer=enhancer)


def print_summary(result):
    print(f"\nStatus: {result.status.value} (generation {result.generation}, enhanced={result.enhanced})")
    if not result.ok:
        print(f"  {result.message}")
        return

    print("\nZones:")
    for zone in result.zones:
        print(f"  {zone.start_mile:6.2f} - {zone.end_mile:6.2f} mi  {zone.character.value:<10} {zone.road}")

    if result.callouts:
        df = pd.DataFrame([c.to_dict() for c in result.callouts])
        print(f"\nCallouts ({len(df)}):")
        print(df[["triggerMile", "zone", "priority", "text"]].round(2).to_string(index=False))

    print(f"\nGrouped: {len(result.grouped.fast)} fast / {len(result.grouped.standard)} standard")
    print(f"Highway bends: {len(result.bends)}")
    for bend in result.bends:
        print(f"  mile {bend.mile:6.2f}  {bend.text}")
    print(f"Chatter items: {len(result.chatter)}")
    for item in result.chatter:
        print(f"  mile {item.trigger_mile:6.2f}  [{item.type.value}] {pick_variant(item, 65)}")
    for issue in result.zone_issues:
        print(f"⚠️ zone issue: {issue.message}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    route = load_route()
    print(f"Route: {len(route.coordinates)} points, {route.total_miles:.1f} mi")

    session = AnalysisSession(build_options())
    result = session.run(route)
    print_summary(result)

    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    output_path = os.path.join(base_dir, "route_analysis.json")
    with open(output_path, "w") as f:
        json.dump(result.to_dict(), f, indent=2)
    print(f"\n✅ Full result written to '{output_path}'")
