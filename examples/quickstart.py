"""Trainspotter Quickstart — rank upcoming Starlink train passes for a location."""

import asyncio
import logging

from trainspotter import ObserverLocation, PredictionEngine, SpaceXClient

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

# San Francisco
observer = ObserverLocation(37.7749, -122.4194, name="San Francisco", timezone="America/Los_Angeles")

client = SpaceXClient()
engine = PredictionEngine(client, client, client)


async def main() -> None:
    passes = await engine.get_predictions(observer)
    quality = await engine.get_prediction_quality(observer)

    print(f"Location:  {observer.label}")
    print(f"Quality:   {quality.quality} ({', '.join(quality.factors) or 'no issues'})")
    print(f"Passes:    {len(passes)}")
    for p in passes[:5]:
        local = observer.local_time(p.peak)
        print(
            f"{local:%a %H:%M} | {p.launch_name or p.launch_id} | "
            f"max el {p.max_elevation_deg:.0f}° | az {p.azimuth_start_deg:.0f}°→{p.azimuth_end_deg:.0f}° | "
            f"score {p.score:.3f}"
        )


asyncio.run(main())
