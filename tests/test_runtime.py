import asyncio

from legal_research.incidents import SAMPLE_INCIDENTS, IncidentLoader
from legal_research.safety import SafetyProcessor

from app.runtime import SafetyCatalog


class CountingLoader(IncidentLoader):
    """Fails the first three loads, then serves the bundled samples."""

    def __init__(self):
        super().__init__([])
        self.calls = 0

    async def load_all(self):
        self.calls += 1
        await asyncio.sleep(0)
        if self.calls <= 3:
            raise RuntimeError("catalogue offline")
        return list(SAMPLE_INCIDENTS)


LOADER = CountingLoader()
CATALOG = SafetyCatalog(SafetyProcessor([]), LOADER)


def test_catalog_built_before_the_loop_loads_across_loops():
    async def run():
        await asyncio.gather(*(CATALOG.ensure_loaded() for _ in range(3)))

    asyncio.run(run())
    assert not CATALOG.initialized

    asyncio.run(run())

    assert CATALOG.initialized
    assert LOADER.calls == 4
    assert CATALOG.processor.stats()["total_incidents"] == 8
