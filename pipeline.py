import asyncio
import logging
from enum import Enum
from typing import List, Tuple

from client import PlanningError, SlideApiClient
from slide_schema import PlanItem, Slide, new_id, now_ms

logger = logging.getLogger(__name__)


class GenerationStatus(str, Enum):
    IDLE = "idle"
    PLANNING = "planning"
    GENERATING = "generating"
    COMPLETE = "complete"


class GenerationError(Exception):
    """Planning failed, so no slides were generated."""


class SlideGenerator:
    """Plans a script, generates every slide concurrently and reassembles them in plan order."""

    def __init__(self, client: SlideApiClient):
        self.client = client
        self.status = GenerationStatus.IDLE
        self.plan: List[PlanItem] = []

    async def _generate_indexed(self, script: str, index: int, item: PlanItem) -> Tuple[int, str]:
        html = await self.client.generate_slide(script, item)
        return index, html

    async def generate(self, script: str) -> List[Slide]:
        self.status = GenerationStatus.PLANNING
        self.plan = []
        try:
            self.plan = await self.client.plan(script)
        except PlanningError as e:
            logger.error("Failed to generate slides: %s", e)
            self.status = GenerationStatus.IDLE
            raise GenerationError("生成幻灯片失败，请检查您的 API Key 是否正确配置。") from e

        self.status = GenerationStatus.GENERATING
        logger.info("Generating %d slides", len(self.plan))
        try:
            results = await asyncio.gather(
                *(self._generate_indexed(script, i, item) for i, item in enumerate(self.plan))
            )
            results = sorted(results, key=lambda r: r[0])

            base_ts = now_ms()
            slides = [
                Slide(id=new_id(), html=html, prompt=script, variant="original", timestamp=base_ts + index)
                for index, html in results
            ]
        except Exception:
            self.status = GenerationStatus.IDLE
            raise
        self.status = GenerationStatus.COMPLETE
        return slides
