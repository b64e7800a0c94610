import logging
import time
from concurrent import futures
from contextlib import contextmanager
from typing import List, Tuple
import numpy as np

from core.scene import Scene, SceneSnapshot, RenderSettings
from core.framebuffer import FrameBuffer
from renderers.base_renderer import BaseRenderer, RendererFactory
from renderers.cpu_renderer import CPURenderer

logger = logging.getLogger(__name__)


def _render_chunks(engine: CPURenderer, snapshot: SceneSnapshot, width: int, height: int,
                   chunks: List[Tuple[int, int]]) -> List[Tuple[int, np.ndarray]]:
    # module level so process workers can unpickle it
    return [(y0, engine.render_rows(snapshot, width, height, y0, y1)) for y0, y1 in chunks]


def row_chunks(height: int, chunk_rows: int) -> List[Tuple[int, int]]:
    """Disjoint [y0, y1) row ranges covering 0..height."""
    return [(y0, min(y0 + chunk_rows, height)) for y0 in range(0, height, chunk_rows)]


def group_chunks(chunks: List[Tuple[int, int]], groups: int) -> List[List[Tuple[int, int]]]:
    """Deal chunks round-robin into at most `groups` non-empty lists."""
    dealt = [chunks[i::groups] for i in range(groups)]
    return [g for g in dealt if g]


@contextmanager
def _settled(pending: List[futures.Future]):
    """On failure, cancel queued tasks and wait for running ones before re-raising."""
    try:
        yield
    except BaseException:
        for f in pending:
            f.cancel()
        futures.wait(pending)
        raise


class ParallelRenderer(BaseRenderer):
    """Splits the frame into row chunks and shades them on a worker pool.

    Every chunk runs the same CPURenderer.render_rows routine as the
    single-threaded path and owns a disjoint row range of the frame
    buffer, so the result does not depend on the number of workers.
    """

    def __init__(self, settings: RenderSettings = None):
        super().__init__("parallel_raytracer")
        self.settings = settings if settings is not None else RenderSettings()
        self.engine = CPURenderer(self.settings)
        self._executor = None

    def get_capabilities(self) -> List[str]:
        return self.engine.get_capabilities() + ["parallel_rows"]

    def _pool(self) -> futures.Executor:
        if self._executor is None:
            if self.settings.pool == "process":
                self._executor = futures.ProcessPoolExecutor(max_workers=self.settings.workers)
            else:
                self._executor = futures.ThreadPoolExecutor(max_workers=self.settings.workers,
                                                            thread_name_prefix="render")
            logger.info("started %s pool with %d workers", self.settings.pool, self.settings.workers)
        return self._executor

    def close(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _fill_rows(self, snapshot: SceneSnapshot, buffer: FrameBuffer, y0: int, y1: int):
        buffer.write_rows(y0, self.engine.render_rows(snapshot, buffer.width, buffer.height, y0, y1))

    def render(self, scene: Scene, buffer: FrameBuffer) -> FrameBuffer:
        start_time = time.time()
        # scene state for this frame is fixed before any chunk is dispatched
        snapshot = scene.snapshot(self.settings.shadow_samples)
        chunks = row_chunks(buffer.height, self.settings.chunk_rows)
        buffer.begin_frame()

        if self.settings.workers == 1:
            for y0, y1 in chunks:
                self._fill_rows(snapshot, buffer, y0, y1)
        elif self.settings.pool == "process":
            # one task per worker, so the snapshot is pickled once per worker per frame
            pending = [
                self._pool().submit(_render_chunks, self.engine, snapshot, buffer.width, buffer.height, group)
                for group in group_chunks(chunks, self.settings.workers)
            ]
            with _settled(pending):
                for done in futures.as_completed(pending):
                    for y0, block in done.result():
                        buffer.write_rows(y0, block)
        else:
            pending = [
                self._pool().submit(self._fill_rows, snapshot, buffer, y0, y1)
                for y0, y1 in chunks
            ]
            with _settled(pending):
                for done in futures.as_completed(pending):
                    done.result()

        logger.debug("frame %dx%d at t=%.3f: %d chunks on %d workers in %.3fs",
                     buffer.width, buffer.height, snapshot.time, len(chunks),
                     self.settings.workers, time.time() - start_time)
        return buffer


RendererFactory.register("parallel_raytracer", ParallelRenderer)
