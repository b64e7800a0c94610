import argparse
import logging
import math
import time

from core.scene import RenderSettings
from core.framebuffer import FrameBuffer
from scene_builders.portal_scene_builder import PortalSceneBuilder
from renderers.base_renderer import RendererFactory

# renderer modules register themselves on import
import renderers.cpu_renderer
import renderers.parallel_renderer

logger = logging.getLogger("portal")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# host input steps, per frame
ORBIT_STEP = math.pi / 50.0
ZOOM_STEP = 0.5


def setup_logging(level: str = "INFO"):
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Portal diorama ray tracer with a day/night cycle')
    parser.add_argument('--renderer', '-r',
                        choices=RendererFactory.list_available(),
                        default='parallel_raytracer',
                        help='renderer to use')
    parser.add_argument('--width', '-w', type=int, default=160, help='frame width')
    parser.add_argument('--height', type=int, default=120, help='frame height')
    parser.add_argument('--frames', '-n', type=int, default=24, help='number of frames to render')
    parser.add_argument('--depth', '-d', type=int, default=3, help='max reflection/refraction depth')
    parser.add_argument('--shadow-samples', type=int, default=None,
                        help='shadow rays per light (default: per-light setting)')
    parser.add_argument('--workers', '-j', type=int, default=4, help='worker count')
    parser.add_argument('--pool', choices=['thread', 'process'], default='process',
                        help='worker pool kind')
    parser.add_argument('--chunk-rows', type=int, default=8, help='rows per task')
    parser.add_argument('--start-time', type=float, default=12.0, help='simulated hour of the first frame')
    parser.add_argument('--time-step', type=float, default=0.5, help='simulated hours per frame')
    parser.add_argument('--orbit-step', type=float, default=ORBIT_STEP,
                        help='camera azimuth change per frame (rad)')
    parser.add_argument('--zoom-step', type=float, default=0.0, help='camera radius change per frame')
    parser.add_argument('--textures', default=None, help='directory with grass/rock/lava .png textures')
    parser.add_argument('--show', action='store_true', help='show the last frame')
    parser.add_argument('--log-level', default='INFO', help='logging level')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_level)

    settings = RenderSettings(
        width=args.width,
        height=args.height,
        max_depth=args.depth,
        shadow_samples=args.shadow_samples,
        workers=args.workers,
        pool=args.pool,
        chunk_rows=args.chunk_rows,
    )

    builder = PortalSceneBuilder(texture_dir=args.textures)
    scene = builder.build_scene(start_time=args.start_time)
    buffer = FrameBuffer(settings.width, settings.height)

    logger.info("renderer: %s, %dx%d, %d frames", args.renderer, settings.width, settings.height, args.frames)

    start_time = time.time()
    with RendererFactory.create(args.renderer, settings=settings) as renderer:
        for frame in range(args.frames):
            # all state changes for this frame happen before the render dispatch
            if frame > 0:
                scene.advance_time(args.time_step)
                scene.orbit_camera(args.orbit_step, 0.0, args.zoom_step)

            t0 = time.time()
            renderer.render(scene, buffer)
            lighting = scene.lighting()
            logger.info("frame %d: t=%05.2f h, sun elevation %+.2f, %.2fs",
                        frame, scene.time, lighting.elevation, time.time() - t0)

    elapsed = time.time() - start_time
    if args.frames > 0:
        logger.info("%d frames in %.2fs (%.2f fps)", args.frames, elapsed, args.frames / elapsed)

    if args.show and args.frames > 0:
        buffer.to_image().show()


if __name__ == "__main__":
    main()
