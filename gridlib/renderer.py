import time

import numpy as np

from gridlib.actuators import REMOVE, ActuatorCommand, query_screen_dimensions
from gridlib.display_state import DisplayState, IdentityPool
from gridlib.dispatch import CoordinateMapper, DispatchPipeline
from gridlib.errors import InitializationError
from gridlib.frame_source import prepare_frames
from gridlib.operations import summarize
from gridlib.reconciler import apply_operations, diff, validate_bitmap


class GridRenderer:
    """Plays 0/1 frames on a grid of reusable display identities.

    The first frame locks the grid shape and creates rows * cols identities
    at the parked position. Every later frame is diffed against the current
    layout and only the resulting ADD / DELETE / MOVE operations are sent.
    """

    def __init__(self, actuator, parked_position=(0, 0), monitor_index=0, surface_size=None,
                 batch_count=4, delete_mode='park', performance_log=False, verbose=False):
        self.actuator = actuator
        self.parked_position = tuple(parked_position)
        self.monitor_index = monitor_index
        self.surface_size = tuple(surface_size) if surface_size else None
        self.batch_count = batch_count
        self.delete_mode = delete_mode
        self.performance_log = performance_log
        self.verbose = verbose

        self.rows = None
        self.cols = None
        self.display = None
        self.pool = None
        self.pipeline = None
        self.stats = {
            'frames_rendered': 0,
            'adds': 0,
            'deletes': 0,
            'moves': 0,
            'diff_time': 0.0,
            'dispatch_time': 0.0
        }

    @property
    def initialized(self):
        return self.display is not None

    def _resolve_surface_size(self):
        if self.surface_size:
            return self.surface_size
        resolutions = query_screen_dimensions()
        if self.monitor_index > len(resolutions) - 1:
            raise InitializationError(
                f"invalid monitor index {self.monitor_index}, {len(resolutions)} display(s) found")
        return resolutions[self.monitor_index]

    def init(self, rows, cols):
        """Lock the grid shape and create every identity at the parked position."""
        if self.initialized:
            raise InitializationError("init called after display exists")

        width, height = self._resolve_surface_size()
        self.surface_size = (width, height)
        mapper = CoordinateMapper(rows, cols, width, height)
        self.pipeline = DispatchPipeline(
            self.actuator,
            mapper,
            parked_position=self.parked_position,
            batch_count=self.batch_count,
            delete_mode=self.delete_mode,
            verbose=self.verbose
        )

        self.rows = rows
        self.cols = cols
        self.pool = IdentityPool.fresh(rows * cols)
        self.display = DisplayState(rows, cols)

        self.pipeline.materialize(list(self.pool))
        print(f"Grid renderer initialized: {rows}x{cols} grid on {width}x{height} surface")

    def render(self, bitmap):
        """
        Render one frame.

        Returns:
            list of DispatchOutcome, one per operation sent

        Raises:
            DimensionMismatch, InvalidCellValue, PoolExhausted: the display
            state is left unchanged
        """
        if not self.initialized:
            arr = validate_bitmap(bitmap)
            self.init(arr.shape[0], arr.shape[1])

        start = time.perf_counter()
        ops = diff(self.display, bitmap, self.pool)
        self.display = apply_operations(self.display, ops)
        diff_time = time.perf_counter() - start

        start = time.perf_counter()
        outcomes = self.pipeline.dispatch(ops)
        dispatch_time = time.perf_counter() - start

        counts = summarize(ops)
        self.stats['frames_rendered'] += 1
        self.stats['adds'] += counts['add']
        self.stats['deletes'] += counts['delete']
        self.stats['moves'] += counts['move']
        self.stats['diff_time'] += diff_time
        self.stats['dispatch_time'] += dispatch_time

        if self.performance_log:
            print(f"Frame {self.stats['frames_rendered']}: "
                  f"diff {diff_time * 1000:.1f}ms, dispatch {dispatch_time * 1000:.1f}ms, "
                  f"{counts['add']} add / {counts['delete']} delete / {counts['move']} move")
        return outcomes

    def render_frames(self, frames, interval=500, scale=None, pad_x=0, pad_y=0,
                      cancel_event=None, loop=False):
        """
        Render a sequence of frames with `interval` milliseconds between them.

        The cancellation event is checked between frames; the wait itself
        returns early when the event is set.

        Returns:
            number of frames rendered
        """
        frames = prepare_frames(frames, scale, pad_x, pad_y)
        rendered = 0
        while True:
            for frame in frames:
                if cancel_event is not None and cancel_event.is_set():
                    return rendered
                self.render(frame)
                rendered += 1
                if cancel_event is not None:
                    cancel_event.wait(interval / 1000)
                else:
                    time.sleep(interval / 1000)
            if not loop or not frames:
                return rendered

    def clear(self):
        """Empty the grid. Every occupied identity goes back to the pool."""
        if not self.initialized:
            return []
        return self.render(np.zeros((self.rows, self.cols), dtype=np.uint8))

    def cleanup(self):
        """Remove every identity from the actuator, occupied or not."""
        if not self.initialized:
            return []
        identities = self.display.identities() + list(self.pool)
        commands = [ActuatorCommand(REMOVE, identity) for identity in identities]
        errors = [e for e in self.actuator.execute_batch(commands) if e is not None]
        for error in errors:
            print(f"Cleanup failed: {error}")
        print(f"Removed {len(identities) - len(errors)} of {len(identities)} identities")
        return errors

    def get_stats(self):
        frames = self.stats['frames_rendered']
        stats = {
            'initialized': self.initialized,
            'grid': (self.rows, self.cols),
            'frames_rendered': frames,
            'adds': self.stats['adds'],
            'deletes': self.stats['deletes'],
            'moves': self.stats['moves'],
            'occupied': self.display.occupied_count() if self.initialized else 0,
            'free': len(self.pool) if self.initialized else 0,
            'avg_diff_ms': self.stats['diff_time'] / frames * 1000 if frames > 0 else 0,
            'avg_dispatch_ms': self.stats['dispatch_time'] / frames * 1000 if frames > 0 else 0
        }
        if self.pipeline:
            stats['dispatch'] = self.pipeline.get_stats()
        return stats
