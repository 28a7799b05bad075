#!/usr/bin/env python3

import argparse
import atexit
import sys
import threading

from gridlib.actuators import FinderActuator, MemoryActuator
from gridlib.config import load_config
from gridlib.control import ControlListener
from gridlib.errors import GridError
from gridlib.frame_source import gif_to_frames, load_frames, write_frames
from gridlib.renderer import GridRenderer

renderer = None            # Will be initialized in main
control_listener = None    # Will be initialized in main when --control is given
cancel_event = threading.Event()


def cleanup_and_exit():
    """Cleanup function called on program exit."""
    global control_listener
    if control_listener:
        control_listener.stop_listener()
        control_listener = None


def print_stats(stats):
    print(f"Frames rendered: {stats['frames_rendered']} on a {stats['grid'][0]}x{stats['grid'][1]} grid")
    print(f"Operations: {stats['adds']} add, {stats['deletes']} delete, {stats['moves']} move")
    print(f"Average diff {stats['avg_diff_ms']:.2f}ms, average dispatch {stats['avg_dispatch_ms']:.2f}ms")
    if 'dispatch' in stats:
        dispatch = stats['dispatch']
        print(f"Dispatch: {dispatch['operations_sent']} sent, {dispatch['operations_failed']} failed "
              f"({dispatch['failure_rate']:.1f}%) in {dispatch['batches_sent']} batches")


def build_parser():
    parser = argparse.ArgumentParser(description='Play 0/1 frame sequences on a grid of reusable desktop folders')
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--frames', help='JSON file of frames to play')
    source.add_argument('--gif', help='Animated GIF to convert and play')
    parser.add_argument('--export', help='Write the converted GIF frames to this JSON file and exit')
    parser.add_argument('--config', help='Path to JSON configuration file')
    parser.add_argument('--interval', type=int, help='Delay between frames in milliseconds (default: 500)')
    parser.add_argument('--scale', type=int, help='Integer upscale factor applied to every frame')
    parser.add_argument('--pad-x', type=int, help='Empty columns added on each side')
    parser.add_argument('--pad-y', type=int, help='Empty rows added on each side')
    parser.add_argument('--width', type=int, help='Maximum GIF frame width in cells')
    parser.add_argument('--height', type=int, help='Maximum GIF frame height in cells')
    parser.add_argument('--threshold', type=int, help='GIF pixel intensity threshold (0-255)')
    parser.add_argument('--monitor', type=int, help='Index of the monitor to draw on')
    parser.add_argument('--batches', type=int, help='Number of concurrent actuator batches')
    parser.add_argument('--delete-mode', choices=['park', 'remove'], help='Park unused folders or remove them')
    parser.add_argument('--loop', action='store_true', default=None, help='Repeat the sequence until cancelled')
    parser.add_argument('--perf', action='store_true', default=None, help='Print timing for every frame')
    parser.add_argument('--dry-run', action='store_true', help='Use an in-memory actuator instead of Finder')
    parser.add_argument('--control', action='store_true', help='Listen for quit/clean messages over ZMQ')
    parser.add_argument('--cleanup', action='store_true', help='Remove all folders when playback ends')
    parser.add_argument('--verbose', action='store_true', help='Print every dispatch')
    return parser


def main(argv=None):
    global renderer, control_listener

    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config, overrides={
            'interval': args.interval,
            'scale': args.scale,
            'pad_x': args.pad_x,
            'pad_y': args.pad_y,
            'max_width': args.width,
            'max_height': args.height,
            'threshold': args.threshold,
            'monitor_index': args.monitor,
            'batch_count': args.batches,
            'delete_mode': args.delete_mode,
            'loop': args.loop,
            'performance_log': args.perf
        })
    except GridError as e:
        print(f"Config error: {e}")
        return 1

    try:
        if args.gif:
            frames = gif_to_frames(args.gif, config['max_width'], config['max_height'], config['threshold'])
            print(f"Converted {len(frames)} frames from {args.gif}")
        else:
            frames = load_frames(args.frames)
    except (OSError, ValueError) as e:
        print(f"Could not load frames: {e}")
        return 1

    if args.export:
        write_frames(frames, args.export)
        return 0

    if not frames:
        print("No frames to play")
        return 1

    atexit.register(cleanup_and_exit)

    if args.dry_run:
        actuator = MemoryActuator(verbose=args.verbose)
        surface_size = config['surface_size'] or (1920, 1080)
    else:
        actuator = FinderActuator()
        surface_size = config['surface_size']

    renderer = GridRenderer(
        actuator,
        parked_position=config['parked_position'],
        monitor_index=config['monitor_index'],
        surface_size=surface_size,
        batch_count=config['batch_count'],
        delete_mode=config['delete_mode'],
        performance_log=config['performance_log'],
        verbose=args.verbose
    )

    if args.control:
        control_listener = ControlListener(config['control_address'], cancel_event=cancel_event)
        if not control_listener.start_listener():
            print("Failed to initialize control listener. Exiting.")
            return 1

    print(f"Playing {len(frames)} frames every {config['interval']}ms")
    print("Press Ctrl+C to stop")

    exit_code = 0
    try:
        renderer.render_frames(
            frames,
            interval=config['interval'],
            scale=config['scale'],
            pad_x=config['pad_x'],
            pad_y=config['pad_y'],
            cancel_event=cancel_event,
            loop=config['loop']
        )
    except KeyboardInterrupt:
        print("\nStopping playback...")
        cancel_event.set()
    except GridError as e:
        print(f"Render error: {e}")
        exit_code = 1
    finally:
        wants_cleanup = args.cleanup or (control_listener is not None and control_listener.cleanup_requested.is_set())
        if wants_cleanup:
            renderer.cleanup()
        if renderer.initialized:
            print_stats(renderer.get_stats())
        cleanup_and_exit()

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
