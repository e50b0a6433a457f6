from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from bootline.config import Config, InvalidModeError, load_config
from bootline.errors import ErrorCode, handle_exception, is_verbose, set_verbose
from bootline.render.document import DocumentStateError, load_document
from bootline.render.svg_renderer import RenderOpts, Renderer
from bootline.sources.capture import BootCapture, CaptureError, load_capture, save_capture
from bootline.sources.systemctl import SystemctlError, SystemctlSource
from bootline.timeline.event_model import Actor, Event, parse_paint
from bootline.timeline.event_store import DuplicateActorError, EventStore, UnknownActorError
from bootline.timeline.intervals import MissingReferenceError

logger = logging.getLogger(__name__)


def _load_config(args: argparse.Namespace) -> Config:
    capture = getattr(args, "capture", None)
    us_per_pixel = getattr(args, "us_per_pixel", None)
    return load_config(
        mode=getattr(args, "mode", None),
        env_file=getattr(args, "env_file", None),
        cli_overrides={
            "capture_path": Path(capture) if capture else None,
            "us_per_pixel": us_per_pixel,
        },
    )


def _collect(config: Config) -> BootCapture:
    """Load a capture file (fixture mode) or query the running system."""
    if config.is_fixture():
        if config.capture_path is None:
            raise CaptureError("fixture mode needs --capture or BOOTLINE_CAPTURE")
        logger.info("Loading capture %s", config.capture_path)
        return load_capture(config.capture_path)

    source = SystemctlSource(systemctl=config.systemctl, timeout=config.systemctl_timeout)
    return source.collect(target=config.default_target)


def _cmd_create(args: argparse.Namespace) -> int:
    scale = {"us_per_pixel": args.us_per_pixel} if args.us_per_pixel is not None else {}
    path = Renderer(RenderOpts(heading=args.heading or "", **scale)).render(args.path, EventStore())
    print(f"Created: {path}")
    return 0


def _cmd_add_actor(args: argparse.Namespace) -> int:
    renderer, store, right_edge = load_document(args.path)
    store.register_actor(Actor(args.name, tooltip=args.tooltip))
    renderer.render(args.path, store, right_edge)
    return 0


def _cmd_add_event(args: argparse.Namespace) -> int:
    renderer, store, right_edge = load_document(args.path)

    color = parse_paint(args.color)
    extra = {"label": args.label or "", "tooltip": args.tooltip}
    if args.duration is not None and args.endless:
        raise ValueError("a duration and --endless are mutually exclusive")
    if args.duration is not None:
        event = Event.span(args.start, args.duration, color, **extra)
    elif args.endless:
        event = Event.endless(args.start, color, **extra)
    else:
        event = Event.instant(args.start, color, **extra)

    store.add_event(args.actor, event)
    renderer.render(args.path, store, right_edge)
    return 0


def _cmd_capture(args: argparse.Namespace) -> int:
    config = _load_config(args)
    source = SystemctlSource(systemctl=config.systemctl, timeout=config.systemctl_timeout)
    capture = source.collect(heading=args.heading, target=config.default_target)
    path = save_capture(capture, args.out)
    print(f"Units: {len(capture.units)}")
    print(f"Capture: {path}")
    return 0


def _cmd_render(args: argparse.Namespace) -> int:
    config = _load_config(args)
    capture = _collect(config)
    store = capture.build()

    opts = RenderOpts(
        us_per_pixel=config.us_per_pixel,
        heading=args.heading if args.heading is not None else capture.heading,
    )
    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    Renderer(opts).render(out, store, right_edge=capture.default_target_reached)

    print(f"Actors: {len(store)}")
    print(f"Timeline: {out}")
    return 0


def _cmd_extract(args: argparse.Namespace) -> int:
    config = _load_config(args)
    capture = _collect(config)
    store = capture.build()
    result = {"default_target_reached": capture.default_target_reached, **store.to_dict()}
    print(json.dumps(result, indent=2))
    return 0


def _add_source_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--capture", help="Capture file to read instead of querying systemd")
    p.add_argument(
        "--mode",
        choices=["live", "fixture"],
        help="Data source (default: live, or fixture when --capture is given)",
    )
    p.add_argument("--env-file", dest="env_file", help="Path to .env file (default: search upwards)")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="bootline",
        description="Boot timeline charts from systemd timestamps",
    )
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging and full tracebacks on errors",
    )
    p.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    p_create = sub.add_parser("create", help="Create an empty chart document")
    p_create.add_argument("path", help="SVG document to create")
    p_create.add_argument("--heading", help="Heading text (may span lines)")
    p_create.add_argument("--us-per-pixel", dest="us_per_pixel", type=float, help="Time scale")
    p_create.set_defaults(func=_cmd_create)

    p_actor = sub.add_parser("add-actor", help="Add a lane to a chart document")
    p_actor.add_argument("path", help="SVG document to update")
    p_actor.add_argument("name", help="Actor name, unique within the chart")
    p_actor.add_argument("--tooltip", help="Hover text for the actor label")
    p_actor.set_defaults(func=_cmd_add_actor)

    p_event = sub.add_parser("add-event", help="Add an event to an actor's lane")
    p_event.add_argument("path", help="SVG document to update")
    p_event.add_argument("actor", help="Actor name")
    p_event.add_argument("start", type=int, help="Start in microseconds relative to kernel start")
    p_event.add_argument("duration", type=int, nargs="?", help="Duration in microseconds")
    p_event.add_argument("-e", "--endless", action="store_true", help="Extend to the chart's right edge")
    p_event.add_argument("-c", "--color", help="Fill color, e.g. rgb(255,0,0)")
    p_event.add_argument("--label", help="Event label")
    p_event.add_argument("--tooltip", help="Hover text for the bar")
    p_event.set_defaults(func=_cmd_add_event)

    p_capture = sub.add_parser("capture", help="Save this machine's boot timestamps")
    p_capture.add_argument("--out", required=True, help="Capture file (.yaml or .json)")
    p_capture.add_argument("--heading", help="Heading text (default: uname -a)")
    p_capture.add_argument("--env-file", dest="env_file", help="Path to .env file (default: search upwards)")
    p_capture.set_defaults(func=_cmd_capture)

    p_render = sub.add_parser("render", help="Render a boot timeline")
    p_render.add_argument("--out", required=True, help="SVG file to write")
    p_render.add_argument("--heading", help="Heading text (default: from the capture)")
    p_render.add_argument("--us-per-pixel", dest="us_per_pixel", type=float, help="Time scale")
    _add_source_args(p_render)
    p_render.set_defaults(func=_cmd_render)

    p_extract = sub.add_parser("extract", help="Print the boot timeline as JSON")
    _add_source_args(p_extract)
    p_extract.set_defaults(func=_cmd_extract)

    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    set_verbose(args.verbose)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        rc = args.func(args)
        raise SystemExit(rc)
    except SystemExit:
        raise
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        raise SystemExit(130)
    except InvalidModeError as e:
        handle_exception(e, ErrorCode.E002, repr(e.mode))
    except MissingReferenceError as e:
        handle_exception(e, ErrorCode.E101)
    except CaptureError as e:
        handle_exception(e, ErrorCode.E102)
    except SystemctlError as e:
        handle_exception(e, ErrorCode.E100)
    except DocumentStateError as e:
        handle_exception(e, ErrorCode.E203)
    except UnknownActorError as e:
        handle_exception(e, ErrorCode.E200, e.args[0])
    except DuplicateActorError as e:
        handle_exception(e, ErrorCode.E201, e.args[0])
    except FileNotFoundError as e:
        handle_exception(e, ErrorCode.E300)
    except OSError as e:
        handle_exception(e, ErrorCode.E301)
    except ValueError as e:
        code = ErrorCode.E202 if args.cmd == "add-event" else ErrorCode.E003
        handle_exception(e, code)
    except Exception as e:
        if is_verbose():
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
            print("Run with --verbose for full traceback", file=sys.stderr)
    raise SystemExit(1)
