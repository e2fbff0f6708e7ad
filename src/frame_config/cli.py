from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Callable

import yaml
from jsonschema import ValidationError

from frame_config.core.config_from_query import extract_config_from_query
from frame_config.core.field_mapping import available_handlers
from frame_config.core.frame_io import frame_to_dict, frames_from_payload
from frame_config.core.matchers import available_matchers
from frame_config.core.options import resolve_options
from frame_config.core.reducers import available_reducers
from frame_config.core.utils import json_dumps, read_json, write_json


def load_settings(path: str | None) -> dict[str, Any]:
    if not path:
        return {}
    content = Path(path).read_text(encoding="utf-8")
    if path.endswith(".json"):
        return json.loads(content)
    return yaml.safe_load(content) or {}


def _write_log(log_path: Path, msg: str) -> None:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("a", encoding="utf-8") as handle:
        handle.write(msg + "\n")


def make_logger(log_file: str | None) -> Callable[[str], None]:
    log_file = log_file or os.environ.get("FRAME_CONFIG_LOG_FILE")
    if log_file:
        path = Path(log_file)
        return lambda msg: _write_log(path, msg)
    return lambda msg: print(msg, file=sys.stderr)


def cmd_apply(frames_path: str, options_path: str | None, out: str | None, log_file: str | None) -> None:
    try:
        options = resolve_options(load_settings(options_path))
        frames = frames_from_payload(read_json(Path(frames_path)))
        result = extract_config_from_query(options, frames, logger=make_logger(log_file))
    except (ValueError, ValidationError) as exc:
        raise SystemExit(f"apply failed: {exc}") from exc

    payload = {"frames": [frame_to_dict(frame) for frame in result]}
    if out:
        write_json(Path(out), payload)
        print(f"Wrote {len(result)} frame(s) to {out}")
    else:
        print(json_dumps(payload))


def cmd_list_handlers() -> None:
    for handler in available_handlers():
        reducer = handler.default_reducer or "lastNotNull"
        print(f"{handler.key}: {handler.name} (reducer: {reducer})")


def cmd_list_reducers() -> None:
    for reducer_id in available_reducers():
        print(reducer_id)


def cmd_list_matchers() -> None:
    for matcher_id in available_matchers():
        print(matcher_id)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="frame-config")
    sub = parser.add_subparsers(dest="command", required=True)

    apply_parser = sub.add_parser("apply")
    apply_parser.add_argument("--frames", required=True)
    apply_parser.add_argument("--options")
    apply_parser.add_argument("--out")
    apply_parser.add_argument("--log-file")

    sub.add_parser("handlers")
    sub.add_parser("reducers")
    sub.add_parser("matchers")

    args = parser.parse_args(argv)

    if args.command == "apply":
        cmd_apply(args.frames, args.options, args.out, args.log_file)
    elif args.command == "handlers":
        cmd_list_handlers()
    elif args.command == "reducers":
        cmd_list_reducers()
    elif args.command == "matchers":
        cmd_list_matchers()


if __name__ == "__main__":
    main()
