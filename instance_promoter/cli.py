"""Command-line entry point: promote instanced geometry in a cache file.

Examples:
    instance-promoter levels.cache --scenario levels\\solo\\010\\010 --bsp 0 --list
    instance-promoter levels.cache --scenario levels\\solo\\010\\010 --bsp 0 rock_01 crate_a
    instance-promoter levels.cache --dest objects.cache --bsp 1 --all -v
"""

import argparse
import contextlib
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .conversion_profiles import DEFAULT_PROFILE_ID, get_profile, get_profile_items
from .geometry.instanced_geometry_converter import InstancedGeometryToObjectConverter
from .tag_format.tag_cache import GameCache
from .tags.structure_bsp import Scenario


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="instance-promoter",
        description="Promote structure bsp instanced geometry to standalone scenery objects.",
    )
    parser.add_argument(
        "source",
        type=Path,
        help="Cache file holding the scenario.",
    )
    parser.add_argument(
        "--dest",
        type=Path,
        default=None,
        help="Cache file receiving the new tags (default: convert in place into SOURCE).",
    )
    parser.add_argument(
        "--scenario",
        default=None,
        metavar="TAGNAME",
        help="Scenario tag name (default: the first scenario in the cache).",
    )
    parser.add_argument(
        "--bsp",
        type=int,
        default=0,
        metavar="INDEX",
        help="Structure bsp index within the scenario (default: %(default)s).",
    )
    parser.add_argument(
        "--profile",
        default=DEFAULT_PROFILE_ID,
        choices=[pid for pid, _, _ in get_profile_items()],
        help="Conversion profile (default: %(default)s).",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List the instances of the selected bsp and exit.",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Convert every instance of the selected bsp.",
    )
    parser.add_argument(
        "names",
        nargs="*",
        metavar="NAME",
        help="Instance names to convert.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )
    return parser.parse_args(argv)


def _find_scenario_tag(cache: GameCache, name: Optional[str]):
    if name is not None:
        return cache.try_get_tag(Scenario, name)
    for tag in cache.tag_cache:
        if tag.group == Scenario.GROUP_TAG:
            return tag
    return None


def _open_cache(stack: contextlib.ExitStack, path: Path, writable: bool):
    if not path.exists():
        stream = stack.enter_context(open(path, "w+b"))
        return GameCache(), stream
    stream = stack.enter_context(open(path, "r+b" if writable else "rb"))
    return GameCache.open(stream), stream


def run(args: argparse.Namespace) -> int:
    in_place = args.dest is None or args.dest.resolve() == args.source.resolve()

    if not args.source.exists():
        logging.error("Source cache does not exist: %s", args.source)
        return 1

    with contextlib.ExitStack() as stack:
        source_cache, source_stream = _open_cache(stack, args.source, writable=in_place)
        if in_place:
            dest_cache, dest_stream = source_cache, source_stream
        else:
            dest_cache, dest_stream = _open_cache(stack, args.dest, writable=True)

        scenario_tag = _find_scenario_tag(source_cache, args.scenario)
        if scenario_tag is None:
            logging.error("Scenario not found: %s", args.scenario or "(any)")
            return 1
        scenario = source_cache.deserialize(source_stream, scenario_tag)
        if not 0 <= args.bsp < len(scenario.structure_bsps):
            logging.error("Scenario %s has no structure bsp %d (%d available)",
                          scenario_tag.name, args.bsp, len(scenario.structure_bsps))
            return 1

        converter = InstancedGeometryToObjectConverter(
            source_cache, source_stream, dest_cache, dest_stream,
            scenario, args.bsp, profile=get_profile(args.profile))

        if args.list:
            for i in range(converter.instance_count):
                print(f"{i:4d}  {converter.get_instance_name(i)}")
            return 0

        if not args.all and not args.names:
            logging.warning("Nothing to convert (pass instance names or --all).")
            return 0

        results: List[tuple] = []
        missing = 0
        if args.all:
            for i in range(converter.instance_count):
                results.append((converter.get_instance_name(i), converter.convert_instance(i)))
        else:
            for name in args.names:
                tag = converter.convert(name)
                if tag is None:
                    missing += 1
                results.append((name, tag))

        dest_cache.save_index(dest_stream)

        for name, tag in results:
            if tag is None:
                print(f"{name} -> not found")
            else:
                print(f"{name} -> [{tag.index}] {tag.name}")

        if missing:
            logging.warning("%d instance name(s) not found", missing)
            return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    try:
        return run(args)
    except (ValueError, OSError) as exc:
        logging.error("Conversion failed: %s", exc)
        return 1
