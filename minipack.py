import argparse
import json
import os
import shutil
import subprocess
import sys

from compiler import build_module_graph, compile_bundle, set_verbose
from packcore.config import load_config
from packcore.errors import MinipackError
from packcore.introspection import describe_graph
from packcore.log import log

BUILD_DIR = "__minipack_build__"


def resolve_config(args):
    """Merge the config file with command-line flags (flags win)."""
    config = load_config(args.config)
    if args.entry:
        config.entry = args.entry
    if args.output:
        config.output = args.output
    if args.format:
        config.format = args.format
    if args.no_banner:
        config.banner = False
    return config


def write_output(text, output=None):
    if output is None:
        sys.stdout.write(text)
        return
    directory = os.path.dirname(output)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(output, 'w', encoding='utf-8') as f:
        f.write(text)
    log(f"Wrote {output}")


def cmd_graph(config):
    graph = build_module_graph(config.entry, config=config)
    write_output(json.dumps(describe_graph(graph), indent=2) + "\n", config.output)
    return 0


def cmd_build(config):
    write_output(compile_bundle(config.entry, config=config), config.output)
    return 0


def cmd_run(config):
    node = shutil.which("node")
    if node is None:
        print("Error: 'node' was not found on PATH; it is needed for --run", file=sys.stderr)
        return 1

    bundle_text = compile_bundle(config.entry, config=config)
    os.makedirs(BUILD_DIR, exist_ok=True)
    target_file = os.path.join(BUILD_DIR, "bundle.js")
    with open(target_file, 'w', encoding='utf-8') as f:
        f.write(bundle_text)
    return subprocess.call([node, target_file])


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="minipack",
        description="Bundle an ES module entry file and its relative imports into one script",
    )
    parser.add_argument("entry", nargs="?", help="Entry file (default: 'entry' from the config file)")
    parser.add_argument("-o", "--output", help="Write the bundle here instead of stdout")
    parser.add_argument("--format", choices=["function", "string"],
                        help="How module bodies are embedded (default: function)")
    parser.add_argument("--no-banner", action="store_true", help="Omit the header comment")
    parser.add_argument("--config", help="Config file (default: ./minipack.json if present)")
    parser.add_argument("--graph", action="store_true", help="Print the module graph as JSON instead of bundling")
    parser.add_argument("--run", action="store_true", help="Build into __minipack_build__/ and run it with node")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output (sent to stderr)")

    args = parser.parse_args(argv)
    set_verbose(args.verbose)

    try:
        config = resolve_config(args)
        if not config.entry:
            parser.print_usage(sys.stderr)
            print("Error: no entry file given", file=sys.stderr)
            return 1
        if args.graph:
            return cmd_graph(config)
        if args.run:
            return cmd_run(config)
        return cmd_build(config)
    except MinipackError as e:
        print(f"Error: Build Failed:{e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
