import sys
import argparse
from pathlib import Path

from lsi.log import setup_logging
from lsi.steam_paths import SteamPathDetector
from lsi.vdf_errors import VdfParseError
from lsi.vdf_node import VdfNode
from lsi.vdf_parser import VdfParser


def format_tree(node: VdfNode, indent: str = "    ") -> list:
    """Renders a tree as indented lines, children in storage order."""
    lines = []
    # (node, depth) work list, so huge files don't hit the recursion limit
    stack = [(child, 0) for child in reversed(list(node.children()))]
    while stack:
        current, depth = stack.pop()
        pad = indent * depth
        if current.is_leaf:
            lines.append(f"{pad}{current.key!r} = {current.value!r}")
            continue
        lines.append(f"{pad}[{current.key}]")
        stack.extend((child, depth + 1) for child in reversed(list(current.children())))
    return lines


def dump(path: str) -> int:
    try:
        document = VdfParser.load(path)
    except (OSError, VdfParseError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    with document:
        for line in format_tree(document.root):
            print(line)
    return 0


def list_libraries(steam_path: str) -> int:
    steam_root = SteamPathDetector.get_steam_install_path(steam_path)
    print(f"Steam Root: {steam_root}")
    for path in SteamPathDetector.get_library_paths(steam_root):
        print(f" - {path}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Inspect Steam VDF files")
    parser.add_argument("file", nargs="?", help="VDF file to dump")
    parser.add_argument("--libraries", action="store_true",
                        help="list the Steam library folders instead")
    parser.add_argument("--steam-path", default="", help="override the Steam installation path")
    args = parser.parse_args(argv)

    setup_logging()

    if args.libraries:
        return list_libraries(args.steam_path)
    if not args.file:
        parser.error("a VDF file is required unless --libraries is given")
    return dump(str(Path(args.file)))


if __name__ == "__main__":
    sys.exit(main())
