#!/usr/bin/env python3
"""
gitplus - commit graph viewer with history editing
"""

import argparse
import sys

from PySide6.QtWidgets import QApplication

from gitplus.ui.main_window import MainWindow


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog="gitplus",
        description="gitplus - commit graph viewer with history editing",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Repository path (default: search upward from the current directory)",
    )
    parser.add_argument(
        "--branch",
        default=None,
        help="Show only the history of this branch",
    )
    parser.add_argument(
        "--max-commits",
        type=int,
        default=None,
        help="Load at most this many commits",
    )
    return parser.parse_args(argv)


def main() -> None:
    args = parse_args()

    app = QApplication(sys.argv)
    app.setApplicationName("gitplus")
    app.setOrganizationName("gitplus")

    try:
        window = MainWindow(repo_path=args.path, branch=args.branch, max_commits=args.max_commits)
    except ValueError as e:
        print(f"gitplus: {e}", file=sys.stderr)
        sys.exit(1)

    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
