"""Command line entry point: python -m phantom_driver"""

import argparse
from typing import List, Optional

from .console import PhantomConsole
from .phantom_joystick import PhantomJoystick
from .route_config import PhantomConfig
from .route_logger import RouteLogger


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive console for recorded joystick routes")
    parser.add_argument("--config", help="Path to phantom.yaml (default: $PHANTOM_CONFIG or config/phantom.yaml)")
    parser.add_argument("--search-root", help="Folder searched recursively for route files")
    parser.add_argument("--save-folder", help="Folder new routes are saved to")
    parser.add_argument("--log-file", help="Also write log messages to this file")
    parser.add_argument("--quiet", action="store_true", help="Only print warnings and errors")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    config = PhantomConfig(args.config)
    if args.search_root:
        config.set('routes', 'search_root', args.search_root)
    if args.save_folder:
        config.set('routes', 'save_folder', args.save_folder)
    if args.log_file:
        config.set('logging', 'log_file', args.log_file)
    if args.quiet:
        config.set('logging', 'printouts', False)

    logger = RouteLogger.from_settings("PhantomJoystick", config.logging_settings)
    joystick = PhantomJoystick(config=config, logger=logger)
    PhantomConsole(joystick, logger=logger).run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
