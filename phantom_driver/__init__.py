#!/usr/bin/env python3
"""
Phantom Driver Package

Records a driver's joystick inputs into route files and replays them as a
stand-in joystick, so an autonomous routine can be driven once by hand and
played back afterwards.

This package provides:
- Route files: identity, metadata and sixteen per-channel timelines, stored as JSON
- Route discovery across a folder tree, tolerant of broken files
- A record/playback engine driven once per control cycle
- A command console for managing routes on the robot

Author: Robot Control Team
Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "Robot Control Team"

# Base modules first, the engine and console depend on them
from .errors import (
    PhantomRouteError,
    RouteNotFoundError,
    RouteDecodeError,
    RouteIOError,
    InvalidStateError,
    InvalidArgumentError,
    ChannelIndexError,
    DuplicateRouteError,
)
from .route_data import RouteIdentity, RouteMetadata, ChannelTimelines, RouteData
from .phantom_route import PhantomRoute
from .route_discovery import discover_routes, DiscoveryResult, SkippedRouteFile
from .session_clock import SessionClock, time_index
from .joystick_source import JoystickSource
from .route_config import PhantomConfig
from .route_logger import RouteLogger
from .route_timing import TimingReport, build_timing_report
from .phantom_joystick import PhantomJoystick, JoystickState
from .console import PhantomConsole, CommandType

__all__ = [
    'PhantomRouteError',
    'RouteNotFoundError',
    'RouteDecodeError',
    'RouteIOError',
    'InvalidStateError',
    'InvalidArgumentError',
    'ChannelIndexError',
    'DuplicateRouteError',
    'RouteIdentity',
    'RouteMetadata',
    'ChannelTimelines',
    'RouteData',
    'PhantomRoute',
    'discover_routes',
    'DiscoveryResult',
    'SkippedRouteFile',
    'SessionClock',
    'time_index',
    'JoystickSource',
    'PhantomConfig',
    'RouteLogger',
    'TimingReport',
    'build_timing_report',
    'PhantomJoystick',
    'JoystickState',
    'PhantomConsole',
    'CommandType',
]
