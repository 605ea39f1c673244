"""
Phantom Joystick Module

Records a driver's joystick into routes and plays routes back in its place.

The PhantomJoystick holds every route found on the file system (plus the ones
created this session) keyed by route name, and one active route that recording
and playback work on. The active route is kept as a name and looked up on
every use, so there is only ever one copy of each route.

Typical control loop:
    joystick = PhantomJoystick(recording_joystick=driver_stick)
    joystick.set_active_route("napalm_driver_left_side")

    joystick.begin_recording()          # teleop
    joystick.record_tick()              # every control cycle
    joystick.end_recording()            # saves the route

    joystick.begin_playback()           # autonomous
    drive(joystick.read_axis(1), joystick.read_axis(5))   # every control cycle

Terms:
    Active route: the route currently being recorded or played back
    Stored routes: every route known to this joystick, including the active one
"""

import os
from enum import Enum
from typing import Dict, List, Optional

from .errors import DuplicateRouteError, InvalidStateError, RouteIOError, RouteNotFoundError
from .joystick_source import JoystickSource
from .phantom_route import PhantomRoute
from .route_config import PhantomConfig
from .route_data import ANALOG_CHANNELS, DIGITAL_CHANNELS, ChannelTimelines, RouteIdentity, RouteMetadata
from .route_discovery import SkippedRouteFile, discover_routes
from .route_logger import RouteLogger
from .route_timing import TimingReport, build_timing_report
from .session_clock import SessionClock, time_index


class JoystickState(Enum):
    """Engine states. Recording and playing never overlap."""
    IDLE = "idle"
    RECORDING = "recording"
    PLAYING = "playing"


class PhantomJoystick(JoystickSource):
    """Route registry plus record and playback engine."""

    def __init__(self, recording_joystick: Optional[JoystickSource] = None,
                 config: Optional[PhantomConfig] = None,
                 search_root: Optional[str] = None,
                 save_folder: Optional[str] = None,
                 clock: Optional[SessionClock] = None,
                 logger: Optional[RouteLogger] = None):
        """
        Create the joystick and discover every route under the search root.

        Args:
            recording_joystick: Live joystick sampled while recording (optional)
            config: Phantom settings (loaded from config/phantom.yaml if None)
            search_root: Overrides the configured route search folder
            save_folder: Overrides the configured folder for new routes
            clock: Session clock (created if None)
            logger: Logger instance (created from the config if None)
        """
        self.config = config or PhantomConfig()
        self.logger = logger or RouteLogger.from_settings("PhantomJoystick", self.config.logging_settings)

        self.search_root = search_root or self.config.search_root
        self.save_folder = save_folder or self.config.save_folder
        self.extension = self.config.extension
        self.default_time_spacing = self.config.default_time_spacing
        self.strict_transitions = self.config.strict_transitions

        self.recording_joystick = recording_joystick
        self.clock = clock or SessionClock()

        self.state = JoystickState.IDLE
        self.playback_index = 0
        self._active_route: Optional[str] = None
        self._stored_routes: Dict[str, PhantomRoute] = {}
        self.skipped_files: List[SkippedRouteFile] = []

        self.refresh()

    # State helpers

    @property
    def is_idle(self) -> bool:
        return self.state == JoystickState.IDLE

    @property
    def is_recording(self) -> bool:
        return self.state == JoystickState.RECORDING

    @property
    def is_playing(self) -> bool:
        return self.state == JoystickState.PLAYING

    def _guard(self, action: str, allowed: bool) -> bool:
        """Refuse a forbidden transition: raise in strict mode, otherwise log and ignore it."""
        if allowed:
            return True
        message = f"Cannot {action} while {self.state.value}"
        if self.strict_transitions:
            raise InvalidStateError(message)
        self.logger.warning(f"{message}, ignored")
        return False

    def disable_printouts(self):
        """Stop info messages from echoing. Warnings and errors still print."""
        self.logger.disable_printouts()

    # Stored routes

    def refresh(self) -> int:
        """
        Search the file system for route files and add any new ones.

        Routes already stored are kept as they are, including unsaved changes.

        Returns:
            Number of routes added
        """
        if not self._guard("search for routes", self.is_idle):
            return 0

        result = discover_routes(self.search_root, self.extension)
        self.skipped_files = list(result.skipped)

        added = 0
        for name, route in result.routes.items():
            stored = self._stored_routes.get(name)
            if stored is None:
                self._stored_routes[name] = route
                added += 1
            elif stored.path != route.path:
                reason = f"duplicate of route {name} already loaded from {stored.path}"
                self.logger.warning(f"Skipping route file {route.path}: {reason}")
                self.skipped_files.append(SkippedRouteFile(path=route.path, reason=reason))

        if not self._stored_routes:
            self.logger.warning("No routes found. Create a route or most functions will not work correctly.")
        else:
            self.logger.info(f"{len(self._stored_routes)} routes available ({added} new).")
        return added

    def route_names(self) -> List[str]:
        """Names of all stored routes, sorted."""
        return sorted(self._stored_routes)

    def has_route(self, name: str) -> bool:
        return name in self._stored_routes

    def get_route(self, name: Optional[str] = None) -> PhantomRoute:
        """
        Look up a stored route.

        Args:
            name: Route name. The active route if None

        Raises:
            RouteNotFoundError: No such route, or no active route set
        """
        if name is None:
            if self._active_route is None:
                raise RouteNotFoundError("No active route set. Set one before recording or playing back")
            name = self._active_route
        route = self._stored_routes.get(name)
        if route is None:
            raise RouteNotFoundError(f"No route named '{name}'")
        return route

    @property
    def has_active_route(self) -> bool:
        return self._active_route is not None and self._active_route in self._stored_routes

    @property
    def active_route_name(self) -> str:
        """Name of the active route. Raises RouteNotFoundError if none is set."""
        return self.get_route().name

    def set_active_route(self, name: str) -> bool:
        """
        Make a stored route the active route. Not allowed during playback or recording.

        Args:
            name: Name of the route to activate
        """
        if not self._guard("change the active route", self.is_idle):
            return False
        if name not in self._stored_routes:
            raise RouteNotFoundError(f"No route named '{name}'")
        self._active_route = name
        self.logger.info(f"Active route is now {name}.")
        return True

    def create_route(self, title: str, robot: str, description: str = "", role: str = "",
                     time_spacing: Optional[int] = None) -> str:
        """
        Create a new route in the save folder and store it.

        If the route file already exists it is opened instead, and if the route
        is already stored from that file, the stored route is kept.

        Args:
            title: Brief overview of the route, e.g. "left side high"
            robot: Robot the route is meant for
            description: Detailed overview of the route
            role: E.g. "driver" or "operator"
            time_spacing: Nominal ms between samples, at least 30. Config default if None

        Returns:
            Name of the route

        Raises:
            DuplicateRouteError: A route with this name is stored from another file
        """
        identity = RouteIdentity(robot=robot, title=title, role=role)
        metadata = RouteMetadata(description=description,
                                 time_spacing=self.default_time_spacing if time_spacing is None else time_spacing)

        path = PhantomRoute.route_path(self.save_folder, identity)
        stored = self._stored_routes.get(identity.name)
        if stored is not None:
            if stored.path == path:
                self.logger.info(f"Route {identity.name} already exists, keeping it.")
                return identity.name
            raise DuplicateRouteError(f"Route {identity.name} already exists at {stored.path}")

        route = PhantomRoute.create(identity, metadata, self.save_folder)
        # A file found on disk may describe a differently named route
        if route.name in self._stored_routes:
            raise DuplicateRouteError(f"Route {route.name} from {route.path} is already stored "
                                      f"from {self._stored_routes[route.name].path}")
        self._stored_routes[route.name] = route
        self.logger.info(f"Created route {route.name}.")
        return route.name

    def copy_route(self, name: Optional[str] = None, activate: bool = False) -> Optional[str]:
        """
        Copy a route into its next version, e.g. napalm_left_side -> napalm_left_side_v2.
        This is the only way to change a version number. The copy is saved right away.

        Args:
            name: Route to copy. The active route if None
            activate: Make the copy the active route. Only allowed while idle

        Returns:
            Name of the copy, None if the copy was refused
        """
        # Refused before anything is written, so no half-made copy is left behind
        if activate and not self._guard("change the active route", self.is_idle):
            return None
        source = self.get_route(name)
        copy = source.copy()
        if copy.name in self._stored_routes:
            raise DuplicateRouteError(f"Route {copy.name} already exists")
        if os.path.exists(copy.path):
            raise DuplicateRouteError(f"A route file already exists at {copy.path}")

        copy.save()
        self._stored_routes[copy.name] = copy
        self.logger.info(f"Copied route {source.name} to route {copy.name}.")
        if activate:
            self.set_active_route(copy.name)
        return copy.name

    def delete_route(self, name: Optional[str] = None) -> Optional[str]:
        """
        Delete a route's file and forget the route.

        Args:
            name: Route to delete. The active route if None

        Returns:
            Name of the deleted route, None if the delete was refused
        """
        route = self.get_route(name)
        if route.name == self._active_route and not self._guard("delete the active route", self.is_idle):
            return None
        route.delete()
        del self._stored_routes[route.name]
        if self._active_route == route.name:
            self._active_route = None
        self.logger.info(f"Removed route {route.name}.")
        return route.name

    def clear_route(self) -> bool:
        """
        Erase all timeline data of the active route, and save it.

        Returns:
            True if the route was cleared
        """
        if not self._guard("clear the active route", self.is_idle):
            return False
        route = self.get_route()
        route.clear()
        route.save()
        self.logger.info(f"Cleared route {route.name}.")
        return True

    def save_route(self, name: Optional[str] = None):
        """Save one route, the active one if name is None."""
        self.get_route(name).save()

    def save_routes(self):
        """
        Save every stored route.

        Raises:
            RouteIOError: One or more routes failed to save. The others are still saved
        """
        self.logger.info("Saving routes.")
        failures = []
        for name in self.route_names():
            try:
                self._stored_routes[name].save()
            except RouteIOError as e:
                self.logger.error(str(e))
                failures.append(name)
        if failures:
            raise RouteIOError(f"Failed to save {len(failures)} routes: {', '.join(failures)}")

    def route_overview(self, name: Optional[str] = None) -> str:
        return self.get_route(name).overview()

    def all_overviews(self) -> str:
        """A table describing every stored route."""
        border = "+" + "-" * 72 + "+"
        lines = [border, "|" + "# Phantom Routes #".center(72) + "|", border]
        for number, name in enumerate(self.route_names()):
            lines.append(f"| [{number}]")
            lines.append(self._stored_routes[name].overview())
            lines.append(border)
        return "\n".join(lines)

    def timing_report(self, name: Optional[str] = None) -> TimingReport:
        return build_timing_report(self.get_route(name))

    # Recording

    def begin_recording(self, reset_first: bool = True) -> bool:
        """
        Start recording into the active route. Only allowed while idle, so a
        recording in progress is never restarted or erased.

        Args:
            reset_first: Erase the route's existing timelines first

        Returns:
            True if recording started
        """
        if not self._guard("start recording", self.is_idle):
            return False
        route = self.get_route()
        if self.recording_joystick is None:
            raise InvalidStateError("No recording joystick attached, nothing to record from")

        if reset_first:
            route.clear()
        self.clock.reset()
        self.clock.start()
        self.state = JoystickState.RECORDING
        self.logger.info(f"Recording started on {route.name}.")
        return True

    def record_tick(self) -> bool:
        """
        Sample the recording joystick if a time step has passed. Call every control cycle.

        Every analog and digital channel gets one value, along with the ms that
        actually passed since the last sample. Calls that come sooner than the
        route's time spacing do nothing.

        Returns:
            True if a sample was appended
        """
        if not self.is_recording:
            return False

        route = self.get_route()
        elapsed = self.clock.elapsed_ms()
        if elapsed < route.time_spacing:
            return False

        for channel in range(ANALOG_CHANNELS):
            route.append_analog(channel, self.recording_joystick.read_axis(channel), elapsed)
        for channel in range(DIGITAL_CHANNELS):
            route.append_digital(channel, self.recording_joystick.read_button(channel), elapsed)

        self.clock.reset()
        self.logger.debug(f"{elapsed}ms since last record.")
        return True

    def end_recording(self) -> bool:
        """
        Stop recording and save the active route.

        Returns:
            True if a recording was stopped
        """
        if not self.is_recording:
            return False

        self.state = JoystickState.IDLE
        self.clock.stop()
        self.clock.reset()

        route = self.get_route()
        self.logger.info(f"Recording stopped. {route.name} holds {route.sample_count} samples.")
        route.save()
        return True

    # Playback

    def begin_playback(self) -> bool:
        """
        Start playing the active route back through read_axis and read_button.
        Not allowed while recording.

        Returns:
            True if playback started
        """
        if not self._guard("start playback", not self.is_recording):
            return False
        route = self.get_route()

        self.clock.reset()
        self.clock.start()
        self.playback_index = 0
        self.state = JoystickState.PLAYING
        self.logger.info(f"Playback of {route.name} initiated.")
        return True

    def end_playback(self) -> bool:
        """
        Stop playback.

        Returns:
            True if playback was stopped
        """
        if not self.is_playing:
            return False

        elapsed = self.clock.elapsed_ms()
        self.state = JoystickState.IDLE
        self.clock.stop()
        self.clock.reset()

        route = self._stored_routes.get(self._active_route)
        if route is not None:
            expected = route.time_spacing * route.sample_count
            self.logger.info(f"Playback stopped after {elapsed}ms, theoretical length {expected}ms.")
        else:
            self.logger.info("Playback stopped.")
        return True

    def current_time_index(self) -> int:
        """Timeline index for the time since playback started."""
        return time_index(self.clock.elapsed_ms(), self.get_route().time_spacing)

    def read_axis(self, index: int) -> float:
        """
        Recorded axis value for the current playback time.

        Reading past the end of the timeline stops playback. Outside playback
        this always returns 0.0.

        Args:
            index: Analog channel (0..5)
        """
        ChannelTimelines.check_analog_index(index)
        if not self.is_playing:
            return 0.0

        route = self.get_route()
        self.playback_index = self.current_time_index()
        if self.playback_index < route.analog_length(index):
            return route.analog_at(index, self.playback_index)
        self.end_playback()
        return 0.0

    def read_button(self, index: int) -> bool:
        """
        Recorded button state for the current playback time.

        Reading past the end of the timeline stops playback. Outside playback
        this always returns False.

        Args:
            index: Digital channel (0..9)
        """
        ChannelTimelines.check_digital_index(index)
        if not self.is_playing:
            return False

        route = self.get_route()
        self.playback_index = self.current_time_index()
        if self.playback_index < route.digital_length(index):
            return route.digital_at(index, self.playback_index)
        self.end_playback()
        return False
