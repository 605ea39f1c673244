"""
Phantom Route Module

Manages all the data associated with a single saved autonomous route, and the
route's own file on the file system. Playback is not handled here, that is the
role of the PhantomJoystick.

Two ways in:
- PhantomRoute.create(identity, metadata, folder) makes a new route in a folder.
  If a file with the computed name is already there it is loaded instead, so
  the data on disk wins over the data passed in.
- PhantomRoute.load(path) re-wraps a previously saved route file, and is the
  only way to reach routes saved under an older naming scheme.

Example:
    route = PhantomRoute.create(RouteIdentity("napalm", "left side"), folder="/home/lvuser/frc/routes")
    route.is_empty                    # True for a brand new route
    route.append_analog(0, 0.64, 100)
    route.save()
    route.clear()                     # drops timeline values, not the file
    route.delete()                    # drops the file
"""

import json
import logging
import os
from datetime import datetime
from typing import Optional, Tuple

import numpy as np

from .errors import (
    InvalidArgumentError,
    InvalidStateError,
    RouteDecodeError,
    RouteIOError,
    RouteNotFoundError,
)
from .route_data import (
    ANALOG_CHANNELS,
    DIGITAL_CHANNELS,
    MIN_TIME_SPACING,
    ROUTE_EXTENSION,
    ChannelTimelines,
    RouteData,
    RouteIdentity,
    RouteMetadata,
)

logger = logging.getLogger(__name__)


class PhantomRoute:
    """A single route and the file that backs it."""

    EXTENSION = ROUTE_EXTENSION
    MIN_TIME_SPACING = MIN_TIME_SPACING

    def __init__(self, route_data: RouteData, path: str):
        """
        Wrap route data that lives (or will live) at path.

        Args:
            route_data: The route's identity, metadata and timelines
            path: Route file location, normally <folder>/<name>.route
        """
        self.route_data = route_data
        self.path = os.path.abspath(path)
        self._deleted = False

    # Construction

    @classmethod
    def route_path(cls, folder: str, identity: RouteIdentity) -> str:
        """E.g. /home/lvuser/frc/routes/napalm_left_side.route"""
        return os.path.abspath(os.path.join(folder, f"{identity.name}.{cls.EXTENSION}"))

    @classmethod
    def create(cls, identity: RouteIdentity, metadata: Optional[RouteMetadata] = None,
               folder: str = ".") -> "PhantomRoute":
        """
        Create a new, empty route in folder, or open the one already saved there.

        Args:
            identity: Robot, title, role and version (normalized on construction)
            metadata: Description and time spacing. Time spacing is clamped to the minimum
            folder: Folder the route file belongs in

        Returns:
            PhantomRoute, loaded from disk if its file already exists
        """
        path = cls.route_path(folder, identity)
        if os.path.exists(path):
            logger.info(f"Route file already exists at {path}, loading it instead")
            return cls.load(path)

        metadata = metadata or RouteMetadata()
        route_data = RouteData(
            identity=identity,
            # Last modified starts out as the time of creation
            metadata=RouteMetadata(description=metadata.description.lower(),
                                   time_spacing=metadata.time_spacing),
            timelines=ChannelTimelines(),
        )
        logger.info(f"Created a new route {identity.name} at {path}")
        return cls(route_data, path)

    @classmethod
    def load(cls, path: str) -> "PhantomRoute":
        """
        Load a route from a route file.

        Args:
            path: Path to the saved route

        Returns:
            Fully populated PhantomRoute

        Raises:
            RouteNotFoundError: No file at path
            RouteDecodeError: File is not a valid route document
            RouteIOError: File could not be read
        """
        try:
            with open(path, 'r') as f:
                document = json.load(f)
        except FileNotFoundError as e:
            raise RouteNotFoundError(f"Route file not found: {path}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise RouteDecodeError(f"Failed to decode JSON from {path}: {e}") from e
        except OSError as e:
            raise RouteIOError(f"Failed to read route file {path}: {e}") from e

        try:
            route_data = RouteData.from_dict(document)
        except RouteDecodeError as e:
            raise RouteDecodeError(f"Invalid route file {path}: {e}") from e

        logger.debug(f"Loaded route {route_data.name} from {path}")
        return cls(route_data, path)

    def copy(self) -> "PhantomRoute":
        """
        Make the next version of this route, e.g. napalm_left_side -> napalm_left_side_v2.

        The copy carries the same timelines and lands in the same folder. It is
        not saved; that is up to the caller.
        """
        self._check_not_deleted()
        identity = self.route_data.identity.next_version()
        route_data = RouteData(
            identity=identity,
            metadata=RouteMetadata(description=self.description, time_spacing=self.time_spacing),
            timelines=self.route_data.timelines.copy(),
        )
        return PhantomRoute(route_data, self.route_path(self.folder, identity))

    # File operations

    def save(self):
        """
        Write the whole route to its file, overwriting what was there.

        Raises:
            RouteIOError: The file could not be written
        """
        self._check_not_deleted()
        try:
            os.makedirs(self.folder, exist_ok=True)
            with open(self.path, 'w') as f:
                json.dump(self.route_data.to_dict(), f)
        except OSError as e:
            raise RouteIOError(f"Failed to save route to {self.path}: {e}") from e
        logger.info(f"Saved {self.name}")

    def delete(self):
        """Delete the route file. Do not use this PhantomRoute afterwards."""
        self._check_not_deleted()
        try:
            os.remove(self.path)
        except FileNotFoundError:
            logger.warning(f"Route {self.name} was never saved, nothing to delete at {self.path}")
        except OSError as e:
            raise RouteIOError(f"Failed to delete route file {self.path}: {e}") from e
        self._deleted = True
        logger.info(f"Deleted {self.name}")

    @property
    def is_deleted(self) -> bool:
        return self._deleted

    def _check_not_deleted(self):
        if self._deleted:
            raise InvalidStateError(f"Route {self.name} has been deleted")

    # Timeline access

    def analog(self, index: int) -> Tuple[float, ...]:
        ChannelTimelines.check_analog_index(index)
        return tuple(self.route_data.timelines.analog[index])

    def analog_spacing(self, index: int) -> Tuple[int, ...]:
        ChannelTimelines.check_analog_index(index)
        return tuple(self.route_data.timelines.analog_spacing[index])

    def digital(self, index: int) -> Tuple[bool, ...]:
        ChannelTimelines.check_digital_index(index)
        return tuple(self.route_data.timelines.digital[index])

    def digital_spacing(self, index: int) -> Tuple[int, ...]:
        ChannelTimelines.check_digital_index(index)
        return tuple(self.route_data.timelines.digital_spacing[index])

    def analog_length(self, index: int) -> int:
        ChannelTimelines.check_analog_index(index)
        return len(self.route_data.timelines.analog[index])

    def digital_length(self, index: int) -> int:
        ChannelTimelines.check_digital_index(index)
        return len(self.route_data.timelines.digital[index])

    def analog_at(self, index: int, sample: int) -> float:
        ChannelTimelines.check_analog_index(index)
        return self.route_data.timelines.analog[index][sample]

    def digital_at(self, index: int, sample: int) -> bool:
        ChannelTimelines.check_digital_index(index)
        return self.route_data.timelines.digital[index][sample]

    @property
    def sample_count(self) -> int:
        """Samples on analog channel 0. Recording keeps every channel at this length."""
        return len(self.route_data.timelines.analog[0])

    # Timeline modification. Every call counts as a modification.

    def append_analog(self, index: int, value: float, spacing_ms: int):
        """
        Push a value onto the end of an analog timeline.

        Args:
            index: Analog channel
            value: Axis value
            spacing_ms: Milliseconds since the previous sample on this channel
        """
        self._check_not_deleted()
        self.route_data.timelines.append_analog(index, value, spacing_ms)
        self.route_data.metadata.touch()

    def append_digital(self, index: int, value: bool, spacing_ms: int):
        """
        Push a value onto the end of a digital timeline.

        Args:
            index: Digital channel
            value: Button state
            spacing_ms: Milliseconds since the previous sample on this channel
        """
        self._check_not_deleted()
        self.route_data.timelines.append_digital(index, value, spacing_ms)
        self.route_data.metadata.touch()

    def set_analog(self, index: int, sample: int, value: float):
        ChannelTimelines.check_analog_index(index)
        self._set_sample(self.route_data.timelines.analog[index], sample, float(value), f"analog {index}")

    def set_analog_spacing(self, index: int, sample: int, spacing_ms: int):
        ChannelTimelines.check_analog_index(index)
        self._set_sample(self.route_data.timelines.analog_spacing[index], sample, int(spacing_ms),
                         f"analog spacing {index}")

    def set_digital(self, index: int, sample: int, value: bool):
        ChannelTimelines.check_digital_index(index)
        self._set_sample(self.route_data.timelines.digital[index], sample, bool(value), f"digital {index}")

    def set_digital_spacing(self, index: int, sample: int, spacing_ms: int):
        ChannelTimelines.check_digital_index(index)
        self._set_sample(self.route_data.timelines.digital_spacing[index], sample, int(spacing_ms),
                         f"digital spacing {index}")

    def _set_sample(self, lane: list, sample: int, value, label: str):
        self._check_not_deleted()
        if not 0 <= sample < len(lane):
            raise InvalidArgumentError(f"Sample {sample} is outside the {label} timeline (length {len(lane)})")
        lane[sample] = value
        self.route_data.metadata.touch()

    def clear(self):
        """
        Delete all timeline content. The file and the identity data stay.
        You must save after this operation.
        """
        self._check_not_deleted()
        self.route_data.timelines.clear()
        self.route_data.metadata.touch()

    @property
    def is_empty(self) -> bool:
        """True if this route contains no timeline data"""
        return self.route_data.timelines.is_empty

    def trim_idle(self, deadband: float = 0.0) -> int:
        """
        Cut idle samples from the start and end of the route.

        A sample is idle when every analog value is within deadband of zero and
        no button is pressed. Trimming the start removes the delay between
        starting a recording and the driver actually moving.

        Args:
            deadband: Largest absolute axis value still considered idle

        Returns:
            Number of samples removed
        """
        self._check_not_deleted()
        if deadband < 0:
            raise InvalidArgumentError(f"Deadband must be >= 0, got {deadband}")

        timelines = self.route_data.timelines
        lengths = set(timelines.lengths())
        if len(lengths) > 1:
            raise InvalidArgumentError(f"Cannot trim {self.name}: channels have different lengths {sorted(lengths)}")
        count = lengths.pop()
        if count == 0:
            return 0

        analog_active = np.abs(np.array(timelines.analog, dtype=float)) > deadband
        digital_active = np.array(timelines.digital, dtype=bool)
        active_samples = np.flatnonzero(analog_active.any(axis=0) | digital_active.any(axis=0))

        if active_samples.size == 0:
            timelines.clear()
            self.route_data.metadata.touch()
            logger.info(f"Trimmed all {count} samples from {self.name}, nothing but idle input")
            return count

        first, last = int(active_samples[0]), int(active_samples[-1])
        removed = count - (last - first + 1)
        if removed == 0:
            return 0

        for lanes in (timelines.analog, timelines.analog_spacing, timelines.digital, timelines.digital_spacing):
            for lane in lanes:
                lane[:] = lane[first:last + 1]
        self.route_data.metadata.touch()
        logger.info(f"Trimmed {removed} idle samples from {self.name}")
        return removed

    # Descriptive properties

    @property
    def name(self) -> str:
        """E.g. napalm_left_side_high_v2. Built from identity fields, not read from the file name."""
        return self.route_data.name

    @property
    def robot(self) -> str:
        return self.route_data.identity.robot

    @property
    def title(self) -> str:
        return self.route_data.identity.title

    @property
    def role(self) -> str:
        return self.route_data.identity.role

    @property
    def version(self) -> int:
        return self.route_data.identity.version

    @property
    def description(self) -> str:
        return self.route_data.metadata.description

    @property
    def time_spacing(self) -> int:
        """Nominal milliseconds between recorded values"""
        return self.route_data.metadata.time_spacing

    @property
    def last_modified(self) -> int:
        """Epoch milliseconds of the last timeline modification"""
        return self.route_data.metadata.last_modified

    @property
    def last_modified_str(self) -> str:
        """E.g. 07-24-2018 13:43"""
        return datetime.fromtimestamp(self.last_modified / 1000).strftime("%m-%d-%Y %H:%M")

    @property
    def folder(self) -> str:
        return os.path.dirname(self.path)

    @property
    def extension(self) -> str:
        return self.EXTENSION

    def overview(self) -> str:
        """A small table describing this route"""
        # v1 routes get a "(v1)" reminder since their name carries no version
        version_str = f" (v{self.version})" if self.version == 1 else ""
        return "\n".join([
            f'| "{self.name}"{version_str}',
            f'|    Description: "{self.description}"',
            f"|    Saved at {self.path}",
            f"|    Last Modified {self.last_modified_str} (24-h Clock)",
            f"|    Time Spacing: {self.time_spacing}ms",
        ])

    def __str__(self) -> str:
        lines = [self.overview()]
        timelines = self.route_data.timelines
        for channel in range(ANALOG_CHANNELS):
            lines.append(f"Analog {channel}: {timelines.analog[channel]}")
            lines.append(f"Analog Spacing {channel}: {timelines.analog_spacing[channel]}")
        for channel in range(DIGITAL_CHANNELS):
            lines.append(f"Digital {channel}: {timelines.digital[channel]}")
            lines.append(f"Digital Spacing {channel}: {timelines.digital_spacing[channel]}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"PhantomRoute(name={self.name!r}, path={self.path!r})"
