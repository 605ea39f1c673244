"""
Route Data Structures and Route Document Parser
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from .errors import ChannelIndexError, InvalidArgumentError, RouteDecodeError

logger = logging.getLogger(__name__)

# Constants
ANALOG_CHANNELS = 6
DIGITAL_CHANNELS = 10

MIN_TIME_SPACING = 30           # ms, anything faster is not measured reliably
DEFAULT_TIME_SPACING = 100      # ms

ROUTE_EXTENSION = "route"

# Route document keys (same names the robot-side encoder has always written)
KEY_ROBOT = "robot"
KEY_TITLE = "title"
KEY_DESCRIPTION = "description"
KEY_VERSION = "version"
KEY_ROLE = "role"
KEY_TIME_SPACING = "timeSpacing"
KEY_LAST_MODIFIED = "lastModified"
KEY_ANALOG = "analog"
KEY_ANALOG_SPACING = "analogSpacing"
KEY_DIGITAL = "digital"
KEY_DIGITAL_SPACING = "digitalSpacing"


def now_ms() -> int:
    """Current wall clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def normalize_field(value: str) -> str:
    """
    Lowercase a free-text identity field and turn spaces and path separators
    into underscores. Route file names are built from these fields, so they
    must never leave the route folder.
    """
    if value is None:
        return ""
    normalized = str(value).strip().lower()
    for separator in (" ", "/", "\\"):
        normalized = normalized.replace(separator, "_")
    return normalized


def clamp_time_spacing(time_spacing: int) -> int:
    """Clamp a time spacing to MIN_TIME_SPACING. Low values are raised, not rejected."""
    if isinstance(time_spacing, bool) or not isinstance(time_spacing, int):
        raise InvalidArgumentError(f"Time spacing must be an integer number of ms, got {time_spacing!r}")
    if time_spacing < MIN_TIME_SPACING:
        logger.warning(f"Time spacing {time_spacing}ms is below the {MIN_TIME_SPACING}ms minimum, using {MIN_TIME_SPACING}ms")
        return MIN_TIME_SPACING
    return time_spacing


def _is_integer(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _empty_lanes(count: int) -> List[list]:
    return [[] for _ in range(count)]


@dataclass
class RouteIdentity:
    """Fields that make up the canonical route name"""
    robot: str
    title: str
    role: str = ""
    version: int = 1

    def __post_init__(self):
        self.robot = normalize_field(self.robot)
        self.title = normalize_field(self.title)
        self.role = normalize_field(self.role)
        if not _is_integer(self.version) or self.version < 1:
            raise InvalidArgumentError(f"Route version must be an integer >= 1, got {self.version!r}")

    @property
    def name(self) -> str:
        """E.g. napalm_driver_left_side_v2. Role and version segments only appear when meaningful."""
        role_segment = f"_{self.role}" if self.role else ""
        version_addendum = f"_v{self.version}" if self.version > 1 else ""
        return f"{self.robot}{role_segment}_{self.title}{version_addendum}"

    def next_version(self) -> "RouteIdentity":
        return RouteIdentity(self.robot, self.title, self.role, self.version + 1)


@dataclass
class RouteMetadata:
    """Descriptive data and timing parameters of a route"""
    description: str = ""
    time_spacing: int = DEFAULT_TIME_SPACING   # nominal ms between samples
    last_modified: int = field(default_factory=lambda: now_ms())

    def __post_init__(self):
        self.time_spacing = clamp_time_spacing(self.time_spacing)

    def touch(self):
        """Stamp a modification."""
        self.last_modified = now_ms()


@dataclass
class ChannelTimelines:
    """
    Six analog and ten digital timelines, each with a parallel spacing timeline.

    analog_spacing[c][0] is the ms that passed before the first sample on
    channel c was taken, analog_spacing[c][k] the ms between samples k-1 and k.
    """
    analog: List[List[float]] = field(default_factory=lambda: _empty_lanes(ANALOG_CHANNELS))
    analog_spacing: List[List[int]] = field(default_factory=lambda: _empty_lanes(ANALOG_CHANNELS))
    digital: List[List[bool]] = field(default_factory=lambda: _empty_lanes(DIGITAL_CHANNELS))
    digital_spacing: List[List[int]] = field(default_factory=lambda: _empty_lanes(DIGITAL_CHANNELS))

    @staticmethod
    def check_analog_index(index: int):
        if not _is_integer(index) or not 0 <= index < ANALOG_CHANNELS:
            raise ChannelIndexError(f"Analog channel must be 0..{ANALOG_CHANNELS - 1}, got {index!r}")

    @staticmethod
    def check_digital_index(index: int):
        if not _is_integer(index) or not 0 <= index < DIGITAL_CHANNELS:
            raise ChannelIndexError(f"Digital channel must be 0..{DIGITAL_CHANNELS - 1}, got {index!r}")

    def append_analog(self, index: int, value: float, spacing_ms: int):
        self.check_analog_index(index)
        self.analog[index].append(float(value))
        self.analog_spacing[index].append(int(spacing_ms))

    def append_digital(self, index: int, value: bool, spacing_ms: int):
        self.check_digital_index(index)
        self.digital[index].append(bool(value))
        self.digital_spacing[index].append(int(spacing_ms))

    def _all_lanes(self):
        return self.analog + self.analog_spacing + self.digital + self.digital_spacing

    @property
    def is_empty(self) -> bool:
        return all(len(lane) == 0 for lane in self._all_lanes())

    def clear(self):
        for lane in self._all_lanes():
            lane.clear()

    def lengths(self) -> List[int]:
        """Sample count per channel, analog channels first."""
        return [len(lane) for lane in self.analog] + [len(lane) for lane in self.digital]

    def copy(self) -> "ChannelTimelines":
        return ChannelTimelines(
            analog=[list(lane) for lane in self.analog],
            analog_spacing=[list(lane) for lane in self.analog_spacing],
            digital=[list(lane) for lane in self.digital],
            digital_spacing=[list(lane) for lane in self.digital_spacing],
        )


@dataclass
class RouteData:
    """Just the raw data for one route: identity, metadata and timelines"""
    identity: RouteIdentity
    metadata: RouteMetadata = field(default_factory=RouteMetadata)
    timelines: ChannelTimelines = field(default_factory=ChannelTimelines)

    @property
    def name(self) -> str:
        return self.identity.name

    def to_dict(self) -> Dict[str, Any]:
        """Build the JSON-serializable route document."""
        return {
            KEY_ROBOT: self.identity.robot,
            KEY_TITLE: self.identity.title,
            KEY_DESCRIPTION: self.metadata.description,
            KEY_VERSION: self.identity.version,
            KEY_ROLE: self.identity.role,
            KEY_TIME_SPACING: self.metadata.time_spacing,
            KEY_LAST_MODIFIED: self.metadata.last_modified,
            KEY_ANALOG: [list(lane) for lane in self.timelines.analog],
            KEY_ANALOG_SPACING: [list(lane) for lane in self.timelines.analog_spacing],
            KEY_DIGITAL: [list(lane) for lane in self.timelines.digital],
            KEY_DIGITAL_SPACING: [list(lane) for lane in self.timelines.digital_spacing],
        }

    @classmethod
    def from_dict(cls, document: Any) -> "RouteData":
        """
        Rebuild route data from a decoded route document.

        Args:
            document: Object produced by json.load

        Returns:
            Fully populated RouteData

        Raises:
            RouteDecodeError: If the document does not have the route shape
        """
        if not isinstance(document, dict):
            raise RouteDecodeError(f"Route document must be a JSON object, got {type(document).__name__}")

        robot = _parse_text(document, KEY_ROBOT)
        title = _parse_text(document, KEY_TITLE)
        description = _parse_text(document, KEY_DESCRIPTION)
        # Older robot-side files may not carry a role at all
        role = _parse_text(document, KEY_ROLE, required=False)

        version = _parse_integer(document, KEY_VERSION)
        if version < 1:
            raise RouteDecodeError(f"Field '{KEY_VERSION}' must be >= 1, got {version}")
        time_spacing = _parse_integer(document, KEY_TIME_SPACING)
        last_modified = _parse_integer(document, KEY_LAST_MODIFIED)

        timelines = ChannelTimelines(
            analog=_parse_lanes(document, KEY_ANALOG, ANALOG_CHANNELS, _parse_analog_value),
            analog_spacing=_parse_lanes(document, KEY_ANALOG_SPACING, ANALOG_CHANNELS, _parse_spacing_value),
            digital=_parse_lanes(document, KEY_DIGITAL, DIGITAL_CHANNELS, _parse_digital_value),
            digital_spacing=_parse_lanes(document, KEY_DIGITAL_SPACING, DIGITAL_CHANNELS, _parse_spacing_value),
        )

        for channel in range(ANALOG_CHANNELS):
            if len(timelines.analog[channel]) != len(timelines.analog_spacing[channel]):
                raise RouteDecodeError(
                    f"Analog channel {channel} has {len(timelines.analog[channel])} values "
                    f"but {len(timelines.analog_spacing[channel])} spacings")
        for channel in range(DIGITAL_CHANNELS):
            if len(timelines.digital[channel]) != len(timelines.digital_spacing[channel]):
                raise RouteDecodeError(
                    f"Digital channel {channel} has {len(timelines.digital[channel])} values "
                    f"but {len(timelines.digital_spacing[channel])} spacings")

        return cls(
            identity=RouteIdentity(robot=robot, title=title, role=role, version=version),
            metadata=RouteMetadata(description=description, time_spacing=time_spacing,
                                   last_modified=last_modified),
            timelines=timelines,
        )


# Document field parsers

def _parse_text(document: dict, key: str, required: bool = True) -> str:
    if key not in document or document[key] is None:
        if required:
            raise RouteDecodeError(f"Missing field '{key}'")
        return ""
    value = document[key]
    if not isinstance(value, str):
        raise RouteDecodeError(f"Field '{key}' must be a string, got {type(value).__name__}")
    return value


def _parse_integer(document: dict, key: str) -> int:
    if key not in document:
        raise RouteDecodeError(f"Missing field '{key}'")
    value = document[key]
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not _is_integer(value):
        raise RouteDecodeError(f"Field '{key}' must be an integer, got {value!r}")
    return value


def _parse_analog_value(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"expected a number, got {value!r}")
    return float(value)


def _parse_digital_value(value) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"expected a boolean, got {value!r}")
    return value


def _parse_spacing_value(value) -> int:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not _is_integer(value) or value < 0:
        raise ValueError(f"expected a non-negative integer, got {value!r}")
    return value


def _parse_lanes(document: dict, key: str, count: int, parse_value: Callable) -> List[list]:
    if key not in document:
        raise RouteDecodeError(f"Missing field '{key}'")
    lanes = document[key]
    if not isinstance(lanes, list) or len(lanes) != count:
        raise RouteDecodeError(f"Field '{key}' must be a list of {count} timelines")

    parsed = []
    for channel, lane in enumerate(lanes):
        if not isinstance(lane, list):
            raise RouteDecodeError(f"Field '{key}' channel {channel} must be a list")
        try:
            parsed.append([parse_value(value) for value in lane])
        except ValueError as e:
            raise RouteDecodeError(f"Field '{key}' channel {channel}: {e}")
    return parsed
