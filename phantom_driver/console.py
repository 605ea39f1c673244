"""
Phantom Console

Line based command console for managing routes on a running robot. Every
command maps onto one PhantomJoystick operation and returns the reply text,
so the console can sit behind stdin/stdout or any other line transport.

Arguments are split shell-style, so quote anything with spaces:
    create "left side high" napalm "starts against the left wall" driver 100
"""

import shlex
from enum import Enum
from typing import Callable, Dict, List, Optional

from .errors import (
    InvalidArgumentError,
    InvalidStateError,
    PhantomRouteError,
    RouteDecodeError,
    RouteIOError,
    RouteNotFoundError,
)
from .phantom_joystick import PhantomJoystick
from .route_logger import RouteLogger


class CommandType(Enum):
    """Console commands: (code, short description, 'argument:description' pairs)."""
    HELP = ("help", "Print the description of a command.",
            "command name:Name of the command to describe. Leave blank to describe every command.")
    DELETE = ("delete", "Delete a route, the active route by default.",
              "route name:Name of the route to delete. Leave blank for the active route.")
    SET = ("set", "Set the active route, then print its name.",
           "route name:Name of the route, or its number from 'overview all'.")
    GET = ("get", "Print the name of the active route.")
    CREATE = ("create", "Create a new route in the save folder.",
              "title:Title of the new route.",
              "robot:Name of the robot the route is meant for.",
              "description:Short description of the route.",
              "role:E.g. driver or operator. Optional.",
              "spacing:Milliseconds between samples. Optional.")
    RECORD = ("record", "Start or stop recording into the active route.",
              "start/stop:'start' to start recording, 'stop' to stop. Leave blank to toggle.")
    PLAY = ("play", "Start or stop playback of the active route.",
            "start/stop:'start' to start playback, 'stop' to stop. Leave blank to toggle.")
    OVERVIEW = ("overview", "Print the overview of a route. Every route gets a number usable with 'set'.",
                "route name:Route to describe, or 'all'. Leave blank for the active route.")
    TIMING = ("timing", "Print recorded vs playback timing of a route.",
              "route name:Route to analyse. Leave blank for the active route.")
    SAVE = ("save", "Save the active route.",
            "all:Pass 'all' to save every route.")
    COPY = ("copy", "Copy the active route into its next version, then make the copy active.")
    EXIT = ("exit", "Stop the console.")

    def __init__(self, code: str, desc: str, *args: str):
        self.code = code
        self.desc = desc
        self.args = args

    @classmethod
    def from_code(cls, code: str) -> Optional["CommandType"]:
        for command in cls:
            if command.code == code.lower():
                return command
        return None

    def get_help(self) -> str:
        lines = [f'COMMAND "{self.code}"', f"    {self.desc}"]
        if not self.args:
            lines.append("    (NO ARGUMENTS)")
        else:
            lines.append("    ARGUMENTS:")
            for arg in self.args:
                name, description = arg.split(":", 1)
                lines.append(f"    [{name}] - {description}")
        return "\n".join(lines)


# Checked in order, so subclasses come first
ERROR_KINDS = [
    (RouteNotFoundError, "NotFound"),
    (RouteDecodeError, "DecodeError"),
    (RouteIOError, "IOError"),
    (InvalidStateError, "InvalidState"),
    (InvalidArgumentError, "InvalidArgument"),
    (ValueError, "InvalidArgument"),
    (PhantomRouteError, "PhantomRoute"),
]


def error_kind(error: Exception) -> str:
    for error_type, kind in ERROR_KINDS:
        if isinstance(error, error_type):
            return kind
    return type(error).__name__


class PhantomConsole:
    """Runs console commands against a PhantomJoystick."""

    def __init__(self, joystick: PhantomJoystick, logger: Optional[RouteLogger] = None):
        self.joystick = joystick
        self.logger = logger or RouteLogger("PhantomConsole")
        self.exit_requested = False
        self._handlers: Dict[CommandType, Callable[[List[str]], str]] = {
            CommandType.HELP: self._help,
            CommandType.DELETE: self._delete,
            CommandType.SET: self._set,
            CommandType.GET: self._get,
            CommandType.CREATE: self._create,
            CommandType.RECORD: self._record,
            CommandType.PLAY: self._play,
            CommandType.OVERVIEW: self._overview,
            CommandType.TIMING: self._timing,
            CommandType.SAVE: self._save,
            CommandType.COPY: self._copy,
            CommandType.EXIT: self._exit,
        }

    def execute(self, line: str) -> str:
        """
        Run one command line.

        Args:
            line: Command word followed by its arguments

        Returns:
            Reply text. Errors are reported in the reply, never raised
        """
        try:
            words = shlex.split(line)
        except ValueError as e:
            return f"Error (InvalidArgument): could not parse '{line}': {e}"
        if not words:
            return ""

        command = CommandType.from_code(words[0])
        if command is None:
            return f"'{words[0]}' was not recognized as a command."

        try:
            return self._handlers[command](words[1:])
        except (PhantomRouteError, ValueError) as e:
            self.logger.warning(f"Command '{line}' failed: {e}")
            return f"Error ({error_kind(e)}): {e} [command: {line}]"

    def run(self, input_fn: Callable[[str], str] = input, output_fn: Callable[[str], None] = print):
        """Read and execute commands until 'exit' or end of input."""
        output_fn("Phantom console ready. Type 'help' for a list of commands.")
        while not self.exit_requested:
            try:
                line = input_fn("> ")
            except EOFError:
                break
            reply = self.execute(line)
            if reply:
                output_fn(reply)

    # Handlers

    def _help(self, args: List[str]) -> str:
        if not args or args[0].lower() in ("a", "all"):
            return "\n".join(command.get_help() for command in CommandType)
        command = CommandType.from_code(args[0])
        if command is None:
            return f"'{args[0]}' was not recognized as a command."
        return command.get_help()

    def _delete(self, args: List[str]) -> str:
        name = self.joystick.delete_route(args[0] if args else None)
        if name is None:
            return f"Nothing deleted, the active route is in use while {self.joystick.state.value}."
        return f"Deleted route {name}."

    def _set(self, args: List[str]) -> str:
        if not args:
            raise InvalidArgumentError("set needs a route name or number")
        name = args[0]
        if name.isdigit():
            names = self.joystick.route_names()
            number = int(name)
            if number >= len(names):
                raise InvalidArgumentError(f"No route number {number}, there are {len(names)} routes")
            name = names[number]
        self.joystick.set_active_route(name)
        return self.joystick.active_route_name

    def _get(self, args: List[str]) -> str:
        return self.joystick.active_route_name

    def _create(self, args: List[str]) -> str:
        if len(args) < 3:
            raise InvalidArgumentError("create needs at least a title, robot and description")
        role = args[3] if len(args) > 3 else ""
        time_spacing = int(args[4]) if len(args) > 4 else None
        name = self.joystick.create_route(args[0], args[1], args[2], role, time_spacing)
        return f"Created route {name}."

    def _record(self, args: List[str]) -> str:
        start = self._start_or_stop(args, self.joystick.is_recording)
        if start:
            if not self.joystick.begin_recording():
                return f"Recording not started while {self.joystick.state.value}."
            return f"Recording {self.joystick.active_route_name}."
        if not self.joystick.end_recording():
            return "Not recording."
        return "Recording stopped."

    def _play(self, args: List[str]) -> str:
        start = self._start_or_stop(args, self.joystick.is_playing)
        if start:
            if not self.joystick.begin_playback():
                return f"Playback not started while {self.joystick.state.value}."
            return f"Playing {self.joystick.active_route_name}."
        if not self.joystick.end_playback():
            return "Not playing."
        return "Playback stopped."

    @staticmethod
    def _start_or_stop(args: List[str], running: bool) -> bool:
        if not args:
            return not running
        if args[0].lower() == "start":
            return True
        if args[0].lower() == "stop":
            return False
        raise InvalidArgumentError(f"Expected 'start' or 'stop', got '{args[0]}'")

    def _overview(self, args: List[str]) -> str:
        if args and args[0].lower() == "all":
            return self.joystick.all_overviews()
        return self.joystick.route_overview(args[0] if args else None)

    def _timing(self, args: List[str]) -> str:
        return self.joystick.timing_report(args[0] if args else None).summary()

    def _save(self, args: List[str]) -> str:
        if args and args[0].lower() in ("a", "all"):
            self.joystick.save_routes()
            return "Saved all routes."
        self.joystick.save_route()
        return f"Saved {self.joystick.active_route_name}."

    def _copy(self, args: List[str]) -> str:
        name = self.joystick.copy_route(activate=True)
        if name is None:
            return f"Nothing copied, the active route cannot change while {self.joystick.state.value}."
        return f"Copied to {name}, which is now the active route."

    def _exit(self, args: List[str]) -> str:
        self.exit_requested = True
        return "Goodbye."
