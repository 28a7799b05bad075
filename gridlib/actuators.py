"""
Actuators physically realise identities on a display surface.

Every actuator understands three commands: make sure an identity exists,
put it at a screen position, remove it. Each command can fail on its own.
"""

import re
import subprocess
import threading
from typing import NamedTuple

from gridlib.errors import ActuatorCommandFailure, InitializationError

ENSURE = 'ensure'
POSITION = 'position'
REMOVE = 'remove'


class ActuatorCommand(NamedTuple):
    kind: str
    identity: str
    x: float = 0
    y: float = 0


class Actuator:
    """Base actuator. Subclasses implement the three commands."""

    def ensure_exists(self, identity, x=0, y=0):
        raise NotImplementedError

    def set_position(self, identity, x, y):
        raise NotImplementedError

    def remove(self, identity):
        raise NotImplementedError

    def run_command(self, command):
        if command.kind == ENSURE:
            self.ensure_exists(command.identity, command.x, command.y)
        elif command.kind == POSITION:
            self.set_position(command.identity, command.x, command.y)
        elif command.kind == REMOVE:
            self.remove(command.identity)
        else:
            raise ValueError(f"unknown actuator command {command.kind!r}")

    def execute_batch(self, commands):
        """Run commands in order. Returns one error (or None) per command."""
        errors = []
        for command in commands:
            try:
                self.run_command(command)
                errors.append(None)
            except Exception as e:
                errors.append(ActuatorCommandFailure(command.identity, command.kind, e))
        return errors


class MemoryActuator(Actuator):
    """Keeps identity positions in memory. Used for dry runs and tests."""

    def __init__(self, failing=(), verbose=False):
        self.positions = {}
        self.failing = set(failing)
        self.verbose = verbose
        self.command_count = 0
        self.lock = threading.Lock()

    def _check(self, identity, kind):
        with self.lock:
            self.command_count += 1
        if identity in self.failing:
            raise RuntimeError(f"simulated {kind} failure for {identity}")

    def ensure_exists(self, identity, x=0, y=0):
        self._check(identity, ENSURE)
        with self.lock:
            self.positions.setdefault(identity, (x, y))

    def set_position(self, identity, x, y):
        self._check(identity, POSITION)
        with self.lock:
            if identity not in self.positions:
                raise KeyError(f"identity {identity} does not exist")
            self.positions[identity] = (x, y)
        if self.verbose:
            print(f"{identity} -> ({x:.0f}, {y:.0f})")

    def remove(self, identity):
        self._check(identity, REMOVE)
        with self.lock:
            self.positions.pop(identity, None)

    def position_of(self, identity):
        with self.lock:
            return self.positions.get(identity)


def _applescript_string(value):
    return '"' + str(value).replace('\\', '\\\\').replace('"', '\\"') + '"'


class FinderActuator(Actuator):
    """Desktop folders on macOS, one folder per identity, driven by osascript.

    A batch becomes a single AppleScript. Each command sits in its own try
    block and the script returns the indices of the commands that failed.
    """

    FOLDER_PATH = '(path to desktop folder as text) & {name}'

    def __init__(self, osascript='osascript', timeout=60.0):
        self.osascript = osascript
        self.timeout = timeout

    def _run_script(self, script):
        result = subprocess.run(
            [self.osascript, '-'],
            input=script,
            capture_output=True,
            text=True,
            timeout=self.timeout
        )
        if result.returncode != 0:
            raise RuntimeError(f"osascript exited with {result.returncode}: {result.stderr.strip()}")
        return result.stdout.strip()

    def _command_script(self, command):
        path = self.FOLDER_PATH.format(name=_applescript_string(command.identity))
        if command.kind == ENSURE:
            return (
                f"set folderPath to {path}\n"
                f"if not (exists folder folderPath) then\n"
                f"  make new folder at (path to desktop folder) with properties {{name:{_applescript_string(command.identity)}}}\n"
                f"end if\n"
                f"set desktop position of folder folderPath to {{{round(command.x)}, {round(command.y)}}}"
            )
        if command.kind == POSITION:
            return (
                f"set folderPath to {path}\n"
                f"set desktop position of folder folderPath to {{{round(command.x)}, {round(command.y)}}}"
            )
        if command.kind == REMOVE:
            return (
                f"set folderPath to {path}\n"
                f"if exists folder folderPath then\n"
                f"  delete folder folderPath\n"
                f"end if"
            )
        raise ValueError(f"unknown actuator command {command.kind!r}")

    def build_batch_script(self, commands):
        lines = ['set failed to {}', 'tell application "Finder"']
        for index, command in enumerate(commands):
            lines.append('try')
            lines.append(self._command_script(command))
            lines.append('on error')
            lines.append(f'set end of failed to "{index}"')
            lines.append('end try')
        lines.append('end tell')
        lines.append("set AppleScript's text item delimiters to \",\"")
        lines.append('return failed as text')
        return '\n'.join(lines) + '\n'

    def execute_batch(self, commands):
        if not commands:
            return []
        try:
            output = self._run_script(self.build_batch_script(commands))
        except Exception as e:
            return [ActuatorCommandFailure(c.identity, c.kind, e) for c in commands]

        failed = {int(i) for i in output.split(',') if i.strip().isdigit()}
        return [
            ActuatorCommandFailure(c.identity, c.kind, "Finder reported an error") if i in failed else None
            for i, c in enumerate(commands)
        ]

    def ensure_exists(self, identity, x=0, y=0):
        self._single(ENSURE, identity, x, y)

    def set_position(self, identity, x, y):
        self._single(POSITION, identity, x, y)

    def remove(self, identity):
        self._single(REMOVE, identity)

    def _single(self, kind, identity, x=0, y=0):
        error = self.execute_batch([ActuatorCommand(kind, identity, x, y)])[0]
        if error is not None:
            raise error


RESOLUTION_PATTERN = re.compile(r'Resolution:\s*(\d+)\s*x\s*(\d+)')


def parse_resolutions(text):
    """Extract (width, height) pairs from system_profiler output."""
    return [(int(w), int(h)) for w, h in RESOLUTION_PATTERN.findall(text)]


def query_screen_dimensions():
    """Resolutions of the attached displays, as reported by macOS."""
    try:
        result = subprocess.run(
            ['system_profiler', 'SPDisplaysDataType'],
            capture_output=True,
            text=True,
            timeout=30
        )
    except (OSError, subprocess.SubprocessError) as e:
        raise InitializationError(f"could not query screen dimensions: {e}") from e
    if result.returncode != 0:
        raise InitializationError(f"system_profiler failed: {result.stderr.strip()}")
    resolutions = parse_resolutions(result.stdout)
    if not resolutions:
        raise InitializationError("no display resolutions found")
    return resolutions
