#!/usr/bin/env python3
"""
Unit Tests for the PhantomJoystick engine

Test suite covering:
- Route registry: create, set, copy, delete, clear, save, refresh
- Recording gate and sample bookkeeping
- Playback indexing and automatic stop at the end of a timeline
- Recording/playback exclusivity in strict and lenient mode
- Timing report over a recorded route

Author: Robot Control Team
"""

import sys
import os
import tempfile
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(__file__))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from fakes import FakeJoystick, FakeTimeSource, fill_samples, make_config, write_document
from phantom_driver.errors import (
    ChannelIndexError, DuplicateRouteError, InvalidStateError, RouteIOError, RouteNotFoundError,
)
from phantom_driver.phantom_joystick import JoystickState, PhantomJoystick
from phantom_driver.phantom_route import PhantomRoute
from phantom_driver.route_data import RouteIdentity
from phantom_driver.route_logger import RouteLogger
from phantom_driver.session_clock import SessionClock


class JoystickTestCase(unittest.TestCase):
    """Engine over a temporary search root with a fake clock and stick."""

    strict = True

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = self.temp_dir.name
        self.time_source = FakeTimeSource()
        self.stick = FakeJoystick()
        self.joystick = self.make_joystick()

    def tearDown(self):
        self.temp_dir.cleanup()

    def make_joystick(self, recording_joystick=None) -> PhantomJoystick:
        return PhantomJoystick(recording_joystick=recording_joystick or self.stick,
                               config=make_config(self.root, strict=self.strict),
                               clock=SessionClock(self.time_source))

    def create_active_route(self, samples: int = 0) -> PhantomRoute:
        name = self.joystick.create_route("left side", "napalm", "Against the wall", "driver")
        self.joystick.set_active_route(name)
        route = self.joystick.get_route()
        fill_samples(route, samples)
        return route


class TestRegistry(JoystickTestCase):

    def test_no_routes(self):
        self.assertEqual(self.joystick.route_names(), [])
        self.assertFalse(self.joystick.has_active_route)
        with self.assertRaises(RouteNotFoundError):
            self.joystick.get_route()
        with self.assertRaises(RouteNotFoundError):
            _ = self.joystick.active_route_name

    def test_no_routes_warning(self):
        # Built up front, a new RouteLogger replaces the handlers assertLogs installs
        logger = RouteLogger("PhantomJoystick")
        with self.assertLogs("PhantomJoystick", level="WARNING") as logs:
            PhantomJoystick(config=make_config(self.root), logger=logger)
        self.assertTrue(any("No routes found" in line for line in logs.output))

    def test_create_and_set_active(self):
        name = self.joystick.create_route("left side", "napalm", "Against the wall", "driver")

        self.assertEqual(name, "napalm_driver_left_side")
        self.assertTrue(self.joystick.has_route(name))
        self.assertEqual(self.joystick.get_route(name).description, "against the wall")
        self.assertEqual(self.joystick.get_route(name).folder, os.path.join(self.root, "routes"))

        self.joystick.set_active_route(name)
        self.assertEqual(self.joystick.active_route_name, name)

    def test_create_uses_default_spacing(self):
        name = self.joystick.create_route("x", "bot")
        self.assertEqual(self.joystick.get_route(name).time_spacing, 100)
        name = self.joystick.create_route("y", "bot", time_spacing=10)
        self.assertEqual(self.joystick.get_route(name).time_spacing, 30)

    def test_create_same_route_twice(self):
        route = self.create_active_route(samples=2)
        name = self.joystick.create_route("left side", "napalm", "other", "driver")
        self.assertEqual(name, route.name)
        self.assertIs(self.joystick.get_route(name), route)
        self.assertEqual(route.sample_count, 2)

    def test_create_duplicate_from_other_file(self):
        other = PhantomRoute.create(RouteIdentity("napalm", "left"), folder=os.path.join(self.root, "old"))
        other.save()
        joystick = self.make_joystick()

        with self.assertRaises(DuplicateRouteError):
            joystick.create_route("left", "napalm")

    def test_set_unknown_route(self):
        with self.assertRaises(RouteNotFoundError):
            self.joystick.set_active_route("nothing")

    def test_discovered_at_startup(self):
        route = PhantomRoute.create(RouteIdentity("napalm", "left"), folder=os.path.join(self.root, "a"))
        fill_samples(route, 3)
        route.save()
        write_document(os.path.join(self.root, "b", "bad.route"), robot="napalm")

        joystick = self.make_joystick()

        self.assertEqual(joystick.route_names(), ["napalm_left"])
        self.assertEqual(joystick.get_route("napalm_left").sample_count, 3)
        self.assertEqual(len(joystick.skipped_files), 1)

    def test_refresh_adds_new_routes_only(self):
        route = self.create_active_route(samples=1)
        PhantomRoute.create(RouteIdentity("napalm", "right"), folder=self.root).save()

        self.assertEqual(self.joystick.refresh(), 1)
        self.assertEqual(self.joystick.route_names(), ["napalm_driver_left_side", "napalm_right"])
        # Unsaved in-memory route kept as is
        self.assertIs(self.joystick.get_route(route.name), route)

    def test_copy_route(self):
        route = self.create_active_route(samples=3)

        name = self.joystick.copy_route()

        self.assertEqual(name, "napalm_driver_left_side_v2")
        copy = self.joystick.get_route(name)
        self.assertEqual(copy.version, 2)
        self.assertEqual(copy.role, "driver")
        self.assertEqual(copy.sample_count, 3)
        self.assertTrue(os.path.exists(copy.path))
        self.assertEqual(route.version, 1)
        self.assertEqual(self.joystick.active_route_name, route.name)

    def test_copy_route_activate(self):
        self.create_active_route()
        name = self.joystick.copy_route(activate=True)
        self.assertEqual(self.joystick.active_route_name, name)

    def test_copy_route_twice(self):
        self.create_active_route()
        self.joystick.copy_route()
        with self.assertRaises(DuplicateRouteError):
            self.joystick.copy_route()

    def test_delete_active_route(self):
        route = self.create_active_route(samples=1)
        route.save()

        self.assertEqual(self.joystick.delete_route(), route.name)

        self.assertFalse(os.path.exists(route.path))
        self.assertFalse(self.joystick.has_route(route.name))
        self.assertFalse(self.joystick.has_active_route)
        with self.assertRaises(RouteNotFoundError):
            _ = self.joystick.active_route_name

    def test_delete_unknown_route(self):
        with self.assertRaises(RouteNotFoundError):
            self.joystick.delete_route("nothing")

    def test_clear_route_saves(self):
        route = self.create_active_route(samples=4)
        self.joystick.clear_route()
        self.assertTrue(route.is_empty)
        self.assertTrue(PhantomRoute.load(route.path).is_empty)

    def test_save_routes(self):
        first = self.create_active_route(samples=1)
        second = self.joystick.get_route(self.joystick.create_route("right", "napalm"))

        self.joystick.save_routes()

        self.assertTrue(os.path.exists(first.path))
        self.assertTrue(os.path.exists(second.path))

    def test_save_routes_reports_failures(self):
        first = self.create_active_route()
        second = self.joystick.get_route(self.joystick.create_route("right", "napalm"))

        with patch.object(first, "save", side_effect=RouteIOError("disk full")):
            with self.assertRaises(RouteIOError) as context:
                self.joystick.save_routes()
        self.assertIn(first.name, str(context.exception))
        self.assertTrue(os.path.exists(second.path))

    def test_all_overviews(self):
        self.create_active_route()
        self.joystick.create_route("right", "napalm")
        table = self.joystick.all_overviews()
        self.assertIn("# Phantom Routes #", table)
        self.assertIn("| [0]", table)
        self.assertIn('"napalm_right"', table)
        self.assertIn("Time Spacing: 100ms", self.joystick.route_overview())


class TestRecording(JoystickTestCase):

    def test_recording_gate(self):
        route = self.create_active_route()
        self.stick.axes[1] = 0.5
        self.stick.buttons[2] = True
        self.assertTrue(self.joystick.begin_recording())
        self.assertEqual(self.joystick.state, JoystickState.RECORDING)

        self.time_source.advance(50)
        self.assertFalse(self.joystick.record_tick())
        self.assertEqual(route.sample_count, 0)

        self.time_source.advance(51)
        self.assertTrue(self.joystick.record_tick())

        self.assertEqual(set(route.route_data.timelines.lengths()), {1})
        self.assertEqual(route.analog(1), (0.5,))
        self.assertEqual(route.analog_spacing(1), (101,))
        self.assertEqual(route.digital(2), (True,))
        self.assertEqual(route.digital_spacing(9), (101,))
        self.assertEqual(self.joystick.clock.elapsed_ms(), 0)

    def test_end_recording_saves(self):
        route = self.create_active_route(samples=3)
        self.joystick.begin_recording()
        self.assertTrue(route.is_empty)
        for _ in range(4):
            self.time_source.advance(100)
            self.joystick.record_tick()

        self.assertTrue(self.joystick.end_recording())

        self.assertTrue(self.joystick.is_idle)
        self.assertFalse(self.joystick.clock.running)
        self.assertEqual(PhantomRoute.load(route.path).sample_count, 4)
        self.assertFalse(self.joystick.end_recording())

    def test_record_without_reset_appends(self):
        route = self.create_active_route(samples=2)
        self.joystick.begin_recording(reset_first=False)
        self.time_source.advance(100)
        self.joystick.record_tick()
        self.assertEqual(route.sample_count, 3)

    def test_tick_when_idle(self):
        route = self.create_active_route()
        self.time_source.advance(500)
        self.assertFalse(self.joystick.record_tick())
        self.assertTrue(route.is_empty)

    def test_record_without_joystick(self):
        self.joystick.recording_joystick = None
        self.create_active_route()
        with self.assertRaises(InvalidStateError):
            self.joystick.begin_recording()
        self.assertTrue(self.joystick.is_idle)

    def test_record_without_active_route(self):
        with self.assertRaises(RouteNotFoundError):
            self.joystick.begin_recording()

    def test_timing_report(self):
        self.create_active_route()
        self.joystick.begin_recording()
        for elapsed in (101, 100, 120):
            self.time_source.advance(elapsed)
            self.joystick.record_tick()
        self.joystick.end_recording()

        report = self.joystick.timing_report()

        self.assertEqual(report.sample_count, 3)
        self.assertEqual(report.recorded_duration, 321)
        self.assertEqual(report.nominal_duration, 300)
        self.assertEqual(report.drift, 21)


class TestPlayback(JoystickTestCase):

    def test_read_by_time_index(self):
        self.create_active_route(samples=5)
        self.assertTrue(self.joystick.begin_playback())

        self.assertAlmostEqual(self.joystick.read_axis(0), 0.0)
        self.assertFalse(self.joystick.read_button(0))

        self.time_source.advance(127)
        self.assertAlmostEqual(self.joystick.read_axis(3), 0.1)
        self.assertTrue(self.joystick.read_button(0))
        self.assertEqual(self.joystick.playback_index, 1)

        self.time_source.advance(300)
        self.assertAlmostEqual(self.joystick.read_axis(5), 0.4)
        self.assertTrue(self.joystick.is_playing)

    def test_stops_at_end_of_timeline(self):
        self.create_active_route(samples=5)
        self.joystick.begin_playback()

        self.time_source.advance(500)
        self.assertEqual(self.joystick.read_axis(0), 0.0)

        self.assertTrue(self.joystick.is_idle)
        self.assertFalse(self.joystick.clock.running)
        self.assertFalse(self.joystick.read_button(0))

    def test_button_read_stops_at_end(self):
        self.create_active_route(samples=5)
        self.joystick.begin_playback()
        self.time_source.advance(1000)
        self.assertFalse(self.joystick.read_button(0))
        self.assertTrue(self.joystick.is_idle)

    def test_end_playback_logs_times(self):
        self.create_active_route(samples=5)
        self.joystick.begin_playback()
        self.time_source.advance(230)
        with self.assertLogs("PhantomJoystick", level="INFO") as logs:
            self.assertTrue(self.joystick.end_playback())
        self.assertTrue(any("230ms" in line and "500ms" in line for line in logs.output))
        self.assertFalse(self.joystick.end_playback())

    def test_reads_when_idle(self):
        self.create_active_route(samples=5)
        self.assertEqual(self.joystick.read_axis(0), 0.0)
        self.assertFalse(self.joystick.read_button(9))

    def test_channel_bounds(self):
        with self.assertRaises(ChannelIndexError):
            self.joystick.read_axis(6)
        with self.assertRaises(ChannelIndexError):
            self.joystick.read_button(10)

    def test_empty_route_stops_immediately(self):
        self.create_active_route()
        self.joystick.begin_playback()
        self.assertEqual(self.joystick.read_axis(0), 0.0)
        self.assertTrue(self.joystick.is_idle)


class TestStrictTransitions(JoystickTestCase):

    def test_record_while_playing(self):
        route = self.create_active_route(samples=5)
        self.joystick.begin_playback()

        with self.assertRaises(InvalidStateError):
            self.joystick.begin_recording()

        self.assertTrue(self.joystick.is_playing)
        self.assertEqual(route.sample_count, 5)

    def test_play_while_recording(self):
        self.create_active_route()
        self.joystick.begin_recording()
        with self.assertRaises(InvalidStateError):
            self.joystick.begin_playback()
        self.assertTrue(self.joystick.is_recording)

    def test_set_active_route_while_recording(self):
        self.create_active_route()
        other = self.joystick.create_route("right", "napalm")
        self.joystick.begin_recording()
        with self.assertRaises(InvalidStateError):
            self.joystick.set_active_route(other)

    def test_delete_active_route_while_playing(self):
        route = self.create_active_route(samples=5)
        self.joystick.begin_playback()
        with self.assertRaises(InvalidStateError):
            self.joystick.delete_route()
        self.assertTrue(self.joystick.has_route(route.name))

    def test_refresh_while_recording(self):
        self.create_active_route()
        self.joystick.begin_recording()
        with self.assertRaises(InvalidStateError):
            self.joystick.refresh()

    def test_record_while_recording_keeps_samples(self):
        route = self.create_active_route()
        self.joystick.begin_recording()
        self.time_source.advance(100)
        self.joystick.record_tick()
        self.time_source.advance(40)

        with self.assertRaises(InvalidStateError):
            self.joystick.begin_recording()

        self.assertTrue(self.joystick.is_recording)
        self.assertEqual(route.sample_count, 1)
        self.assertEqual(self.joystick.clock.elapsed_ms(), 40)

    def test_copy_and_activate_while_playing(self):
        route = self.create_active_route(samples=5)
        self.joystick.begin_playback()

        with self.assertRaises(InvalidStateError):
            self.joystick.copy_route(activate=True)

        self.assertEqual(self.joystick.route_names(), [route.name])
        self.assertFalse(os.path.exists(os.path.join(route.folder, f"{route.name}_v2.route")))
        self.assertEqual(self.joystick.active_route_name, route.name)

    def test_copy_without_activation_while_playing(self):
        self.create_active_route(samples=5)
        self.joystick.begin_playback()
        self.assertEqual(self.joystick.copy_route(), "napalm_driver_left_side_v2")
        self.assertTrue(self.joystick.is_playing)


class TestLenientTransitions(JoystickTestCase):

    strict = False

    def test_record_while_playing_ignored(self):
        route = self.create_active_route(samples=5)
        self.joystick.begin_playback()

        with self.assertLogs("PhantomJoystick", level="WARNING"):
            self.assertFalse(self.joystick.begin_recording())

        self.assertEqual(self.joystick.state, JoystickState.PLAYING)
        self.assertEqual(route.sample_count, 5)

    def test_play_while_recording_ignored(self):
        self.create_active_route()
        self.joystick.begin_recording()
        self.assertFalse(self.joystick.begin_playback())
        self.assertTrue(self.joystick.is_recording)

    def test_set_active_route_while_playing_ignored(self):
        route = self.create_active_route(samples=5)
        other = self.joystick.create_route("right", "napalm")
        self.joystick.begin_playback()
        self.assertFalse(self.joystick.set_active_route(other))
        self.assertEqual(self.joystick.active_route_name, route.name)

    def test_delete_active_route_while_playing_ignored(self):
        route = self.create_active_route(samples=5)
        route.save()
        self.joystick.begin_playback()

        self.assertIsNone(self.joystick.delete_route())

        self.assertTrue(self.joystick.has_route(route.name))
        self.assertTrue(os.path.exists(route.path))
        self.assertEqual(self.joystick.active_route_name, route.name)

    def test_clear_route_while_playing_ignored(self):
        route = self.create_active_route(samples=5)
        self.joystick.begin_playback()
        self.assertFalse(self.joystick.clear_route())
        self.assertEqual(route.sample_count, 5)

    def test_copy_and_activate_while_playing_ignored(self):
        route = self.create_active_route(samples=5)
        self.joystick.begin_playback()
        self.assertIsNone(self.joystick.copy_route(activate=True))
        self.assertEqual(self.joystick.route_names(), [route.name])

    def test_record_while_recording_ignored(self):
        route = self.create_active_route()
        self.joystick.begin_recording()
        self.time_source.advance(100)
        self.joystick.record_tick()
        self.assertFalse(self.joystick.begin_recording())
        self.assertEqual(route.sample_count, 1)


if __name__ == '__main__':
    unittest.main(verbosity=2)
