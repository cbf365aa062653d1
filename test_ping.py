#!/usr/bin/env python3
"""
Tests for the system ping collaborator
"""

import subprocess
import unittest
from unittest.mock import patch

from warp_scan.scan_components.ping import SystemPing, parse_ping_output

LINUX_OUTPUT = """PING 162.159.192.1 (162.159.192.1) 56(84) bytes of data.
64 bytes from 162.159.192.1: icmp_seq=1 ttl=57 time=23.4 ms

--- 162.159.192.1 ping statistics ---
1 packets transmitted, 1 received, 0% packet loss, time 0ms
"""

WINDOWS_OUTPUT = """Pinging 162.159.192.1 with 32 bytes of data:
Reply from 162.159.192.1: bytes=32 time<1ms TTL=57
"""


class TestParsePingOutput(unittest.TestCase):
    """Test RTT extraction"""

    def test_linux(self):
        self.assertEqual(parse_ping_output(LINUX_OUTPUT), 23.4)

    def test_windows_sub_millisecond(self):
        self.assertEqual(parse_ping_output(WINDOWS_OUTPUT), 1.0)

    def test_no_reply(self):
        self.assertIsNone(parse_ping_output("Request timed out."))


class TestSystemPing(unittest.TestCase):
    """Test the SystemPing class"""

    def setUp(self):
        """Set up test fixtures"""
        self.ping = SystemPing(timeout=1.0)

    @patch('warp_scan.scan_components.ping.IS_WINDOWS', False)
    @patch('subprocess.run')
    def test_reachable(self, mock_run):
        """Test a successful ping returns its RTT"""
        mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=0, stdout=LINUX_OUTPUT)

        self.assertEqual(self.ping.ping_rtt("162.159.192.1"), 23.4)
        self.assertEqual(mock_run.call_args[0][0], ["ping", "-c", "1", "-W", "1", "162.159.192.1"])

    @patch('warp_scan.scan_components.ping.IS_WINDOWS', True)
    def test_windows_command(self):
        self.assertEqual(self.ping._command("162.159.192.1"), ["ping", "-n", "1", "-w", "1000", "162.159.192.1"])

    @patch('subprocess.run')
    def test_unreachable(self, mock_run):
        """Test a non-zero exit is unreachable"""
        mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=1, stdout="")
        self.assertIsNone(self.ping.ping_rtt("192.0.2.1"))

    @patch('subprocess.run')
    def test_hung_ping(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="ping", timeout=3)
        self.assertIsNone(self.ping.ping_rtt("192.0.2.1"))

    @patch('subprocess.run')
    def test_missing_binary(self, mock_run):
        """Test a missing ping binary is treated as unreachable"""
        mock_run.side_effect = FileNotFoundError("ping")
        with self.assertLogs('warp_scan.scan_components.ping', level='WARNING'):
            self.assertIsNone(self.ping.ping_rtt("192.0.2.1"))


if __name__ == "__main__":
    unittest.main(verbosity=2)
