#!/usr/bin/env python3
"""
Tests for candidate generation
"""

import ipaddress
import random
import unittest

from warp_scan.scan_components.candidates import (
    AddressRange,
    Candidate,
    CandidateGenerator,
    Protocol,
    format_endpoint,
    parse_range,
)


class TestParseRange(unittest.TestCase):
    """Test range specification parsing"""

    def test_ipv4_dotted_prefix(self):
        """Test a dotted prefix leaves the missing octets random"""
        version, base, size = parse_range(AddressRange("162.159.192.", 25))
        self.assertEqual(version, 4)
        self.assertEqual(ipaddress.IPv4Address(base), ipaddress.IPv4Address("162.159.192.0"))
        self.assertEqual(size, 256)

    def test_ipv4_two_octet_prefix(self):
        """Test a shorter prefix widens the range"""
        _, _, size = parse_range(AddressRange("10.0.", 1))
        self.assertEqual(size, 65536)

    def test_cidr(self):
        """Test CIDR networks"""
        version, base, size = parse_range(AddressRange("188.114.96.0/22", 5))
        self.assertEqual(version, 4)
        self.assertEqual(ipaddress.IPv4Address(base), ipaddress.IPv4Address("188.114.96.0"))
        self.assertEqual(size, 1024)

    def test_ipv6_prefix(self):
        """Test an IPv6 prefix fills the remaining groups"""
        version, base, size = parse_range(AddressRange("2606:4700:d0::", 5))
        self.assertEqual(version, 6)
        self.assertEqual(ipaddress.IPv6Address(base), ipaddress.IPv6Address("2606:4700:d0::"))
        self.assertEqual(size, 65536 ** 5)

    def test_malformed_prefixes(self):
        """Test prefixes with no room or bad syntax are rejected"""
        for prefix in ["", "1.2.3.4.", "1.2.3.4", "300.1.1.", "1:2:3:4:5:6:7:8:", "not-an-ip/24"]:
            with self.subTest(prefix=prefix):
                with self.assertRaises(ValueError):
                    parse_range(AddressRange(prefix, 1))


class TestCandidateGenerator(unittest.TestCase):
    """Test the CandidateGenerator class"""

    def setUp(self):
        """Set up test fixtures"""
        self.rng = random.Random(1234)

    def test_no_duplicate_triples(self):
        """Test duplicate seeds, overlapping ranges and repeated ports collapse"""
        generator = CandidateGenerator(
            ipv4_ranges=[AddressRange("10.0.0.", 300), AddressRange("10.0.0.0/24", 50)],
            tcp_ports=[443, 443],
            udp_ports=[2408, 500, 2408],
            seed_addresses=["10.0.0.7", "10.0.0.7"],
            rng=self.rng,
        )
        candidates = generator.generate()

        self.assertEqual(len(candidates), len(set(candidates)))
        # 256 addresses x (1 TCP + 2 UDP) ports
        self.assertEqual(len(candidates), 256 * 3)

    def test_seeds_come_first(self):
        """Test seed addresses are emitted before sampled ones"""
        generator = CandidateGenerator(
            ipv4_ranges=[AddressRange("10.0.0.", 10)],
            tcp_ports=[443],
            seed_addresses=["192.0.2.1", "192.0.2.2"],
            rng=self.rng,
        )
        candidates = generator.generate()

        self.assertEqual(candidates[0], Candidate("192.0.2.1", 443, Protocol.TCP))
        self.assertEqual(candidates[1], Candidate("192.0.2.2", 443, Protocol.TCP))
        self.assertEqual(len(candidates), 12)

    def test_ports_per_address_order(self):
        """Test each address yields its TCP ports then its UDP ports"""
        generator = CandidateGenerator(tcp_ports=[443], udp_ports=[2408, 500],
                                       seed_addresses=["192.0.2.1"], rng=self.rng)
        candidates = generator.generate()

        self.assertEqual(candidates, [
            Candidate("192.0.2.1", 443, Protocol.TCP),
            Candidate("192.0.2.1", 2408, Protocol.UDP),
            Candidate("192.0.2.1", 500, Protocol.UDP),
        ])

    def test_samples_stay_in_range(self):
        """Test sampled addresses fall inside their range"""
        generator = CandidateGenerator(rng=self.rng)
        network = ipaddress.ip_network("162.159.192.0/24")

        addresses = generator.sample_addresses(AddressRange("162.159.192.", 25))

        self.assertEqual(len(addresses), 25)
        self.assertEqual(len(set(addresses)), 25)
        for address in addresses:
            self.assertIn(ipaddress.ip_address(address), network)

    def test_small_range_yields_everything(self):
        """Test a range smaller than the sample count yields all its addresses"""
        generator = CandidateGenerator(rng=self.rng)
        addresses = generator.sample_addresses(AddressRange("192.0.2.0/30", 10))
        self.assertEqual(sorted(addresses), ["192.0.2.0", "192.0.2.1", "192.0.2.2", "192.0.2.3"])

    def test_ipv6_sampling(self):
        """Test IPv6 prefixes produce addresses inside the prefix"""
        generator = CandidateGenerator(
            ipv6_ranges=[AddressRange("2606:4700:d0::", 5)],
            udp_ports=[2408],
            rng=self.rng,
        )
        candidates = generator.generate()
        network = ipaddress.ip_network("2606:4700:d0::/48")

        self.assertEqual(len(candidates), 5)
        for candidate in candidates:
            self.assertIn(ipaddress.ip_address(candidate.address), network)
            self.assertTrue(candidate.endpoint.startswith("["))

    def test_same_seed_same_sequence(self):
        """Test an injected random source makes generation reproducible"""
        def build(seed):
            return CandidateGenerator(
                ipv4_ranges=[AddressRange("188.114.96.", 20)],
                tcp_ports=[443],
                rng=random.Random(seed),
            ).generate()

        self.assertEqual(build(7), build(7))

    def test_candidates_for(self):
        """Test crossing an explicit address list with the configured ports"""
        generator = CandidateGenerator(
            ipv4_ranges=[AddressRange("10.0.0.", 10)],
            tcp_ports=[443],
            udp_ports=[2408],
            rng=self.rng,
        )
        candidates = generator.candidates_for(["192.0.2.9"])

        self.assertEqual(candidates, [
            Candidate("192.0.2.9", 443, Protocol.TCP),
            Candidate("192.0.2.9", 2408, Protocol.UDP),
        ])


class TestFormatEndpoint(unittest.TestCase):
    """Test endpoint rendering"""

    def test_ipv4(self):
        self.assertEqual(format_endpoint("162.159.192.1", 2408), "162.159.192.1:2408")

    def test_ipv6(self):
        self.assertEqual(format_endpoint("2606:4700:d0::1", 2408), "[2606:4700:d0::1]:2408")


if __name__ == "__main__":
    unittest.main(verbosity=2)
