"""
External Helper - the standalone ``warpendpoint`` scanner binary

Alternative backend: the binary reads ``ip.txt`` from its working directory,
scans it on its own and writes ``result.csv`` (``endpoint,loss,delay``).
"""

import csv
import logging
import os
import platform
import stat
import subprocess
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import requests

logger = logging.getLogger(__name__)

HELPER_BASE_URL = "https://raw.githubusercontent.com/Ptechgithub/warp/main/endip"
HELPER_BINARY = "warpendpoint"
HELPER_INPUT = "ip.txt"
HELPER_OUTPUT = "result.csv"
DOWNLOAD_TIMEOUT = 60

_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "386": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "armv6l": "arm",
    "arm": "arm",
}


class HelperError(RuntimeError):
    """The external helper could not be fetched or run"""


@dataclass(frozen=True)
class HelperResult:
    """One row of the helper's result.csv"""
    endpoint: str
    loss: int
    ping_ms: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def helper_download_url(arch: Optional[str] = None) -> str:
    """Download URL of the helper binary for a machine architecture"""
    machine = (arch or platform.machine()).lower()
    normalized = _ARCH_ALIASES.get(machine)
    if normalized is None:
        raise HelperError(f"unsupported architecture: {machine}")
    return f"{HELPER_BASE_URL}/{normalized}"


def download_helper(dest: Path, arch: Optional[str] = None,
                    session: Optional[requests.Session] = None) -> Path:
    """
    Fetch the helper binary and mark it executable.

    Args:
        dest: Target file path
        arch: Architecture override (defaults to this machine)
        session: Optional requests session

    Returns:
        Path of the written binary
    """
    url = helper_download_url(arch)
    logger.info(f"Downloading '{HELPER_BINARY}' helper from {url}")

    http = session or requests
    try:
        response = http.get(url, timeout=DOWNLOAD_TIMEOUT)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise HelperError(f"download failed: {e}") from e

    dest = Path(dest)
    try:
        dest.write_bytes(response.content)
        dest.chmod(dest.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except OSError as e:
        raise HelperError(f"cannot save helper to {dest}: {e}") from e
    logger.info(f"Saved helper to {dest} ({len(response.content)} bytes)")
    return dest


def parse_helper_results(path: Path) -> List[HelperResult]:
    """Parse result.csv into results sorted by ascending ping; malformed rows are skipped"""
    results = []
    with open(path, "r", encoding="utf-8", newline="") as f:
        reader = csv.reader(f)
        next(reader, None)  # header
        for row in reader:
            if len(row) != 3:
                continue
            try:
                loss = int(float(row[1].strip().rstrip("%")))
                ping_ms = float(row[2].replace("ms", "").strip())
            except ValueError:
                logger.debug(f"Skipping malformed helper row: {row}")
                continue
            results.append(HelperResult(endpoint=row[0].strip(), loss=loss, ping_ms=ping_ms))

    results.sort(key=lambda result: result.ping_ms)
    return results


def run_helper(binary: Path, addresses: Sequence[str], workdir: Path,
               timeout: Optional[float] = None) -> List[HelperResult]:
    """
    Run the helper against an address list.

    The input and output files are removed afterwards. A missing result.csv
    means the helper found nothing and yields an empty list.
    """
    workdir = Path(workdir)
    input_path = workdir / HELPER_INPUT
    output_path = workdir / HELPER_OUTPUT

    logger.info(f"Running helper {binary} on {len(addresses)} addresses")

    try:
        input_path.write_text("".join(f"{address}\n" for address in addresses), encoding="utf-8")
        subprocess.run(
            [str(Path(binary).resolve())],
            cwd=str(workdir),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=timeout,
            check=False,
        )
        if not output_path.exists():
            logger.info("Helper produced no result.csv, no working endpoints found")
            return []
        return parse_helper_results(output_path)
    except (OSError, subprocess.TimeoutExpired) as e:
        raise HelperError(f"helper failed: {e}") from e
    finally:
        for path in (input_path, output_path):
            if path.exists():
                os.remove(path)
