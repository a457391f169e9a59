"""
hardware_detector.py - Host CPU Detection

Reads the platform's CPU descriptor source and normalizes it into a Report.

Supports:
- Linux via /proc/cpuinfo
- macOS (Apple M1 family) via sysctl
- Any other platform yields an empty Report

Each call to detect() builds a new Report; nothing is cached between calls.
"""

import argparse
import logging
import platform
import subprocess
import sys
from functools import partial
from typing import Any, Callable, Dict, List, Optional

import sysinfo_config
from cpu_models import CPU, Cache, Report
from cpu_parsers import parse_int
from cpu_parts import APPLE
from cpuinfo_scanner import scan_cpuinfo
from report_display import render_report

logger = logging.getLogger(__name__)

SysctlQuery = Callable[[str], str]


# ============================================================================
# Linux
# ============================================================================

def read_cpuinfo(path: str = sysinfo_config.CPUINFO_PATH) -> Optional[bytes]:
    """Read the raw cpuinfo file, or None if it cannot be read."""
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        logger.warning(f"Cannot read {path}: {e}")
        return None


def detect_linux(config: Dict[str, Any]) -> Report:
    buf = read_cpuinfo(config["cpuinfo_path"])
    if buf is None:
        return Report()
    return scan_cpuinfo(buf, flush_trailing=config["flush_trailing"])


# ============================================================================
# macOS
# ============================================================================

# hw.cpufamily of the M1 Firestorm/Icestorm cores
CPUFAMILY_ARM_FIRESTORM_ICESTORM = 0x1b588bb3

# hw.cpusubfamily -> brand suffix
_M1_SUBFAMILY_SUFFIX = {
    2: "",
    4: " Pro",
    5: " Max",
}


def sysctl(
    key: str,
    executable: str = sysinfo_config.SYSCTL_PATH,
    timeout: float = sysinfo_config.SYSCTL_TIMEOUT_SECONDS
) -> str:
    """
    Query one sysctl value as text.

    Returns an empty string when the key is unknown or the query fails.
    """
    try:
        result = subprocess.run(
            [executable, "-n", key],
            capture_output=True,
            text=True,
            timeout=timeout
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"sysctl {key!r} failed: {e}")
        return ""

    if result.returncode != 0:
        logger.debug(f"sysctl {key!r} exited with {result.returncode}: {result.stderr.strip()}")
        return ""
    return result.stdout.strip()


def detect_darwin(query: SysctlQuery = sysctl) -> Report:
    """
    Build a Report from sysctl values.

    Args:
        query: Function returning the text value of a sysctl key ("" if unset)

    Returns:
        Report with one CPU per physical core on Apple M1 family hosts, and
        kernel/OS/model details as misc pairs on every host
    """
    report = Report()
    report.add_pair("Kernel Version", query("kern.version"))
    report.add_pair("OS Version", query("kern.osversion"))

    family = parse_int(query("hw.cpufamily"))
    if family == CPUFAMILY_ARM_FIRESTORM_ICESTORM:
        _detect_m1(report, query)
    else:
        logger.info(f"No CPU table for hw.cpufamily {family:#x}")

    return report.normalize()


def _detect_m1(report: Report, query: SysctlQuery) -> None:
    def sysctl_int(key: str) -> int:
        return parse_int(query(key))

    brand = query("machdep.cpu.brand_string")  # Apple M1
    brand += _M1_SUBFAMILY_SUFFIX.get(sysctl_int("hw.cpusubfamily"), "")

    vaddr = sysctl_int("machdep.virtual_address_size")
    align = sysctl_int("hw.cachelinesize")
    levels = sysctl_int("hw.nperflevels")

    # Level 0 holds the performance cores
    for level in range(levels):
        prefix = f"hw.perflevel{level}"
        cache = Cache(
            inst=sysctl_int(f"{prefix}.l1icachesize"),
            l1=sysctl_int(f"{prefix}.l1dcachesize"),
            l2=sysctl_int(f"{prefix}.l2cachesize"),
            alignment=align,
        )
        for _ in range(sysctl_int(f"{prefix}.physicalcpu")):
            cpu = CPU(
                proc=len(report.cpus),
                impl=APPLE,
                model=CPUFAMILY_ARM_FIRESTORM_ICESTORM,
                model_name=brand,
                cache=cache.model_copy(),
                arch=8,
                micro_arch="Firestorm" if level == 0 else "Icestorm",
            )
            cpu.addr_sizes.virt = vaddr
            report.add_cpu(cpu)

    report.add_pair("Model", query("hw.model"))


# ============================================================================
# Main Detection Entry Point
# ============================================================================

def detect(config: Optional[Dict[str, Any]] = None) -> Report:
    """
    Detect the current host's CPU information.

    Note that each call might return different information if the host
    changes between calls.

    Args:
        config: Configuration from sysinfo_config.load_config() (loaded if None)

    Returns:
        A new Report
    """
    if config is None:
        config = sysinfo_config.load_config()

    system = platform.system()
    if system == "Linux":
        report = detect_linux(config)
    elif system == "Darwin":
        query = partial(
            sysctl,
            executable=config["sysctl_path"],
            timeout=config["sysctl_timeout"]
        )
        report = detect_darwin(query)
    else:
        logger.info(f"CPU detection not supported on {system or 'unknown platform'}")
        report = Report()

    logger.info(f"CPU detection ({system}): {len(report.cpus)} processor(s), "
                f"{len(report.misc)} misc field(s)")
    return report


# ============================================================================
# CLI Entry Point
# ============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Report host CPU information")
    parser.add_argument("--input", metavar="FILE",
                        help="parse a captured /proc/cpuinfo file instead of detecting")
    parser.add_argument("--json", action="store_true", help="print the report as JSON")
    parser.add_argument("--flush-trailing", action="store_true",
                        help="keep a final record with no blank line after it")
    parser.add_argument("--config", metavar="FILE", help="YAML configuration file")
    parser.add_argument("--log-level", type=str.upper, choices=sysinfo_config.LOG_LEVELS,
                        help="DEBUG, INFO, WARNING or ERROR")
    args = parser.parse_args(argv)

    config = sysinfo_config.load_config(args.config)
    if args.flush_trailing:
        config["flush_trailing"] = True
    sysinfo_config.setup_logging(args.log_level or config["log_level"])

    if args.input:
        buf = read_cpuinfo(args.input)
        if buf is None:
            return 1
        report = scan_cpuinfo(buf, flush_trailing=config["flush_trailing"])
    else:
        report = detect(config)

    if args.json:
        print(report.to_json())
    else:
        render_report(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
